"""
Unit tests for bounded tool execution.
"""

import asyncio
import json
import threading

import pytest
from unittest.mock import Mock

from huginn.mcp.cancellation import CancellationToken
from huginn.mcp.execution import LogEntry, safe_tool_execution, write_log_entry
from huginn.mcp.plugins.base import text_result
from huginn.utils.config import reload_settings
from huginn.utils.errors import ToolExecutionError, ToolTimeoutError


async def _let_deferred_logging_run():
    await asyncio.sleep(0.001)


class TestSafeToolExecution:
    """Test safe_tool_execution."""

    @pytest.mark.asyncio
    async def test_success_returns_result_without_logging(self):
        """Handler result is returned unchanged and nothing is logged."""
        mock_logger = Mock()
        expected = text_result("Success!")

        async def handler(token):
            return expected

        result = await safe_tool_execution("test-tool", handler, logger=mock_logger)

        assert result is expected
        assert result.isError is False
        await _let_deferred_logging_run()
        mock_logger.assert_not_called()

    @pytest.mark.asyncio
    async def test_timeout_returns_error_and_logs_later(self):
        """A handler outliving its deadline yields the timeout result."""
        mock_logger = Mock()
        observed = {}

        async def handler(token: CancellationToken):
            sleeper = asyncio.ensure_future(asyncio.sleep(0.1))
            token.on_cancel(sleeper.cancel)
            try:
                await sleeper
            except asyncio.CancelledError:
                observed["cancelled"] = token.is_cancelled
                raise
            return text_result("Never reached")

        loop = asyncio.get_running_loop()
        started = loop.time()
        result = await safe_tool_execution("test-tool", handler, timeout_ms=10, logger=mock_logger)
        elapsed = loop.time() - started

        assert result.isError is True
        assert len(result.content) == 1
        assert result.content[0].type == "text"
        assert result.content[0].text == "Tool execution failed: Tool test-tool timed out after 10 ms"
        assert elapsed < 0.09

        # Logging is deferred past the response
        mock_logger.assert_not_called()
        await _let_deferred_logging_run()

        mock_logger.assert_called_once()
        entry, log_file = mock_logger.call_args.args
        assert isinstance(entry, LogEntry)
        assert log_file is None
        assert entry.level == "error"
        assert entry.tool == "test-tool"
        assert entry.message == "Tool test-tool timed out after 10 ms"
        assert entry.durationMs >= 10
        assert isinstance(entry.timestamp, str)
        assert "ToolTimeoutError" in entry.stack
        assert observed["cancelled"] is True

    @pytest.mark.asyncio
    async def test_handler_error_hides_stack_from_caller(self):
        """A raised exception becomes a failure result; stack goes to the log only."""
        mock_logger = Mock()

        async def handler(token):
            raise ValueError("Test error message")

        result = await safe_tool_execution(
            "test-tool", handler, log_args={"input": "test"}, logger=mock_logger
        )

        assert result.isError is True
        assert result.content[0].text == "Tool execution failed: Test error message"
        assert "Traceback" not in result.content[0].text

        mock_logger.assert_not_called()
        await _let_deferred_logging_run()

        entry, _ = mock_logger.call_args.args
        assert entry.message == "Test error message"
        assert entry.stack
        assert "ValueError" in entry.stack
        assert entry.args == {"input": "test"}

    @pytest.mark.asyncio
    async def test_cancelled_handler_reports_unknown_error(self):
        """A failure that is not an Exception is normalized to 'Unknown error'."""
        mock_logger = Mock()

        async def handler(token):
            raise asyncio.CancelledError()

        result = await safe_tool_execution("test-tool", handler, logger=mock_logger)

        assert result.isError is True
        assert result.content[0].text == "Tool execution failed: Unknown error"

        await _let_deferred_logging_run()
        entry, _ = mock_logger.call_args.args
        assert entry.message == "Unknown error"
        assert entry.stack is None
        assert "stack" not in entry.to_dict()

    @pytest.mark.asyncio
    async def test_base_exception_is_contained(self):
        """A raise outside the Exception hierarchy maps to 'Unknown error'."""
        mock_logger = Mock()

        class HandlerAbort(BaseException):
            pass

        async def handler(token):
            raise HandlerAbort("not an Exception")

        result = await safe_tool_execution("test-tool", handler, logger=mock_logger)

        assert result.isError is True
        assert result.content[0].text == "Tool execution failed: Unknown error"

        await _let_deferred_logging_run()
        entry, _ = mock_logger.call_args.args
        assert entry.message == "Unknown error"
        assert entry.stack is None

    @pytest.mark.asyncio
    async def test_uncopyable_args_are_still_logged(self):
        """Log arguments are passed through without copying."""
        mock_logger = Mock()
        lock = threading.Lock()

        async def handler(token):
            raise ValueError("bad input")

        await safe_tool_execution("test-tool", handler, log_args={"lock": lock}, logger=mock_logger)
        await _let_deferred_logging_run()

        entry, _ = mock_logger.call_args.args
        assert entry.to_dict()["args"]["lock"] is lock

    @pytest.mark.asyncio
    async def test_synchronous_handler_failure_is_contained(self):
        """A handler that raises before returning an awaitable is still contained."""
        mock_logger = Mock()

        def handler(token):
            raise RuntimeError("boom")

        result = await safe_tool_execution("test-tool", handler, logger=mock_logger)

        assert result.isError is True
        assert result.content[0].text == "Tool execution failed: boom"

    @pytest.mark.asyncio
    async def test_timeout_from_environment(self, monkeypatch):
        """The default deadline follows MCP_TOOL_TIMEOUT_MS."""
        monkeypatch.setenv("MCP_TOOL_TIMEOUT_MS", "50")
        reload_settings()

        async def handler(token):
            await token.wait()
            return text_result("Never reached")

        result = await safe_tool_execution("test-tool", handler, logger=Mock())

        assert result.isError is True
        assert "timed out after 50 ms" in result.content[0].text

    @pytest.mark.asyncio
    async def test_late_failure_of_ignoring_handler_is_discarded(self):
        """A handler ignoring its token settles after the response without effect."""
        mock_logger = Mock()
        finished = asyncio.Event()

        async def handler(token):
            try:
                await asyncio.sleep(0.03)
                raise RuntimeError("too late")
            finally:
                finished.set()

        result = await safe_tool_execution("slow-tool", handler, timeout_ms=5, logger=mock_logger)
        assert result.content[0].text == "Tool execution failed: Tool slow-tool timed out after 5 ms"

        await asyncio.wait_for(finished.wait(), timeout=1)
        await _let_deferred_logging_run()
        assert mock_logger.call_count == 1

    @pytest.mark.asyncio
    async def test_logger_failure_never_reaches_caller(self):
        """An exploding logger is contained."""
        failing_logger = Mock(side_effect=OSError("disk full"))

        async def handler(token):
            raise ValueError("bad input")

        result = await safe_tool_execution("test-tool", handler, logger=failing_logger)
        await _let_deferred_logging_run()

        assert result.content[0].text == "Tool execution failed: bad input"
        failing_logger.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_file_override_is_forwarded(self, tmp_path):
        mock_logger = Mock()
        target = tmp_path / "custom.log"

        async def handler(token):
            raise ValueError("x")

        await safe_tool_execution("test-tool", handler, log_file=target, logger=mock_logger)
        await _let_deferred_logging_run()

        assert mock_logger.call_args.args[1] == target

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self):
        """Cancelling the caller is not converted into a result."""
        token_seen = {}

        async def handler(token):
            token_seen["token"] = token
            await token.wait()
            return text_result("stopped")

        task = asyncio.ensure_future(safe_tool_execution("test-tool", handler, timeout_ms=1000, logger=Mock()))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert token_seen["token"].is_cancelled

    @pytest.mark.asyncio
    async def test_default_logger_writes_json_line(self, isolated_settings):
        """Without an override, failures land in the configured JSON-lines file."""

        async def handler(token):
            raise ValueError("written to disk")

        await safe_tool_execution("disk-tool", handler, log_args={"k": 1})

        log_path = isolated_settings.get_tool_log_path()
        for _ in range(100):
            await asyncio.sleep(0.01)
            if log_path.exists() and log_path.read_text():
                break

        record = json.loads(log_path.read_text().splitlines()[0])
        assert record["level"] == "error"
        assert record["tool"] == "disk-tool"
        assert record["message"] == "written to disk"
        assert record["args"] == {"k": 1}
        assert record["timestamp"].endswith("Z")


class TestToolTimeoutError:
    """Test the timeout error type."""

    def test_message_and_attributes(self):
        error = ToolTimeoutError("test-tool", 1000)

        assert isinstance(error, ToolTimeoutError)
        assert isinstance(error, ToolExecutionError)
        assert str(error) == "Tool test-tool timed out after 1000 ms"
        assert error.tool_name == "test-tool"
        assert error.timeout_ms == 1000
        assert error.error_code == "TOOLTIMEOUTERROR"


class TestLogEntry:
    """Test LogEntry serialization."""

    def test_optional_fields_are_omitted(self):
        entry = LogEntry(
            timestamp="2024-01-01T00:00:00.000Z",
            level="error",
            tool="t",
            durationMs=3,
            message="m",
        )

        assert entry.to_dict() == {
            "timestamp": "2024-01-01T00:00:00.000Z",
            "level": "error",
            "tool": "t",
            "durationMs": 3,
            "message": "m",
        }

    def test_write_log_entry_appends(self, tmp_path):
        target = tmp_path / "nested" / "tools.log"
        entry = LogEntry(
            timestamp="2024-01-01T00:00:00.000Z",
            level="error",
            tool="t",
            durationMs=3,
            message="m",
            stack="trace",
        )

        write_log_entry(entry, target)
        write_log_entry(entry, target)

        lines = target.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["stack"] == "trace"
