"""
Bounded execution of tool handlers.

``safe_tool_execution`` runs one handler invocation against a deadline and
turns every failure (raised exception, timeout, cancelled handler) into a
uniform ``isError`` result. Failures are recorded in the JSON-lines tool log
through a zero-delay loop deferral, so the caller never waits on log I/O.

The deadline only signals the handler's cancellation token. A handler that
ignores the token keeps running in the background after the timeout result
has been returned; its late outcome is discarded.
"""

import asyncio
import logging
import time
import traceback
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from mcp import types

from huginn.mcp.cancellation import CancellationToken
from huginn.mcp.plugins.base import text_result
from huginn.utils.config import get_settings
from huginn.utils.errors import ToolTimeoutError
from huginn.utils.tool_log import append_json_line

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"
FAILURE_PREFIX = "Tool execution failed: "


@dataclass
class LogEntry:
    """One failed tool execution, as written to the tool log."""

    timestamp: str
    level: str
    tool: str
    durationMs: int
    message: str
    stack: str | None = None
    args: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Serializable form; absent stack and args are omitted."""
        # Shallow: args reach the log writer uncopied
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        for key in ("stack", "args"):
            if data[key] is None:
                del data[key]
        return data


class ToolLogger(Protocol):
    def __call__(self, entry: LogEntry, log_file: str | Path | None) -> None: ...


def write_log_entry(entry: LogEntry, log_file: str | Path | None = None) -> None:
    """Default tool logger: append the entry to the JSON-lines tool log."""
    append_json_line(entry.to_dict(), log_file)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _normalize_failure(error: BaseException | None) -> tuple[str, str | None]:
    """Message and stack for a failure; non-Exception failures carry neither."""
    if isinstance(error, Exception):
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return str(error), stack
    return UNKNOWN_ERROR, None


def _discard_late_outcome(task: "asyncio.Future[Any]") -> None:
    """Consume the outcome of a handler that lost the race to its deadline."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Discarding late failure from timed-out handler: {exc!r}")


def _schedule_log(
    tool_name: str,
    duration_ms: int,
    message: str,
    stack: str | None,
    log_args: Any,
    log_file: str | Path | None,
    tool_logger: ToolLogger | None,
) -> None:
    def emit() -> None:
        try:
            entry = LogEntry(
                timestamp=_utc_timestamp(),
                level="error",
                tool=tool_name,
                durationMs=duration_ms,
                message=message,
                stack=stack,
                args=log_args,
            )
            (tool_logger or write_log_entry)(entry, log_file)
        except Exception as e:
            logger.error(f"Failed to schedule error logging: {e}")

    try:
        asyncio.get_running_loop().call_soon(emit)
    except Exception as e:
        logger.error(f"Failed to schedule error logging: {e}")


async def safe_tool_execution(
    tool_name: str,
    handler: Callable[[CancellationToken], Awaitable[types.CallToolResult]],
    *,
    timeout_ms: int | None = None,
    log_file: str | Path | None = None,
    log_args: Any = None,
    logger: ToolLogger | None = None,
) -> types.CallToolResult:
    """Execute a tool handler under a deadline.

    Args:
        tool_name: Name recorded in the timeout message and the failure log
        handler: Callable receiving a cancellation token, returning an awaitable result
        timeout_ms: Deadline in milliseconds; defaults to the configured tool timeout
        log_file: Optional failure log override passed to the logger
        log_args: Arguments echoed into the failure log, never into the result
        logger: Optional replacement for the default failure logger

    Returns:
        The handler's result unchanged, or an ``isError`` result on failure
    """
    if timeout_ms is None:
        timeout_ms = get_settings().tool_timeout_ms

    start = time.monotonic()
    token = CancellationToken()
    task: asyncio.Future[types.CallToolResult] | None = None
    failure: BaseException | None

    try:
        task = asyncio.ensure_future(handler(token))
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        if task not in done:
            token.cancel()
            task.add_done_callback(_discard_late_outcome)
            raise ToolTimeoutError(tool_name, timeout_ms)
        return task.result()
    except asyncio.CancelledError:
        if task is None or not task.cancelled():
            # The caller's own task was cancelled; let it unwind
            token.cancel()
            if task is not None:
                task.add_done_callback(_discard_late_outcome)
            raise
        failure = None
    except Exception as e:
        failure = e
    except KeyboardInterrupt:
        raise
    except BaseException as e:
        failure = e

    duration_ms = round((time.monotonic() - start) * 1000)
    if isinstance(failure, ToolTimeoutError):
        # The loop may wake within clock resolution of the deadline
        duration_ms = max(duration_ms, timeout_ms)
    message, stack = _normalize_failure(failure)
    _schedule_log(tool_name, duration_ms, message, stack, log_args, log_file, logger)

    return text_result(f"{FAILURE_PREFIX}{message}", is_error=True)
