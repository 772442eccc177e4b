"""
Unit tests for the JSON-lines tool failure log.
"""

import asyncio
import json
import logging

import pytest

from huginn.utils.tool_log import append_json_line, resolve_log_file


@pytest.mark.unit
class TestAppendJsonLine:
    """Test append_json_line."""

    def test_creates_parent_and_appends(self, tmp_path):
        target = tmp_path / "deep" / "dir" / "tools.log"

        append_json_line({"tool": "a", "message": "first"}, target)
        append_json_line({"tool": "b", "message": "second"}, target)

        lines = target.read_text().splitlines()
        assert [json.loads(line)["tool"] for line in lines] == ["a", "b"]

    def test_default_target_comes_from_settings(self, isolated_settings):
        append_json_line({"tool": "a"})

        assert json.loads(isolated_settings.get_tool_log_path().read_text()) == {"tool": "a"}

    def test_resolve_log_file_prefers_override(self, tmp_path, isolated_settings):
        assert resolve_log_file(tmp_path / "x.log") == tmp_path / "x.log"
        assert resolve_log_file() == isolated_settings.get_tool_log_path()

    def test_unserializable_values_are_stringified(self, tmp_path):
        target = tmp_path / "tools.log"

        append_json_line({"args": {"path": tmp_path}}, target)

        assert json.loads(target.read_text())["args"]["path"] == str(tmp_path)

    def test_write_failure_is_swallowed(self, tmp_path, caplog):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")

        with caplog.at_level(logging.ERROR, logger="huginn.utils.tool_log"):
            append_json_line({"tool": "a"}, blocker / "tools.log")

        assert "Log write failed" in caplog.text

    @pytest.mark.asyncio
    async def test_write_inside_event_loop_is_deferred(self, tmp_path):
        target = tmp_path / "tools.log"

        append_json_line({"tool": "async"}, target)

        for _ in range(100):
            if target.exists() and target.read_text():
                break
            await asyncio.sleep(0.01)
        assert json.loads(target.read_text()) == {"tool": "async"}
