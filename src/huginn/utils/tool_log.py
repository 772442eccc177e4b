"""
Append-only JSON-lines log for failed tool executions.

One record is written per failure. Writes are fire-and-forget: they run on the
default executor when an event loop is running and never raise into the
caller. Write failures are reported to the operational log only.
"""

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any, Mapping

from huginn.utils.config import get_settings

logger = logging.getLogger(__name__)

_write_lock = threading.Lock()


def resolve_log_file(file: str | Path | None = None) -> Path:
    """Resolve the failure log target: override, then configuration."""
    if file is not None:
        return Path(file).expanduser()
    return get_settings().get_tool_log_path()


def _write_line(path: Path, line: str) -> None:
    with _write_lock:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(line)


def _report_write_failure(future: "asyncio.Future[None]") -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error(f"Log write failed: {exc}")


def append_json_line(entry: Mapping[str, Any], file: str | Path | None = None) -> None:
    """Append one JSON-serialized entry to the failure log.

    Args:
        entry: Record to serialize; objects json cannot encode are written via str()
        file: Optional log file override
    """
    try:
        path = resolve_log_file(file)
        line = json.dumps(dict(entry), default=str) + "\n"
    except Exception as e:
        logger.error(f"Log write failed: {e}")
        return

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is None:
        try:
            _write_line(path, line)
        except OSError as e:
            logger.error(f"Log write failed: {e}")
        return

    try:
        future = loop.run_in_executor(None, _write_line, path, line)
        future.add_done_callback(_report_write_failure)
    except RuntimeError as e:
        # Executor already shut down
        logger.error(f"Log write failed: {e}")
