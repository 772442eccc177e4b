"""Pytest configuration for resources/tests.

Ensures the repository root and ``src`` are on sys.path, keeps the tool
failure log inside the test's temporary directory, and provides a helper for
writing plugin directories.
"""

import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
for path in (ROOT, ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# Plugins are rewritten within the same second during reload tests; a cached
# .pyc with matching mtime and size would shadow the new source
sys.dont_write_bytecode = True

from huginn.utils.config import reload_settings  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the tool failure log at a temporary file for every test."""
    monkeypatch.delenv("MCP_TOOL_TIMEOUT_MS", raising=False)
    monkeypatch.delenv("HUGINN_TOOL_TIMEOUT_MS", raising=False)
    monkeypatch.setenv("MCP_TOOL_LOG_FILE", str(tmp_path / "logs" / "mcp-tools.log"))
    settings = reload_settings()
    yield settings
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def plugin_root(tmp_path):
    root = tmp_path / "plugins"
    root.mkdir()
    return root


@pytest.fixture
def write_plugin(plugin_root):
    """Write ``source`` as the ``__init__.py`` of plugin directory ``name``."""

    def _write(name: str, source: str) -> Path:
        directory = plugin_root / name
        directory.mkdir(exist_ok=True)
        (directory / "__init__.py").write_text(textwrap.dedent(source))
        return directory

    return _write

