"""
Contract checks for tool candidates exported by plugins.

These are pure predicates: they never raise and never log. Callers decide
what to do with a rejected candidate.
"""

from collections.abc import Mapping
from typing import Any

from huginn.mcp.plugins.base import Tool


def is_plain_mapping(value: Any) -> bool:
    """True for a structured record: a mapping, not None and not a sequence."""
    return isinstance(value, Mapping)


def is_record_of_strings(value: Any) -> bool:
    """True for a mapping whose values are all strings."""
    if not is_plain_mapping(value):
        return False
    return all(isinstance(entry, str) for entry in value.values())


def is_tool(value: Any) -> bool:
    """Check whether ``value`` satisfies the minimal tool contract.

    Accepts a ``Tool`` instance or a mapping where ``name`` is a non-empty
    string, ``description`` is a string, ``inputSchema`` is a mapping and
    ``handler`` is callable.
    """
    if isinstance(value, Tool):
        name = value.name
        description = value.description
        input_schema = value.input_schema
        handler = value.handler
    elif is_plain_mapping(value):
        name = value.get("name")
        description = value.get("description")
        input_schema = value.get("inputSchema")
        handler = value.get("handler")
    else:
        return False

    return (
        isinstance(name, str)
        and bool(name)
        and isinstance(description, str)
        and is_plain_mapping(input_schema)
        and callable(handler)
    )


def to_tool(value: Any) -> Tool:
    """Convert a candidate accepted by ``is_tool`` into a ``Tool``."""
    if isinstance(value, Tool):
        return value
    return Tool.from_mapping(value)
