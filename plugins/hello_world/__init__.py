"""
Example plugin: greets the caller.
"""

from huginn.mcp.plugins import Tool, text_result


async def say_hello(arguments, token):
    token.raise_if_cancelled()
    name = arguments.get("name") or "World"
    return text_result(f"Hello, {name}!")


tools = [
    Tool(
        name="hello-world",
        description="Say hello to the world",
        input_schema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name to greet"},
            },
            "additionalProperties": False,
        },
        handler=say_hello,
    ),
]
