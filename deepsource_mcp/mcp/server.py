from __future__ import annotations

import json
import time
from typing import Any

from loguru import logger
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from deepsource_mcp.core import constants as cs
from deepsource_mcp.core import logs as ls
from deepsource_mcp.infrastructure import tool_errors as te
from deepsource_mcp.infrastructure.exceptions import create_client_error
from deepsource_mcp.mcp.tools import MCPToolsRegistry


def _text(payload: Any) -> list[TextContent]:
    return [
        TextContent(
            type=cs.MCP_CONTENT_TYPE_TEXT,
            text=json.dumps(payload, indent=cs.MCP_JSON_INDENT, default=str),
        )
    ]


async def dispatch_tool(
    registry: MCPToolsRegistry, name: str, arguments: dict[str, Any] | None
) -> dict[str, Any]:
    """Runs one tool and returns its JSON payload, an error payload on failure."""
    handler = registry.get_tool_handler(name)
    if handler is None:
        return te.to_tool_error(
            create_client_error(te.MCP_UNKNOWN_TOOL.format(name=name))
        )

    logger.info(ls.MCP_SERVER_TOOL_CALL.format(name=name, args=arguments or {}))
    start = time.perf_counter()
    result = dict(await handler(dict(arguments or {})))
    if te.is_tool_error(result):
        error = result["error"]
        logger.warning(
            ls.MCP_SERVER_TOOL_FAILED.format(
                name=name, category=error.get("category"), message=error.get("message")
            )
        )
        return result
    logger.info(
        ls.MCP_SERVER_TOOL_DONE.format(
            name=name, duration=(time.perf_counter() - start) * 1000
        )
    )
    return result


def create_server(registry: MCPToolsRegistry) -> Server:
    server: Server = Server(cs.MCP_SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name=schema.name,
                description=schema.description,
                inputSchema=dict(schema.inputSchema),
            )
            for schema in registry.get_tool_schemas()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return _text(await dispatch_tool(registry, name, arguments))

    return server


async def run_stdio_server(registry: MCPToolsRegistry) -> None:
    server = create_server(registry)
    logger.info(ls.MCP_SERVER_STARTING.format(count=len(registry.get_tool_schemas())))
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )
