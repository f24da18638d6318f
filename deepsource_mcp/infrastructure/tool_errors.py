from __future__ import annotations

from typing import Any

from deepsource_mcp.core import constants as cs
from deepsource_mcp.infrastructure.error_handlers import handle_api_error

MCP_REPORT_NOT_FOUND = "No {report_type} compliance report available for project {key}"
MCP_RUN_NOT_FOUND = "Run with identifier {identifier} not found"
MCP_UNKNOWN_TOOL = "Unknown tool: {name}"
MCP_INVALID_ARGUMENT = "Invalid value for {name}: {value}"


def to_tool_error(error: object) -> dict[str, Any]:
    """Builds the MCP error payload for any value raised by a tool handler.

    The error is classified once through `handle_api_error`; the payload only
    exposes the display message, never the underlying cause.
    """
    classified = handle_api_error(error)
    return {
        "error": {
            "code": cs.MCP_ERROR_CODES[classified.category],
            "category": str(classified.category),
            "message": classified.message,
            "retryable": classified.retryable,
        }
    }


def is_tool_error(payload: object) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("error"), dict)
