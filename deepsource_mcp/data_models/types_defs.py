"""
Shared type definitions for the MCP tool layer and the GraphQL transport.

It centralizes type hints for the JSON shapes exchanged with the DeepSource
GraphQL API and with MCP clients, using `TypedDict` and `NamedTuple` so the
tool registry and the resource clients agree on the same structures.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple, TypedDict


type GraphQLVariables = dict[str, Any]
"""Variables sent alongside a GraphQL query."""


class GraphQLErrorEntry(TypedDict, total=False):
    """A single entry of a GraphQL `errors` array."""

    message: str
    path: list[str | int]
    locations: list[dict[str, int]]


class GraphQLResponse(TypedDict, total=False):
    """The envelope returned by the GraphQL endpoint."""

    data: dict[str, Any] | None
    errors: list[GraphQLErrorEntry]


# Types for the Model Context Protocol (MCP)
MCPToolArguments = dict[str, Any]
"""Arguments for a tool call in the MCP format."""


class MCPInputSchemaItems(TypedDict):
    """The element schema of an array-typed property."""

    type: str


class MCPInputSchemaProperty(TypedDict, total=False):
    """A single property within an MCP tool's input schema."""

    type: str
    description: str
    default: str | int | bool
    enum: list[str]
    items: MCPInputSchemaItems
    minimum: int


MCPInputSchemaProperties = dict[str, MCPInputSchemaProperty]
"""A dictionary of properties for an MCP tool's input schema."""


class MCPInputSchema(TypedDict):
    """The input schema for an MCP tool."""

    type: str
    properties: MCPInputSchemaProperties
    required: list[str]


class MCPToolSchema(NamedTuple):
    """The full schema for a tool in the MCP format."""

    name: str
    description: str
    inputSchema: MCPInputSchema


class ToolErrorDetail(TypedDict):
    """The body of an MCP tool error payload."""

    code: int
    category: str
    message: str
    retryable: bool


class ToolErrorResult(TypedDict):
    """The result returned by a tool handler that failed."""

    error: ToolErrorDetail


MCPResultType = dict[str, Any] | ToolErrorResult
"""A union of all possible result types from MCP tool handlers."""

MCPHandlerType = Callable[..., Awaitable[MCPResultType]]
"""The signature for an MCP tool handler function."""
