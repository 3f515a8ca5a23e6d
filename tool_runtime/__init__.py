"""
Tool Runtime Layer

Resolves tool definitions and carries calls to local plugins, remote HTTP
endpoints and MCP servers. Permission decisions live in the agent layer.
"""

from .base import (
    AccessDeniedError,
    DefinitionError,
    ExecutionError,
    InvocationTimeoutError,
    LocalTool,
    NotFoundError,
    ToolDefinition,
    ToolError,
    TransportError,
    UnsupportedTypeError,
    tool,
)
from .catalog import Catalog
from .registry import get_local_tool, list_local_tools, register_tool

__all__ = [
    "AccessDeniedError",
    "Catalog",
    "DefinitionError",
    "ExecutionError",
    "InvocationTimeoutError",
    "LocalTool",
    "NotFoundError",
    "ToolDefinition",
    "ToolError",
    "TransportError",
    "UnsupportedTypeError",
    "get_local_tool",
    "list_local_tools",
    "register_tool",
    "tool",
]
