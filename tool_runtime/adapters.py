"""
Transport Adapters

One adapter per tool type. Each turns a resolved definition plus a payload
into a transport call and returns the decoded result, raising the shared
error kinds from base.py on failure.
"""

import logging
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Optional

import httpx

from . import config
from .base import DefinitionError, ExecutionError, LocalTool, ToolDefinition, ToolError
from .registry import get_local_tool
from .session import MCPSessionManager

logger = logging.getLogger(__name__)

# Suffixes stripped from path-style local entrypoints
SOURCE_SUFFIXES = (".py", ".js", ".mjs", ".ts")


def plugin_name(entrypoint: str) -> str:
    """
    Map a local entrypoint to a registered plugin name.

    "hello-world" -> "hello-world"
    "./bmad-core/runtime/tools/hello-world.js" -> "hello-world"
    """
    name = PurePosixPath(entrypoint.replace("\\", "/")).name
    for suffix in SOURCE_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


class LocalAdapter:
    """Runs in-process tools registered in the local tool registry."""

    def __init__(self, lookup: Optional[Callable[[str], Optional[LocalTool]]] = None):
        self._lookup = lookup or get_local_tool

    async def invoke(self, tool: ToolDefinition, payload: Dict[str, Any], requested_id: str = None) -> Any:
        name = plugin_name(tool.entrypoint) if tool.entrypoint else tool.id
        local_tool = self._lookup(name)
        if local_tool is None:
            raise ExecutionError(
                f"No local tool registered for entrypoint {tool.entrypoint or tool.id!r}",
                tool_id=tool.id,
            )

        try:
            return await local_tool.run(payload)
        except ToolError:
            raise
        except Exception as e:
            logger.exception(f"Local tool {tool.id} failed")
            raise ExecutionError(
                f"Local tool {tool.id} failed: {e}",
                tool_id=tool.id,
                details={"cause": type(e).__name__},
            ) from e


class RemoteAdapter:
    """POSTs the JSON payload to the tool's URL and returns the JSON body."""

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout if timeout is not None else config.REMOTE_TIMEOUT_SECONDS
        self._transport = transport

    async def invoke(self, tool: ToolDefinition, payload: Dict[str, Any], requested_id: str = None) -> Any:
        if not tool.entrypoint:
            raise DefinitionError(f"Remote tool {tool.id} has no entrypoint URL", tool_id=tool.id)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    tool.entrypoint,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.InvalidURL as e:
            raise DefinitionError(f"Remote tool {tool.id} has an invalid URL: {e}", tool_id=tool.id) from e
        except httpx.TimeoutException as e:
            raise ExecutionError(
                f"Remote tool {tool.id} timed out after {self.timeout}s",
                tool_id=tool.id,
            ) from e
        except httpx.RequestError as e:
            raise ExecutionError(f"Remote tool {tool.id} request failed: {e}", tool_id=tool.id) from e

        if not response.is_success:
            raise ExecutionError(
                f"Remote tool {tool.id} failed: {response.status_code}",
                tool_id=tool.id,
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExecutionError(
                f"Remote tool {tool.id} returned a non-JSON body",
                tool_id=tool.id,
                status_code=response.status_code,
            ) from e


class MCPAdapter:
    """Delegates to the session manager; the entrypoint is the MCP namespace."""

    def __init__(self, sessions: MCPSessionManager):
        self.sessions = sessions

    async def invoke(self, tool: ToolDefinition, payload: Dict[str, Any], requested_id: str = None) -> Any:
        if not tool.mcp_server:
            raise DefinitionError(f"MCP tool {tool.id} has no mcpServer", tool_id=tool.id)
        return await self.sessions.call(tool.mcp_server, tool.entrypoint, requested_id or tool.id, payload)


def default_adapters(sessions: Optional[MCPSessionManager] = None) -> Dict[str, Any]:
    """Adapter table keyed by tool type."""
    return {
        "local": LocalAdapter(),
        "remote": RemoteAdapter(),
        "mcp": MCPAdapter(sessions or MCPSessionManager()),
    }
