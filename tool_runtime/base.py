"""
Tool Runtime Base Classes

Tool definitions, the error hierarchy shared by every layer, and the
plugin contract local tools implement.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


# ============== Definitions ==============


@dataclass
class ToolAuth:
    """Authentication requirements declared by a tool."""
    required: bool = False
    method: Optional[str] = None
    scopes: List[str] = field(default_factory=list)


@dataclass
class ToolDocumentation:
    """Help text shown by the help subsystem. Never used for dispatch."""
    description: str = ""
    usage: str = ""
    example: str = ""


@dataclass
class ToolDefinition:
    """Identity and dispatch metadata for one tool."""
    id: str
    type: str
    entrypoint: str = ""
    mcp_server: Optional[str] = None
    name: str = ""
    title: str = ""
    icon: str = ""
    description: str = ""
    version: str = ""
    dependencies: List[str] = field(default_factory=list)
    auth: Optional[ToolAuth] = None
    permissions: List[str] = field(default_factory=list)
    documentation: Optional[ToolDocumentation] = None
    source: Optional[Path] = None

    @property
    def display_name(self) -> str:
        return self.title or self.name or self.id

    @classmethod
    def from_document(cls, document: Any, source: Optional[Path] = None) -> "ToolDefinition":
        """
        Build a definition from a parsed definition document.

        Raises DefinitionError if the document has no `tool` section
        with an `id`.
        """
        if not isinstance(document, dict) or not isinstance(document.get("tool"), dict):
            raise DefinitionError(f"Missing 'tool' section in {source or 'definition'}")

        section = document["tool"]
        tool_id = section.get("id")
        if not tool_id:
            raise DefinitionError(f"Missing tool id in {source or 'definition'}")

        auth = None
        if isinstance(document.get("auth"), dict):
            raw = document["auth"]
            auth = ToolAuth(
                required=bool(raw.get("required", False)),
                method=raw.get("method"),
                scopes=list(raw.get("scopes") or []),
            )

        documentation = None
        if isinstance(document.get("documentation"), dict):
            raw = document["documentation"]
            documentation = ToolDocumentation(
                description=str(raw.get("description") or "").strip(),
                usage=str(raw.get("usage") or "").strip(),
                example=str(raw.get("example") or "").strip(),
            )

        return cls(
            id=str(tool_id),
            type=str(section.get("type") or ""),
            entrypoint=str(section.get("entrypoint") or ""),
            mcp_server=section.get("mcpServer"),
            name=str(section.get("name") or ""),
            title=str(section.get("title") or ""),
            icon=str(section.get("icon") or ""),
            description=str(section.get("description") or ""),
            version=str(section.get("version") or ""),
            dependencies=list(section.get("dependencies") or []),
            auth=auth,
            permissions=[str(p) for p in document.get("permissions") or []],
            documentation=documentation,
            source=source,
        )

    def to_document(self) -> Dict[str, Any]:
        """Inverse of from_document, used when writing definition files."""
        section: Dict[str, Any] = {"id": self.id}
        for key, value in (
            ("name", self.name),
            ("title", self.title),
            ("icon", self.icon),
            ("type", self.type),
            ("entrypoint", self.entrypoint),
            ("mcpServer", self.mcp_server),
            ("description", self.description),
            ("version", self.version),
            ("dependencies", self.dependencies),
        ):
            if value:
                section[key] = value

        document: Dict[str, Any] = {"tool": section}
        if self.auth:
            document["auth"] = {
                "required": self.auth.required,
                "method": self.auth.method,
                "scopes": self.auth.scopes,
            }
        if self.permissions:
            document["permissions"] = self.permissions
        if self.documentation:
            document["documentation"] = {
                "description": self.documentation.description,
                "usage": self.documentation.usage,
                "example": self.documentation.example,
            }
        return document


# ============== Errors ==============


class ToolError(Exception):
    """Base exception for tool invocation errors."""
    error_type = "tool"

    def __init__(self, message: str, tool_id: str = None, details: Dict = None):
        self.message = message
        self.tool_id = tool_id
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ToolError):
    """Raised when a tool id resolves to nothing in either catalog source."""
    error_type = "not_found"


class AccessDeniedError(ToolError):
    """Raised when an agent may not invoke a tool."""
    error_type = "access_denied"

    def __init__(self, agent_id: str, tool_id: str):
        self.agent_id = agent_id
        super().__init__(
            f"Access denied: {agent_id} not authorized for {tool_id}",
            tool_id=tool_id,
            details={"agent_id": agent_id},
        )


class UnsupportedTypeError(ToolError):
    """Raised when a definition declares a type with no adapter."""
    error_type = "unsupported_type"

    def __init__(self, tool_type: str, tool_id: str = None):
        self.tool_type = tool_type
        super().__init__(
            f"Unknown tool type: {tool_type}",
            tool_id=tool_id,
            details={"tool_type": tool_type},
        )


class DefinitionError(ToolError):
    """Raised when a definition document is malformed or incomplete."""
    error_type = "definition"


class ExecutionError(ToolError):
    """Raised when a local tool fails or a remote tool returns non-2xx."""
    error_type = "execution"

    def __init__(self, message: str, tool_id: str = None, status_code: int = None, details: Dict = None):
        self.status_code = status_code
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, tool_id=tool_id, details=details)


class TransportError(ToolError):
    """Raised when an MCP socket fails to open or errors mid-session."""
    error_type = "transport"

    def __init__(self, message: str, server: str = None, tool_id: str = None):
        self.server = server
        super().__init__(message, tool_id=tool_id, details={"server": server})


class InvocationTimeoutError(ToolError):
    """Raised when an invocation exceeds the orchestrator deadline."""
    error_type = "timeout"

    def __init__(self, tool_id: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Tool {tool_id} timed out after {timeout_seconds}s",
            tool_id=tool_id,
            details={"timeout_seconds": timeout_seconds},
        )


# ============== Local tool plugins ==============


class LocalTool(ABC):
    """
    Abstract base class for in-process tools.

    Subclasses placed in tool_runtime/tools/ are registered at startup.
    They must implement:
    - name: the id definitions refer to through their entrypoint
    - run(): the tool logic, called with the invocation payload
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registered name of the tool."""
        pass

    @property
    def description(self) -> str:
        return ""

    @abstractmethod
    async def run(self, payload: Dict[str, Any]) -> Any:
        """Execute the tool with the given payload."""
        pass


class FunctionTool(LocalTool):
    """Adapts a plain (sync or async) function to the LocalTool contract."""

    def __init__(self, name: str, func: Callable[[Dict[str, Any]], Any], description: str = ""):
        self._name = name
        self._func = func
        self._description = description

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    async def run(self, payload: Dict[str, Any]) -> Any:
        result = self._func(payload)
        if inspect.isawaitable(result):
            result = await result
        return result


# Registry for function-based tools
_function_tools: Dict[str, LocalTool] = {}


def tool(name: str, description: str = ""):
    """
    Decorator to register a function as a local tool.

    Usage:
        @tool("my-tool", description="Does something useful")
        async def my_tool(payload: dict) -> dict:
            return {"echo": payload}
    """
    def decorator(func: Callable):
        _function_tools[name] = FunctionTool(name, func, description or (func.__doc__ or "").strip())
        return func

    return decorator


def get_function_tools() -> Dict[str, LocalTool]:
    """Get all registered function-based tools."""
    return _function_tools.copy()
