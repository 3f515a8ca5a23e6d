"""Render tool documentation for the help command and the HTTP surface."""

from typing import Any, Dict, List

from .base import ToolDefinition
from .catalog import Catalog


def format_tool_help(tool: ToolDefinition) -> str:
    doc = tool.documentation
    lines: List[str] = [f"=== {tool.display_name} ==="]
    lines.append((doc.description if doc and doc.description else "") or tool.description or "No description provided.")
    if doc and doc.usage:
        lines.append("\nUsage:\n" + doc.usage)
    if doc and doc.example:
        lines.append("\nExample:\n" + doc.example)
    return "\n".join(lines)


def show_tool_help(tool_id: str, catalog: Catalog = None) -> str:
    """Resolve `tool_id` and return its help text. Raises NotFoundError."""
    return format_tool_help((catalog or Catalog()).resolve(tool_id))


def tool_summary(tool: ToolDefinition) -> Dict[str, Any]:
    """JSON-friendly view of a definition for listings."""
    doc = tool.documentation
    return {
        "id": tool.id,
        "name": tool.display_name,
        "icon": tool.icon,
        "type": tool.type,
        "version": tool.version,
        "description": tool.description or (doc.description if doc else ""),
        "usage": doc.usage if doc else "",
        "example": doc.example if doc else "",
        "permissions": tool.permissions,
    }
