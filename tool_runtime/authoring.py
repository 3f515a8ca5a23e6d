"""
Tool Authoring

Writes definition files and registry entries: the create-tool workflow
and the workspace bootstrap that installs the hello-world sample.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional

import yaml

from . import config
from .base import DefinitionError, ToolDefinition, ToolDocumentation
from .catalog import read_yaml

logger = logging.getLogger(__name__)

REGISTRY_VERSION = "1.0"

HELLO_WORLD = ToolDefinition(
    id="hello-world",
    name="Hello World",
    title="Example Local Tool",
    icon="💬",
    type="local",
    entrypoint="hello-world",
    description="Demonstration tool that prints a message.",
    version="1.0.0",
    documentation=ToolDocumentation(
        description="This example tool demonstrates how to define and run a BMAD local tool.",
        usage="@dev: *tool hello-world",
        example='Input: *tool hello-world\nOutput: "Hello from BMAD Tools!"',
    ),
)


def validate_definition(tool: ToolDefinition) -> None:
    """Reject definitions the runtime could never dispatch."""
    if not tool.id:
        raise DefinitionError("Tool id is required")
    if tool.type not in config.TOOL_TYPES:
        raise DefinitionError(
            f"Tool type must be one of {', '.join(config.TOOL_TYPES)}, got {tool.type!r}",
            tool_id=tool.id,
        )
    if tool.type == "mcp" and not tool.mcp_server:
        raise DefinitionError("MCP tools need an mcpServer", tool_id=tool.id)
    if not tool.entrypoint:
        raise DefinitionError("Entrypoint is required", tool_id=tool.id)


def write_definition(tool: ToolDefinition, tool_dir: Optional[Path] = None, overwrite: bool = False) -> Path:
    """
    Write `<tool_dir>/<id>.md` and return its path.

    Raises:
        DefinitionError: the definition is invalid
        FileExistsError: the file exists and overwrite is False
    """
    validate_definition(tool)

    tool_dir = Path(tool_dir) if tool_dir is not None else config.TOOL_DIR
    tool_dir.mkdir(parents=True, exist_ok=True)

    path = tool_dir / f"{tool.id}.md"
    if path.exists() and not overwrite:
        raise FileExistsError(f"Tool definition already exists: {path}")

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(tool.to_document(), f, sort_keys=False, allow_unicode=True)

    logger.info(f"Created tool definition: {path}")
    return path


def register_in_index(tool_id: str, file: str, registry_path: Optional[Path] = None) -> Path:
    """Add or replace the `{id, file}` entry for `tool_id` in the registry index."""
    registry_path = Path(registry_path) if registry_path is not None else config.REGISTRY_PATH

    index = {"version": REGISTRY_VERSION, "registry": []}
    if registry_path.exists():
        loaded = read_yaml(registry_path) or {}
        if not isinstance(loaded, dict):
            raise DefinitionError(f"Registry index is not a mapping: {registry_path}")
        index.update(loaded)
        index["registry"] = list(index.get("registry") or [])

    entries = [e for e in index["registry"] if not (isinstance(e, dict) and e.get("id") == tool_id)]
    entries.append({"id": tool_id, "file": str(file)})
    index["registry"] = entries

    registry_path.parent.mkdir(parents=True, exist_ok=True)
    with open(registry_path, "w", encoding="utf-8") as f:
        f.write("# BMAD Tool Registry\n")
        yaml.safe_dump(index, f, sort_keys=False, allow_unicode=True)

    logger.info(f"Registered {tool_id} in {registry_path}")
    return registry_path


def bootstrap_workspace(root: Optional[Path] = None) -> List[Path]:
    """
    Create the .bmad-core layout with an empty registry index and the
    hello-world sample definition. Existing files are left untouched.
    """
    core = (Path(root) if root is not None else config.BMAD_ROOT) / ".bmad-core"
    written: List[Path] = []

    registry_path = core / "data" / "tool-registry.yaml"
    if not registry_path.exists():
        registry_path.parent.mkdir(parents=True, exist_ok=True)
        with open(registry_path, "w", encoding="utf-8") as f:
            f.write("# BMAD Tool Registry\n")
            yaml.safe_dump({"version": REGISTRY_VERSION, "registry": []}, f, sort_keys=False)
        written.append(registry_path)

    sample_path = core / "tools" / f"{HELLO_WORLD.id}.md"
    if not sample_path.exists():
        written.append(write_definition(HELLO_WORLD, core / "tools"))

    for path in written:
        logger.info(f"Installed {path}")
    return written


def prompt_definition(ask: Callable[[str], str] = input) -> ToolDefinition:
    """Interactive create-tool wizard."""
    tool_id = ask("Tool ID: ").strip()
    name = ask("Name: ").strip()
    tool_type = ask("Type (local/remote/mcp): ").strip().lower()
    entrypoint = ask("Entrypoint (path/url/namespace): ").strip()
    mcp_server = ask("MCP server URL: ").strip() if tool_type == "mcp" else None
    description = ask("Short description: ").strip()
    usage = ask("Usage example: ").strip()
    example = ask("Example output snippet: ").strip()

    return ToolDefinition(
        id=tool_id,
        name=name,
        type=tool_type,
        entrypoint=entrypoint,
        mcp_server=mcp_server,
        documentation=ToolDocumentation(description=description, usage=usage, example=example),
    )
