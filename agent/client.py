#!/usr/bin/env python3
"""
Agent Client - Main Entrypoint

Command line front end for the tool runtime:

    bmad-tools run <tool> --agent <id> [--payload '{"k": "v"}']
    bmad-tools help <tool>
    bmad-tools list
    bmad-tools create [--id ... --type ... --entrypoint ...]
    bmad-tools init
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from logs.invocation_logger import InvocationLogger
from tool_runtime import config
from tool_runtime.authoring import bootstrap_workspace, prompt_definition, register_in_index, write_definition
from tool_runtime.base import ToolDefinition, ToolDocumentation, ToolError
from tool_runtime.catalog import Catalog
from tool_runtime.help import show_tool_help

from .executor import Executor
from .profile import AgentProfile, load_agent_profile

logger = logging.getLogger(__name__)


async def run_tool(executor: Executor, agent: AgentProfile, tool_id: str, payload: Dict[str, Any]) -> Any:
    """Execute one call and close any MCP sessions it opened."""
    try:
        return await executor.execute(agent, tool_id, payload)
    finally:
        sessions = getattr(executor.adapters.get("mcp"), "sessions", None)
        if sessions is not None:
            await sessions.close()


# ============== Commands ==============


def cmd_run(args: argparse.Namespace) -> int:
    try:
        payload = json.loads(args.payload) if args.payload else {}
    except json.JSONDecodeError as e:
        print(f"Error: --payload is not valid JSON: {e}", file=sys.stderr)
        return 2
    if not isinstance(payload, dict):
        print("Error: --payload must be a JSON object", file=sys.stderr)
        return 2

    try:
        agent = load_agent_profile(args.agent, Path(args.agent_dir), implicit_orchestrator=True)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    executor = Executor(catalog=Catalog(tool_dir=args.tool_dir), audit=InvocationLogger(str(args.log_dir)))
    result = asyncio.run(run_tool(executor, agent, args.tool, payload))
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0


def cmd_help(args: argparse.Namespace) -> int:
    print(show_tool_help(args.tool, Catalog(tool_dir=args.tool_dir)))
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    tools = Catalog(tool_dir=args.tool_dir).list_tools()
    if not tools:
        print("No tools found.")
        return 0

    print("Available tools:")
    for tool in tools:
        icon = f"{tool.icon} " if tool.icon else ""
        print(f"  - {icon}{tool.id} [{tool.type}]: {tool.display_name}")
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    if args.id:
        tool = ToolDefinition(
            id=args.id,
            name=args.name or args.id,
            type=args.type,
            entrypoint=args.entrypoint or "",
            mcp_server=args.mcp_server,
            description=args.description or "",
            documentation=ToolDocumentation(
                description=args.description or "",
                usage=args.usage or f"@dev: *tool {args.id}",
                example=args.example or "",
            ),
        )
    else:
        tool = prompt_definition()

    try:
        path = write_definition(tool, args.tool_dir, overwrite=args.force)
    except FileExistsError as e:
        print(f"Error: {e} (use --force to overwrite)", file=sys.stderr)
        return 1

    if args.register:
        register_in_index(tool.id, str(path))
    print(f"Tool definition created: {path}")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    written = bootstrap_workspace(Path(args.root) if args.root else None)
    if not written:
        print("Workspace already initialized.")
    for path in written:
        print(f"Created {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bmad-tools", description="Run and manage BMAD tools")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--tool-dir", type=Path, default=None,
                        help=f"Tool definitions directory (default: {config.TOOL_DIR})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Invoke a tool as an agent")
    run.add_argument("tool", help="Tool id")
    run.add_argument("--agent", required=True, help="Calling agent id")
    run.add_argument("--agent-dir", default=str(config.AGENT_DIR),
                     help="Directory with agent capability declarations")
    run.add_argument("--payload", default=None, help="JSON object passed to the tool")
    run.add_argument("--log-dir", default=str(config.LOG_DIR), help="Invocation audit log directory")
    run.set_defaults(func=cmd_run)

    help_cmd = subparsers.add_parser("help", help="Show a tool's documentation")
    help_cmd.add_argument("tool", help="Tool id")
    help_cmd.set_defaults(func=cmd_help)

    list_cmd = subparsers.add_parser("list", help="List known tools")
    list_cmd.set_defaults(func=cmd_list)

    create = subparsers.add_parser("create", help="Author a new tool definition (prompts when --id is omitted)")
    create.add_argument("--id", default=None)
    create.add_argument("--name", default=None)
    create.add_argument("--type", default="local", choices=config.TOOL_TYPES)
    create.add_argument("--entrypoint", default=None)
    create.add_argument("--mcp-server", default=None)
    create.add_argument("--description", default=None)
    create.add_argument("--usage", default=None)
    create.add_argument("--example", default=None)
    create.add_argument("--register", action="store_true", help="Also add the tool to the registry index")
    create.add_argument("--force", action="store_true", help="Overwrite an existing definition")
    create.set_defaults(func=cmd_create)

    init = subparsers.add_parser("init", help="Install the .bmad-core layout and the hello-world sample")
    init.add_argument("--root", default=None, help=f"Workspace root (default: {config.BMAD_ROOT})")
    init.set_defaults(func=cmd_init)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        return args.func(args)
    except ToolError as e:
        print(f"Error [{e.error_type}]: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nAborted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
