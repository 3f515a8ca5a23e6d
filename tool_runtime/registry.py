"""
Local Tool Registry

Single place where in-process tools are collected. Tool modules are
imported once from tool_runtime/tools/; @tool functions are picked up on
lookup, so decorating after discovery still registers them. Tools can also
be registered explicitly.
Definitions of type `local` reach their code only through this registry,
never by importing a path at call time.
"""

import importlib
import inspect
import logging
import pkgutil
from pathlib import Path
from typing import Dict, List, Optional

from .base import LocalTool, get_function_tools

logger = logging.getLogger(__name__)

# Global registry
_tool_registry: Dict[str, LocalTool] = {}
_initialized: bool = False


def _discover_tools() -> None:
    """Import every module in tool_runtime/tools/ and register its tools."""
    global _initialized

    if _initialized:
        return

    tools_package = f"{__package__}.tools"
    tools_path = Path(__file__).parent / "tools"

    if not tools_path.exists():
        logger.warning(f"Tools directory not found: {tools_path}")
        _initialized = True
        return

    for _, module_name, _ in pkgutil.iter_modules([str(tools_path)]):
        if module_name.startswith("_"):
            continue

        try:
            full_module_name = f"{tools_package}.{module_name}"
            module = importlib.import_module(full_module_name)
            logger.debug(f"Loaded tool module: {full_module_name}")

            # Find all LocalTool subclasses defined in the module
            for name, obj in inspect.getmembers(module):
                if (
                    inspect.isclass(obj)
                    and issubclass(obj, LocalTool)
                    and obj.__module__ == module.__name__
                    and not inspect.isabstract(obj)
                ):
                    try:
                        instance = obj()
                        _tool_registry.setdefault(instance.name, instance)
                        logger.info(f"Registered local tool: {instance.name} ({module_name})")
                    except Exception as e:
                        logger.error(f"Failed to instantiate tool {name}: {e}")

        except Exception as e:
            logger.error(f"Failed to load tool module {module_name}: {e}")

    _initialized = True
    _collect_function_tools()
    logger.info(f"Local tool discovery complete. Total tools: {len(_tool_registry)}")


def _collect_function_tools() -> None:
    """Register @tool functions not yet in the registry, including ones decorated after discovery."""
    for name, local_tool in get_function_tools().items():
        if name not in _tool_registry:
            _tool_registry[name] = local_tool
            logger.info(f"Registered function tool: {name}")


def register_tool(local_tool: LocalTool) -> None:
    """Register a tool instance under its name, replacing any previous one."""
    _tool_registry[local_tool.name] = local_tool
    logger.info(f"Registered local tool: {local_tool.name}")


def get_local_tool(name: str) -> Optional[LocalTool]:
    """
    Get a registered tool by name.
    Returns None if no tool is registered under that name.
    """
    _discover_tools()
    if name not in _tool_registry:
        _collect_function_tools()
    return _tool_registry.get(name)


def list_local_tools() -> List[str]:
    """Get list of all registered local tool names."""
    _discover_tools()
    _collect_function_tools()
    return list(_tool_registry.keys())


def reset_registry() -> None:
    """Reset the registry (mainly for testing)."""
    global _tool_registry, _initialized
    _tool_registry = {}
    _initialized = False
