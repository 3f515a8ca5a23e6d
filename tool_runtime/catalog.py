"""
Tool Catalog

Resolves tool ids to definitions from two sources:
1. the tool definitions directory (file name starts with the id)
2. the registry index, as a fallback ({id, file} pairs)

Nothing is cached: every lookup re-reads the backing files so a tool
authored a moment ago is visible to the next call.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from . import config
from .base import DefinitionError, NotFoundError, ToolDefinition

logger = logging.getLogger(__name__)

DEFINITION_SUFFIXES = (".md", ".yaml", ".yml")


def read_yaml(path: Path) -> Any:
    """Parse a YAML document, wrapping syntax errors as DefinitionError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DefinitionError(f"Invalid YAML in {path}: {e}") from e


class Catalog:
    """Read-only lookup of tool definitions."""

    def __init__(
        self,
        tool_dir: Optional[Path] = None,
        registry_path: Optional[Path] = None,
        base_dir: Optional[Path] = None,
    ):
        """
        Args:
            tool_dir: Directory of individual definition files
            registry_path: Registry index file
            base_dir: Directory relative registry `file` entries resolve against
        """
        self.tool_dir = Path(tool_dir) if tool_dir is not None else config.TOOL_DIR
        self.registry_path = Path(registry_path) if registry_path is not None else config.REGISTRY_PATH
        self.base_dir = Path(base_dir) if base_dir is not None else config.BMAD_ROOT

    def resolve(self, tool_id: str) -> ToolDefinition:
        """
        Resolve a tool id to its definition.

        Raises:
            NotFoundError: neither the directory nor the registry has it
            DefinitionError: the matching file is not a valid definition
        """
        if not tool_id:
            raise NotFoundError("Tool not found: empty tool id", tool_id=tool_id)

        path = self._find_in_directory(tool_id)
        if path is not None:
            logger.debug(f"Resolved {tool_id} from directory: {path}")
            return self._load(path)

        path = self._find_in_registry(tool_id)
        if path is not None:
            logger.debug(f"Resolved {tool_id} from registry: {path}")
            return self._load(path)

        raise NotFoundError(f"Tool not found: {tool_id}", tool_id=tool_id)

    def list_tools(self) -> List[ToolDefinition]:
        """
        All parseable definitions from both sources, directory first.
        Files that fail to parse are skipped with a warning.
        """
        found: Dict[str, ToolDefinition] = {}

        candidates = list(self._directory_files())
        candidates.extend(path for _, path in self.registry_entries())

        for path in candidates:
            if not path.exists():
                continue
            try:
                definition = self._load(path)
            except DefinitionError as e:
                logger.warning(f"Skipping invalid definition {path}: {e.message}")
                continue
            found.setdefault(definition.id, definition)

        return list(found.values())

    def registry_entries(self) -> List[tuple]:
        """(id, resolved path) pairs from the registry index, in order."""
        if not self.registry_path.exists():
            return []

        index = read_yaml(self.registry_path) or {}
        if not isinstance(index, dict):
            raise DefinitionError(f"Registry index is not a mapping: {self.registry_path}")

        entries = []
        for entry in index.get("registry") or []:
            if not isinstance(entry, dict) or not entry.get("id") or not entry.get("file"):
                continue
            entries.append((str(entry["id"]), self._resolve_file(entry["file"])))
        return entries

    # ============== Internals ==============

    def _directory_files(self) -> List[Path]:
        if not self.tool_dir.is_dir():
            return []
        return sorted(
            p for p in self.tool_dir.iterdir()
            if p.is_file() and p.suffix in DEFINITION_SUFFIXES
        )

    def _find_in_directory(self, tool_id: str) -> Optional[Path]:
        matches = [p for p in self._directory_files() if p.name.startswith(tool_id)]
        if not matches:
            return None
        # An exact stem beats a longer name sharing the prefix
        for path in matches:
            if path.stem == tool_id:
                return path
        return matches[0]

    def _find_in_registry(self, tool_id: str) -> Optional[Path]:
        for entry_id, path in self.registry_entries():
            if entry_id == tool_id and path.exists():
                return path
        return None

    def _resolve_file(self, file: str) -> Path:
        path = Path(file)
        if not path.is_absolute():
            path = self.base_dir / path
        return path

    def _load(self, path: Path) -> ToolDefinition:
        return ToolDefinition.from_document(read_yaml(path), source=path)
