"""
Tests for tool definition resolution.

1. Directory lookup (exact and prefix match)
2. Registry index fallback
3. Errors for unknown ids and malformed files
"""

import pytest

from tool_runtime.base import DefinitionError, NotFoundError
from tool_runtime.catalog import Catalog

from .conftest import write_yaml


@pytest.fixture
def catalog(tool_dir, registry_path, workspace) -> Catalog:
    return Catalog(tool_dir=tool_dir, registry_path=registry_path, base_dir=workspace)


class TestDirectoryLookup:
    def test_resolves_exact_file(self, catalog, hello_definition):
        tool = catalog.resolve("hello-world")

        assert tool.id == "hello-world"
        assert tool.type == "local"
        assert tool.display_name == "Example Local Tool"
        assert tool.documentation.usage == "@dev: *tool hello-world"
        assert tool.source == hello_definition

    def test_prefix_match(self, catalog, tool_dir):
        write_yaml(tool_dir / "summarize-v2.yaml", {"tool": {"id": "summarize", "type": "local"}})

        assert catalog.resolve("summarize").id == "summarize"

    def test_exact_stem_wins_over_longer_prefix(self, catalog, tool_dir):
        write_yaml(tool_dir / "fetch-all.md", {"tool": {"id": "fetch-all", "type": "local"}})
        write_yaml(tool_dir / "fetch.md", {"tool": {"id": "fetch", "type": "local"}})

        assert catalog.resolve("fetch").id == "fetch"

    def test_resolve_is_idempotent(self, catalog, hello_definition):
        assert catalog.resolve("hello-world") == catalog.resolve("hello-world")

    def test_mcp_server_field(self, catalog, tool_dir):
        write_yaml(tool_dir / "echo.md", {
            "tool": {"id": "echo", "type": "mcp", "entrypoint": "demo", "mcpServer": "ws://localhost:9000"},
        })

        tool = catalog.resolve("echo")
        assert tool.mcp_server == "ws://localhost:9000"
        assert tool.entrypoint == "demo"


class TestRegistryFallback:
    def test_resolves_from_registry(self, catalog, workspace, registry_path):
        write_yaml(workspace / "extra" / "lint.md", {"tool": {"id": "lint", "type": "remote", "entrypoint": "http://x"}})
        write_yaml(registry_path, {"version": "1.0", "registry": [{"id": "lint", "file": "extra/lint.md"}]})

        tool = catalog.resolve("lint")
        assert tool.id == "lint"
        assert tool.type == "remote"

    def test_registry_entry_with_missing_file(self, catalog, registry_path):
        write_yaml(registry_path, {"version": "1.0", "registry": [{"id": "ghost", "file": "nowhere.md"}]})

        with pytest.raises(NotFoundError):
            catalog.resolve("ghost")

    def test_list_tools_merges_sources(self, catalog, hello_definition, workspace, registry_path):
        write_yaml(workspace / "extra" / "lint.md", {"tool": {"id": "lint", "type": "local"}})
        write_yaml(registry_path, {"registry": [
            {"id": "lint", "file": "extra/lint.md"},
            {"id": "hello-world", "file": str(hello_definition)},
        ]})

        ids = [tool.id for tool in catalog.list_tools()]
        assert ids == ["hello-world", "lint"]


class TestErrors:
    def test_unknown_id(self, catalog, hello_definition):
        with pytest.raises(NotFoundError) as exc_info:
            catalog.resolve("does-not-exist")

        assert exc_info.value.message == "Tool not found: does-not-exist"
        assert exc_info.value.error_type == "not_found"

    def test_empty_id(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.resolve("")

    def test_invalid_yaml(self, catalog, tool_dir):
        (tool_dir / "broken.md").write_text("tool: [unclosed\n", encoding="utf-8")

        with pytest.raises(DefinitionError):
            catalog.resolve("broken")

    def test_missing_tool_section(self, catalog, tool_dir):
        write_yaml(tool_dir / "bare.yaml", {"name": "no tool section"})

        with pytest.raises(DefinitionError):
            catalog.resolve("bare")

    def test_list_tools_skips_invalid(self, catalog, tool_dir, hello_definition):
        (tool_dir / "broken.md").write_text("tool: [unclosed\n", encoding="utf-8")

        assert [tool.id for tool in catalog.list_tools()] == ["hello-world"]
