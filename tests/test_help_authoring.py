"""
Tests for help rendering, definition authoring and workspace bootstrap.
"""

import pytest
import yaml

from tool_runtime.authoring import (
    HELLO_WORLD,
    bootstrap_workspace,
    prompt_definition,
    register_in_index,
    write_definition,
)
from tool_runtime.base import DefinitionError, NotFoundError, ToolDefinition, ToolDocumentation
from tool_runtime.catalog import Catalog
from tool_runtime.help import format_tool_help, show_tool_help, tool_summary


class TestHelp:
    def test_renders_sections(self, tool_dir, hello_definition):
        text = show_tool_help("hello-world", Catalog(tool_dir=tool_dir, registry_path=tool_dir / "none.yaml"))

        assert text.splitlines()[0] == "=== Example Local Tool ==="
        assert "This example tool demonstrates" in text
        assert "\nUsage:\n@dev: *tool hello-world" in text
        assert "\nExample:\n" in text

    def test_fallback_description(self):
        text = format_tool_help(ToolDefinition(id="bare", type="local"))

        assert text == "=== bare ===\nNo description provided."

    def test_unknown_tool(self, tool_dir):
        with pytest.raises(NotFoundError):
            show_tool_help("nope", Catalog(tool_dir=tool_dir, registry_path=tool_dir / "none.yaml"))

    def test_summary(self):
        summary = tool_summary(HELLO_WORLD)

        assert summary["id"] == "hello-world"
        assert summary["name"] == "Example Local Tool"
        assert summary["usage"] == "@dev: *tool hello-world"


class TestAuthoring:
    def test_written_definition_resolves(self, tool_dir, registry_path):
        definition = ToolDefinition(
            id="summarize",
            name="Summarize",
            type="remote",
            entrypoint="https://tools.example.test/summarize",
            documentation=ToolDocumentation(description="Summarize text", usage="@dev: *tool summarize"),
        )

        path = write_definition(definition, tool_dir)
        resolved = Catalog(tool_dir=tool_dir, registry_path=registry_path).resolve("summarize")

        assert path == tool_dir / "summarize.md"
        assert resolved.entrypoint == "https://tools.example.test/summarize"
        assert resolved.documentation.usage == "@dev: *tool summarize"

    def test_refuses_overwrite(self, tool_dir, hello_definition):
        with pytest.raises(FileExistsError):
            write_definition(HELLO_WORLD, tool_dir)

        write_definition(HELLO_WORLD, tool_dir, overwrite=True)

    @pytest.mark.parametrize("definition", [
        ToolDefinition(id="", type="local", entrypoint="x"),
        ToolDefinition(id="t", type="grpc", entrypoint="x"),
        ToolDefinition(id="t", type="mcp", entrypoint="demo"),
        ToolDefinition(id="t", type="remote"),
    ])
    def test_rejects_invalid(self, tool_dir, definition):
        with pytest.raises(DefinitionError):
            write_definition(definition, tool_dir)

    def test_register_in_index(self, workspace, registry_path):
        register_in_index("lint", "extra/lint.md", registry_path)
        register_in_index("lint", "extra/lint-v2.md", registry_path)
        register_in_index("fmt", "extra/fmt.md", registry_path)

        with open(registry_path, encoding="utf-8") as f:
            index = yaml.safe_load(f)

        assert index["version"] == "1.0"
        assert index["registry"] == [
            {"id": "lint", "file": "extra/lint-v2.md"},
            {"id": "fmt", "file": "extra/fmt.md"},
        ]

    def test_prompt_definition(self):
        answers = iter([
            "echo", "Echo", "mcp", "demo", "ws://localhost:9000",
            "Echo the payload", "@dev: *tool echo", '{"received": {}}',
        ])

        definition = prompt_definition(ask=lambda prompt: next(answers))

        assert definition.id == "echo"
        assert definition.type == "mcp"
        assert definition.mcp_server == "ws://localhost:9000"
        assert definition.documentation.example == '{"received": {}}'


class TestBootstrap:
    def test_installs_sample_and_registry(self, tmp_path):
        written = bootstrap_workspace(tmp_path)

        core = tmp_path / ".bmad-core"
        assert set(written) == {core / "data" / "tool-registry.yaml", core / "tools" / "hello-world.md"}

        tool = Catalog(tool_dir=core / "tools", registry_path=core / "data" / "tool-registry.yaml").resolve("hello-world")
        assert tool.type == "local"
        assert tool.icon == "💬"

    def test_is_idempotent(self, tmp_path):
        bootstrap_workspace(tmp_path)

        assert bootstrap_workspace(tmp_path) == []
