"""
Tests for agent profiles and the access control decision.
"""

import pytest

from agent.access import is_allowed
from agent.profile import AgentProfile, BareId, Reference, load_agent_profile, normalize_entry
from tool_runtime.base import ToolDefinition
from tool_runtime.config import ORCHESTRATOR_AGENT_ID

from .conftest import write_yaml

HELLO = ToolDefinition(id="hello-world", type="local", entrypoint="hello-world")
SEARCH = ToolDefinition(id="web-search", type="remote", entrypoint="http://search.test")


class TestNormalizeEntry:
    def test_string_becomes_bare_id(self):
        assert normalize_entry("hello-world") == BareId("hello-world")

    def test_mapping_becomes_reference(self):
        assert normalize_entry({"id": "web-search", "note": "ignored"}) == Reference("web-search")

    @pytest.mark.parametrize("raw", [None, 42, "", {"name": "no-id"}, ["hello-world"]])
    def test_invalid_entries(self, raw):
        with pytest.raises(ValueError):
            normalize_entry(raw)


class TestAgentProfile:
    def test_direct_construction_normalizes_entries(self):
        agent = AgentProfile("dev", allowed=("hello-world", {"id": "web-search"}), default=["hello-world"])

        assert agent.allowed == (BareId("hello-world"), Reference("web-search"))
        assert agent.allowed_ids == frozenset({"hello-world", "web-search"})
        assert agent.default == ("hello-world",)
        assert is_allowed(agent, SEARCH)

    def test_direct_construction_rejects_bad_entry(self):
        with pytest.raises(ValueError):
            AgentProfile("dev", allowed=({"name": "no-id"},))


class TestIsAllowed:
    def test_orchestrator_always_allowed(self):
        orchestrator = AgentProfile.create(ORCHESTRATOR_AGENT_ID)

        assert is_allowed(orchestrator, HELLO)
        assert is_allowed(orchestrator, SEARCH)

    def test_bare_and_reference_entries_are_equivalent(self):
        agent = AgentProfile.create("dev", allowed=["hello-world", {"id": "web-search"}])

        assert is_allowed(agent, HELLO)
        assert is_allowed(agent, SEARCH)

    def test_unlisted_tool_denied(self):
        agent = AgentProfile.create("dev", allowed=["hello-world"])

        assert not is_allowed(agent, SEARCH)

    def test_empty_allowed_denies_everything(self):
        assert not is_allowed(AgentProfile.create("qa"), HELLO)

    def test_default_list_grants_nothing(self):
        agent = AgentProfile.create("dev", allowed=[], default=["hello-world"])

        assert not is_allowed(agent, HELLO)


class TestLoadAgentProfile:
    def test_loads_tools_section(self, agent_dir):
        write_yaml(agent_dir / "dev.yaml", {
            "agent": {"id": "dev", "name": "Developer"},
            "tools": {"allowed": ["hello-world", {"id": "web-search"}], "default": ["hello-world"]},
        })

        profile = load_agent_profile("dev", agent_dir)

        assert profile.id == "dev"
        assert profile.allowed == (BareId("hello-world"), Reference("web-search"))
        assert profile.default == ("hello-world",)

    def test_missing_tools_section(self, agent_dir):
        write_yaml(agent_dir / "analyst.md", {"agent": {"id": "analyst"}})

        assert load_agent_profile("analyst", agent_dir).allowed_ids == frozenset()

    def test_unknown_agent(self, agent_dir):
        with pytest.raises(FileNotFoundError):
            load_agent_profile("nobody", agent_dir)

    def test_id_mismatch(self, agent_dir):
        write_yaml(agent_dir / "dev.yaml", {"agent": {"id": "someone-else"}})

        with pytest.raises(ValueError):
            load_agent_profile("dev", agent_dir)

    def test_orchestrator_needs_declaration_by_default(self, agent_dir):
        with pytest.raises(FileNotFoundError):
            load_agent_profile(ORCHESTRATOR_AGENT_ID, agent_dir)

    def test_implicit_orchestrator(self, agent_dir):
        profile = load_agent_profile(ORCHESTRATOR_AGENT_ID, agent_dir, implicit_orchestrator=True)

        assert profile == AgentProfile.create(ORCHESTRATOR_AGENT_ID)
