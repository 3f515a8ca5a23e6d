"""
Agent Profile Module

Capability declaration of an invoking agent, read from the `tools`
section of its configuration:

    agent:
      id: dev
    tools:
      allowed: [hello-world, {id: web-search}]
      default: [hello-world]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, List, Optional, Tuple, Union

import yaml

from tool_runtime.config import ORCHESTRATOR_AGENT_ID


@dataclass(frozen=True)
class BareId:
    """An allowed entry given as a plain tool id."""
    id: str


@dataclass(frozen=True)
class Reference:
    """An allowed entry given as an object carrying the tool id."""
    id: str


AllowedEntry = Union[BareId, Reference]


def normalize_entry(raw: Any) -> AllowedEntry:
    """
    Convert a raw `allowed` item into an AllowedEntry.

    Strings become BareId, mappings with an `id` become Reference.
    Anything else is a configuration error.
    """
    if isinstance(raw, (BareId, Reference)):
        return raw
    if isinstance(raw, str) and raw:
        return BareId(raw)
    if isinstance(raw, dict) and raw.get("id"):
        return Reference(str(raw["id"]))
    raise ValueError(f"Invalid allowed tool entry: {raw!r}")


@dataclass(frozen=True)
class AgentProfile:
    """An agent and the tools it may invoke."""
    id: str
    allowed: Tuple[AllowedEntry, ...] = ()
    default: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Frozen: normalized values are set through object.__setattr__
        object.__setattr__(self, "allowed", tuple(normalize_entry(item) for item in self.allowed or ()))
        object.__setattr__(self, "default", tuple(str(item) for item in self.default or ()))

    @property
    def allowed_ids(self) -> FrozenSet[str]:
        return frozenset(entry.id for entry in self.allowed)

    @classmethod
    def create(cls, agent_id: str, allowed: Optional[List[Any]] = None, default: Optional[List[str]] = None) -> "AgentProfile":
        return cls(id=agent_id, allowed=tuple(allowed or ()), default=tuple(default or ()))

    @classmethod
    def from_config(cls, data: Any) -> "AgentProfile":
        """Build a profile from a parsed agent configuration mapping."""
        if not isinstance(data, dict):
            raise ValueError("Agent configuration must be a mapping")

        agent_section = data.get("agent") if isinstance(data.get("agent"), dict) else {}
        agent_id = agent_section.get("id") or data.get("id")
        if not agent_id:
            raise ValueError("Agent configuration has no id")

        tools = data.get("tools") or {}
        if not isinstance(tools, dict):
            raise ValueError(f"Agent {agent_id}: 'tools' must be a mapping")

        return cls.create(str(agent_id), tools.get("allowed"), tools.get("default"))


def load_agent_profile(agent_id: str, agent_dir: Path, implicit_orchestrator: bool = False) -> AgentProfile:
    """
    Load `<agent_dir>/<agent_id>.yaml` (or .yml / .md).

    With `implicit_orchestrator`, the orchestrator needs no declaration
    file; only local entry points pass it. Raises FileNotFoundError if no
    configuration exists for the agent.
    """
    agent_dir = Path(agent_dir)
    for suffix in (".yaml", ".yml", ".md"):
        path = agent_dir / f"{agent_id}{suffix}"
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                profile = AgentProfile.from_config(yaml.safe_load(f))
            if profile.id != agent_id:
                raise ValueError(f"{path} declares agent {profile.id}, expected {agent_id}")
            return profile

    if implicit_orchestrator and agent_id == ORCHESTRATOR_AGENT_ID:
        return AgentProfile.create(agent_id)
    raise FileNotFoundError(f"No configuration for agent {agent_id} in {agent_dir}")
