"""
Access Control

The only permission gate between an agent and a tool. Transports do no
further checking.
"""

from tool_runtime.base import ToolDefinition
from tool_runtime.config import ORCHESTRATOR_AGENT_ID

from .profile import AgentProfile


def is_allowed(agent: AgentProfile, tool: ToolDefinition) -> bool:
    """
    Decide whether `agent` may invoke `tool`.

    The orchestrator agent is a named exception with access to every tool;
    all other agents need the tool id in their allowed set.
    """
    if agent.id == ORCHESTRATOR_AGENT_ID:
        return True
    return tool.id in agent.allowed_ids
