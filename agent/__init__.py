"""
Agent Layer

Decides who may call what. Agents hold capability declarations; the
executor checks them and hands allowed calls to the tool runtime.
"""

from .access import is_allowed
from .executor import Executor, InvocationPolicy
from .profile import AgentProfile, BareId, Reference, load_agent_profile

__all__ = [
    "AgentProfile",
    "BareId",
    "Executor",
    "InvocationPolicy",
    "Reference",
    "is_allowed",
    "load_agent_profile",
]
