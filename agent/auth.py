"""
Agent Authentication

Maps bearer tokens presented to the HTTP surface to agent ids. Tokens live
in a YAML file shaped like the MCP credential store:

    dev:
      token: <secret>
    bmad-orchestrator:
      token: <secret>
"""

import hmac
import logging
from pathlib import Path
from typing import Optional

from tool_runtime import config
from tool_runtime.catalog import read_yaml

logger = logging.getLogger(__name__)


class AgentTokenStore:
    """Agent id -> bearer token, read on every lookup."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else config.AGENT_TOKENS_PATH

    def agent_for(self, token: Optional[str]) -> Optional[str]:
        """Return the agent id owning `token`, or None if no agent does."""
        if not token or not self.path.exists():
            return None

        data = read_yaml(self.path) or {}
        if not isinstance(data, dict):
            logger.warning(f"Agent token file is not a mapping: {self.path}")
            return None

        for agent_id, entry in data.items():
            expected = entry.get("token") if isinstance(entry, dict) else None
            if expected and hmac.compare_digest(str(expected).encode(), token.encode()):
                return str(agent_id)
        return None
