"""
Tool Runtime Configuration

All paths and timeouts are read from the environment (or a .env file).
Components accept explicit overrides so tests never depend on these values.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Workspace layout (mirrors the .bmad-core directory written by the installer)
BMAD_ROOT = Path(os.getenv("BMAD_ROOT", "."))
CORE_DIR = BMAD_ROOT / ".bmad-core"

TOOL_DIR = Path(os.getenv("BMAD_TOOL_DIR", str(CORE_DIR / "tools")))
REGISTRY_PATH = Path(os.getenv("BMAD_REGISTRY_PATH", str(CORE_DIR / "data" / "tool-registry.yaml")))
AGENT_DIR = Path(os.getenv("BMAD_AGENT_DIR", str(CORE_DIR / "agents")))
MCP_AUTH_PATH = Path(os.getenv("BMAD_MCP_AUTH_PATH", str(CORE_DIR / "config" / "mcp-auth.yaml")))
AGENT_TOKENS_PATH = Path(os.getenv("BMAD_AGENT_TOKENS_PATH", str(CORE_DIR / "config" / "agent-tokens.yaml")))
LOG_DIR = Path(os.getenv("BMAD_LOG_DIR", "logs/invocations"))

# The one principal allowed to invoke every tool
ORCHESTRATOR_AGENT_ID = "bmad-orchestrator"

TOOL_TYPES = ("local", "remote", "mcp")

# Transport timeouts (seconds)
REMOTE_TIMEOUT_SECONDS = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "30"))
MCP_OPEN_TIMEOUT_SECONDS = float(os.getenv("MCP_OPEN_TIMEOUT_SECONDS", "10"))
MCP_CALL_TIMEOUT_SECONDS = float(os.getenv("MCP_CALL_TIMEOUT_SECONDS", "60"))

# Orchestrator invocation policy
INVOKE_TIMEOUT_SECONDS = float(os.getenv("INVOKE_TIMEOUT_SECONDS", "120"))
INVOKE_MAX_ATTEMPTS = int(os.getenv("INVOKE_MAX_ATTEMPTS", "1"))
INVOKE_BACKOFF_SECONDS = float(os.getenv("INVOKE_BACKOFF_SECONDS", "0.5"))

# HTTP surface
TOOL_SERVER_HOST = os.getenv("TOOL_SERVER_HOST", "127.0.0.1")
TOOL_SERVER_PORT = int(os.getenv("TOOL_SERVER_PORT", "8000"))
TOOL_SERVER_CORS_ORIGINS = [o.strip() for o in os.getenv("TOOL_SERVER_CORS_ORIGINS", "").split(",") if o.strip()]
