"""
Invocation Logger Module

Audit trail for tool invocations. Every call through the executor is
recorded with:
A. Invocation logs (successes and failures, with latency)
B. Access logs (denied calls, with agent and tool ids)
"""

import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# ==============================================================================
# Log Types and Enums
# ==============================================================================

class InvocationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    DENIED = "denied"


class LogCategory(str, Enum):
    INVOCATION = "invocation"
    ACCESS = "access"


# ==============================================================================
# Data Classes for Structured Logs
# ==============================================================================

@dataclass
class InvocationLog:
    """One tool invocation."""
    log_id: str
    timestamp: str
    agent_id: str
    tool_id: str
    tool_type: Optional[str]
    status: str
    latency_ms: float
    attempts: int = 1
    error_type: Optional[str] = None
    error: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AccessLog:
    """A call rejected by access control."""
    log_id: str
    timestamp: str
    agent_id: str
    tool_id: str
    reason: str
    session_id: Optional[str] = None


# ==============================================================================
# Main Logger Class
# ==============================================================================

class InvocationLogger:
    """
    Audit logger for the tool runtime.

    Logs are saved as JSONL (JSON Lines) under the configured log directory,
    one file per category.
    """

    def __init__(self, log_dir: str = "logs/invocations"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.session_id = f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"

        self.log_files = {
            LogCategory.INVOCATION: self.log_dir / "invocations.jsonl",
            LogCategory.ACCESS: self.log_dir / "access.jsonl",
        }

        # Thread lock for file writing
        self._write_lock = threading.Lock()

    def _generate_id(self, prefix: str = "log") -> str:
        return f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"

    def _get_timestamp(self) -> str:
        return datetime.now().isoformat()

    def _write_log(self, category: LogCategory, log_data: Dict[str, Any]) -> None:
        """Append one entry to the category's JSONL file."""
        with self._write_lock:
            try:
                with open(self.log_files[category], "a", encoding="utf-8") as f:
                    json.dump(log_data, f, ensure_ascii=False, default=str)
                    f.write("\n")
            except OSError as e:
                logger.warning(f"[InvocationLogger] Failed to write log: {e}")

    # ==========================================================================
    # Public Logging Methods
    # ==========================================================================

    def log_invocation(
        self,
        agent_id: str,
        tool_id: str,
        status: InvocationStatus,
        latency_ms: float,
        tool_type: Optional[str] = None,
        attempts: int = 1,
        error_type: Optional[str] = None,
        error: Optional[str] = None,
        metadata: Optional[Dict] = None
    ) -> str:
        """
        Log a tool invocation.

        Returns:
            log_id for reference
        """
        log = InvocationLog(
            log_id=self._generate_id("inv"),
            timestamp=self._get_timestamp(),
            agent_id=agent_id,
            tool_id=tool_id,
            tool_type=tool_type,
            status=status.value,
            latency_ms=round(latency_ms, 2),
            attempts=attempts,
            error_type=error_type,
            error=error,
            session_id=self.session_id,
            metadata=metadata or {}
        )

        self._write_log(LogCategory.INVOCATION, asdict(log))
        return log.log_id

    def log_access_denied(self, agent_id: str, tool_id: str, reason: str = "not in allowed set") -> str:
        log = AccessLog(
            log_id=self._generate_id("acc"),
            timestamp=self._get_timestamp(),
            agent_id=agent_id,
            tool_id=tool_id,
            reason=reason,
            session_id=self.session_id,
        )

        self._write_log(LogCategory.ACCESS, asdict(log))
        return log.log_id

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    def get_session_stats(self) -> Dict[str, Any]:
        """Count this session's entries per category and status."""
        stats = {
            "session_id": self.session_id,
            "log_counts": {},
            "status_counts": {},
        }

        for category in LogCategory:
            entries = [
                log for log in self.read_logs(category, limit=None)
                if log.get("session_id") == self.session_id
            ]
            stats["log_counts"][category.value] = len(entries)
            if category == LogCategory.INVOCATION:
                for log in entries:
                    status = log.get("status", "unknown")
                    stats["status_counts"][status] = stats["status_counts"].get(status, 0) + 1

        return stats

    def read_logs(
        self,
        category: LogCategory,
        limit: Optional[int] = 100,
        tool_id: Optional[str] = None,
        agent_id: Optional[str] = None
    ) -> List[Dict]:
        """Read logs from a category, optionally filtered by tool or agent."""
        log_file = self.log_files.get(category)
        if not log_file or not log_file.exists():
            return []

        logs = []
        with open(log_file, "r", encoding="utf-8") as f:
            for line in f:
                try:
                    log = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if tool_id and log.get("tool_id") != tool_id:
                    continue
                if agent_id and log.get("agent_id") != agent_id:
                    continue
                logs.append(log)
                if limit is not None and len(logs) >= limit:
                    break

        return logs


# ==============================================================================
# Global Logger Access
# ==============================================================================

_logger_instance: Optional[InvocationLogger] = None


def get_logger(log_dir: Optional[str] = None) -> InvocationLogger:
    """Get or create the global invocation logger instance."""
    global _logger_instance
    if _logger_instance is None:
        if log_dir is None:
            from tool_runtime.config import LOG_DIR
            log_dir = str(LOG_DIR)
        _logger_instance = InvocationLogger(log_dir)
    return _logger_instance
