"""
Logs Layer

Structured JSONL audit logs for tool invocations.
"""

from .invocation_logger import InvocationLogger, InvocationStatus, get_logger

__all__ = ["InvocationLogger", "InvocationStatus", "get_logger"]
