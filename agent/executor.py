"""
Agent Executor Module

Public entry point for tool invocation:
resolve -> authorize -> dispatch -> return.

The executor bridges the Agent layer (who may call what) and the tool
runtime (how a call reaches its transport). Errors from any stage are
re-raised unchanged so callers can tell resolution, authorization and
execution failures apart.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type

from logs.invocation_logger import InvocationLogger, InvocationStatus
from tool_runtime import config
from tool_runtime.adapters import default_adapters
from tool_runtime.base import (
    AccessDeniedError,
    InvocationTimeoutError,
    ToolDefinition,
    ToolError,
    TransportError,
    UnsupportedTypeError,
)
from tool_runtime.catalog import Catalog

from .access import is_allowed
from .profile import AgentProfile

logger = logging.getLogger(__name__)


@dataclass
class InvocationPolicy:
    """
    Deadline and retry policy applied uniformly to every adapter.

    The default of one attempt means no retries; retries only ever wrap
    dispatch and only for the error kinds in `retry_on`.
    """
    max_attempts: int = 1
    backoff_seconds: float = 0.5
    backoff_factor: float = 2.0
    timeout_seconds: Optional[float] = None
    retry_on: Tuple[Type[ToolError], ...] = (TransportError, InvocationTimeoutError)

    @classmethod
    def from_config(cls) -> "InvocationPolicy":
        return cls(
            max_attempts=max(1, config.INVOKE_MAX_ATTEMPTS),
            backoff_seconds=config.INVOKE_BACKOFF_SECONDS,
            timeout_seconds=config.INVOKE_TIMEOUT_SECONDS or None,
        )


class Executor:
    """
    Executes tool calls on behalf of agents.

    The executor:
    1. Resolves the tool id through the Catalog
    2. Checks the agent's access
    3. Dispatches to the adapter registered for the tool's type
    4. Records the outcome in the invocation log
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        adapters: Optional[Dict[str, Any]] = None,
        policy: Optional[InvocationPolicy] = None,
        audit: Optional[InvocationLogger] = None,
    ):
        """
        Initialize the executor.

        Args:
            catalog: Tool definition lookup
            adapters: Adapter per tool type ("local", "remote", "mcp")
            policy: Deadline/retry policy
            audit: Invocation logger; None disables audit records
        """
        self.catalog = catalog or Catalog()
        self.adapters = adapters if adapters is not None else default_adapters()
        self.policy = policy or InvocationPolicy.from_config()
        self.audit = audit

    async def execute(self, agent: AgentProfile, tool_id: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Invoke `tool_id` as `agent`.

        Raises:
            NotFoundError: unknown tool id
            AccessDeniedError: agent may not call this tool
            UnsupportedTypeError: no adapter for the tool's type
            ExecutionError / TransportError / InvocationTimeoutError: dispatch failed
        """
        payload = payload if payload is not None else {}

        tool = self.catalog.resolve(tool_id)

        if not is_allowed(agent, tool):
            logger.warning(f"Access denied: {agent.id} -> {tool_id}")
            if self.audit:
                self.audit.log_access_denied(agent.id, tool_id)
            raise AccessDeniedError(agent.id, tool_id)

        start_time = time.time()
        attempts = 0

        try:
            adapter = self.adapters.get(tool.type)
            if adapter is None:
                raise UnsupportedTypeError(tool.type, tool_id=tool_id)

            delay = self.policy.backoff_seconds
            while True:
                attempts += 1
                try:
                    result = await self._attempt(adapter, tool, tool_id, payload)
                    break
                except self.policy.retry_on as e:
                    if attempts >= self.policy.max_attempts:
                        raise
                    logger.warning(
                        f"Attempt {attempts}/{self.policy.max_attempts} for {tool_id} failed "
                        f"({e.error_type}): retrying in {delay}s"
                    )
                    await asyncio.sleep(delay)
                    delay *= self.policy.backoff_factor

        except ToolError as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(f"Tool {tool_id} failed for {agent.id}: {e.message}")
            self._record(agent, tool, tool_id, InvocationStatus.FAILED, duration_ms, attempts, e)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"Tool {tool_id} ({tool.type}) completed for {agent.id} in {duration_ms:.0f}ms")
        self._record(agent, tool, tool_id, InvocationStatus.SUCCESS, duration_ms, attempts)
        return result

    async def _attempt(self, adapter: Any, tool: ToolDefinition, tool_id: str, payload: Dict[str, Any]) -> Any:
        call = adapter.invoke(tool, payload, requested_id=tool_id)
        if not self.policy.timeout_seconds:
            return await call
        try:
            return await asyncio.wait_for(call, self.policy.timeout_seconds)
        except asyncio.TimeoutError:
            raise InvocationTimeoutError(tool_id, self.policy.timeout_seconds) from None

    def _record(
        self,
        agent: AgentProfile,
        tool: ToolDefinition,
        tool_id: str,
        status: InvocationStatus,
        duration_ms: float,
        attempts: int,
        error: Optional[ToolError] = None,
    ) -> None:
        if not self.audit:
            return
        self.audit.log_invocation(
            agent_id=agent.id,
            tool_id=tool_id,
            status=status,
            latency_ms=duration_ms,
            tool_type=tool.type,
            attempts=attempts,
            error_type=error.error_type if error else None,
            error=error.message if error else None,
        )
