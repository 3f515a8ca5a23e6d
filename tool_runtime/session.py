"""
MCP Session Manager

Owns one websocket connection per MCP server endpoint and multiplexes
tool calls over it.

Every invoke message carries a correlation id and registers a pending
future under that id; a background reader resolves futures as replies
arrive, so any number of calls may be in flight on one session.

Wire format (JSON):
    -> {"action": "auth", "token": ...}                      (once, on open)
    -> {"action": "invoke", "id", "namespace", "toolId", "payload"}
    <- {"id", "ok": true, "result": ...}
    <- {"id", "ok": false, "error": ...}

Replies without an `ok` field are taken as the bare result. A reply whose
`id` matches no pending call is correlated only if it carries the `ok`
envelope (and is then dropped as late); any other uncorrelated reply is
delivered when exactly one call is pending, `id` field included.
"""

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import websockets
from websockets.exceptions import WebSocketException

from . import config
from .base import ExecutionError, TransportError
from .catalog import read_yaml

logger = logging.getLogger(__name__)


class CredentialStore:
    """Server endpoint -> bearer token, read from the MCP auth file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else config.MCP_AUTH_PATH

    def token_for(self, server: str) -> Optional[str]:
        if not self.path.exists():
            return None
        data = read_yaml(self.path) or {}
        entry = data.get(server) if isinstance(data, dict) else None
        if isinstance(entry, dict) and entry.get("token"):
            return str(entry["token"])
        return None


class MCPSession:
    """One open connection to an MCP server plus its in-flight calls."""

    def __init__(
        self,
        server: str,
        connection: Any,
        token: Optional[str] = None,
        call_timeout: Optional[float] = None,
        on_close: Optional[Callable[["MCPSession"], None]] = None,
    ):
        self.server = server
        self.token = token
        self.call_timeout = call_timeout
        self.closed = False
        self._connection = connection
        self._on_close = on_close
        self._pending: Dict[str, Tuple[asyncio.Future, str]] = {}
        self._reader: Optional[asyncio.Task] = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def start(self) -> None:
        """Start the background reader."""
        self._reader = asyncio.create_task(self._listen())

    async def authenticate(self) -> None:
        """Send the auth message if a token is configured. No ack is awaited."""
        if self.token:
            await self._send({"action": "auth", "token": self.token})
            logger.info(f"Sent auth token to MCP server {self.server}")

    async def call(self, namespace: str, tool_id: str, payload: Dict[str, Any]) -> Any:
        """
        Invoke a tool on this session and wait for its correlated reply.

        Raises:
            TransportError: the socket failed, closed, or no reply arrived in time
            ExecutionError: the server replied with ok=false
        """
        if self.closed:
            raise TransportError(f"MCP session to {self.server} is closed", server=self.server, tool_id=tool_id)

        request_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = (future, tool_id)

        try:
            await self._send({
                "action": "invoke",
                "id": request_id,
                "namespace": namespace,
                "toolId": tool_id,
                "payload": payload,
            })
            return await asyncio.wait_for(future, self.call_timeout)
        except asyncio.TimeoutError:
            raise TransportError(
                f"No reply from {self.server} for {tool_id} within {self.call_timeout}s",
                server=self.server,
                tool_id=tool_id,
            ) from None
        finally:
            self._pending.pop(request_id, None)
            if future.done() and not future.cancelled():
                future.exception()

    async def close(self) -> None:
        """Fail pending calls and close the connection."""
        self._fail("MCP session closed")
        if self._reader is not None and self._reader is not asyncio.current_task():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        try:
            await self._connection.close()
        except (WebSocketException, OSError) as e:
            logger.debug(f"Error closing connection to {self.server}: {e}")

    # ============== Internals ==============

    async def _send(self, message: Dict[str, Any]) -> None:
        try:
            await self._connection.send(json.dumps(message))
        except (WebSocketException, OSError) as e:
            self._fail(f"Send to {self.server} failed: {e}")
            raise TransportError(
                f"Send to {self.server} failed: {e}",
                server=self.server,
                tool_id=message.get("toolId"),
            ) from e

    async def _listen(self) -> None:
        try:
            async for raw in self._connection:
                self._dispatch(raw)
            reason = f"Connection to {self.server} closed"
        except (WebSocketException, OSError) as e:
            reason = f"Connection to {self.server} failed: {e}"
        logger.warning(reason)
        self._fail(reason)

    def _dispatch(self, raw: Any) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding non-JSON message from {self.server}")
            return

        enveloped = isinstance(message, dict) and "ok" in message
        request_id = message.get("id") if isinstance(message, dict) else None

        if not (isinstance(request_id, str) and request_id in self._pending):
            if enveloped and request_id is not None:
                logger.debug(f"Late or unknown reply {request_id} from {self.server}")
                return
            if len(self._pending) != 1:
                logger.warning(
                    f"Dropping uncorrelated reply from {self.server} "
                    f"({len(self._pending)} calls pending)"
                )
                return
            # Legacy result; an `id` inside it belongs to the payload
            request_id = next(iter(self._pending))

        future, tool_id = self._pending[request_id]
        if future.done():
            return

        if enveloped:
            if message["ok"]:
                future.set_result(message.get("result"))
            else:
                future.set_exception(ExecutionError(
                    f"MCP tool {tool_id} failed: {message.get('error')}",
                    tool_id=tool_id,
                    details={"server": self.server, "error": message.get("error")},
                ))
        else:
            future.set_result(message)

    def _fail(self, reason: str) -> None:
        if self.closed:
            return
        self.closed = True

        for future, tool_id in self._pending.values():
            if not future.done():
                future.set_exception(TransportError(reason, server=self.server, tool_id=tool_id))
        self._pending.clear()

        if self._on_close is not None:
            self._on_close(self)


class MCPSessionManager:
    """
    Process-scoped table of MCP sessions, one per server endpoint.

    Session creation is serialized per server, so concurrent first calls
    to the same endpoint share a single connection.
    """

    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        connect: Optional[Callable[[str], Awaitable[Any]]] = None,
        open_timeout: Optional[float] = None,
        call_timeout: Optional[float] = None,
    ):
        self.credentials = credentials or CredentialStore()
        self.open_timeout = open_timeout if open_timeout is not None else config.MCP_OPEN_TIMEOUT_SECONDS
        self.call_timeout = call_timeout if call_timeout is not None else config.MCP_CALL_TIMEOUT_SECONDS
        self.connections_opened = 0
        self._connect = connect or websockets.connect
        self._sessions: Dict[str, MCPSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get_session(self, server: str) -> Optional[MCPSession]:
        return self._sessions.get(server)

    async def get_or_create_session(self, server: str) -> MCPSession:
        """Return the live session for `server`, opening one if needed."""
        session = self._sessions.get(server)
        if session is not None and not session.closed:
            return session

        lock = self._locks.setdefault(server, asyncio.Lock())
        async with lock:
            session = self._sessions.get(server)
            if session is not None and not session.closed:
                return session

            token = self.credentials.token_for(server)

            try:
                connection = await asyncio.wait_for(self._connect(server), self.open_timeout)
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                raise TransportError(f"Cannot connect to MCP server {server}: {e}", server=server) from e

            self.connections_opened += 1
            logger.info(f"Opened MCP session to {server}")

            session = MCPSession(
                server,
                connection,
                token=token,
                call_timeout=self.call_timeout,
                on_close=self._forget,
            )
            session.start()
            try:
                await session.authenticate()
            except TransportError:
                await session.close()
                raise

            self._sessions[server] = session
            return session

    async def call(self, server: str, namespace: str, tool_id: str, payload: Dict[str, Any]) -> Any:
        session = await self.get_or_create_session(server)
        return await session.call(namespace, tool_id, payload)

    async def close(self) -> None:
        """Close every session (process exit / server shutdown)."""
        for session in list(self._sessions.values()):
            await session.close()
        self._sessions.clear()

    def _forget(self, session: MCPSession) -> None:
        if self._sessions.get(session.server) is session:
            del self._sessions[session.server]
            logger.info(f"Dropped MCP session to {session.server}")
