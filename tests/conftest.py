"""Shared fixtures: a throwaway .bmad-core workspace, a clean plugin registry
and a websocket MCP server stub."""

import asyncio
import json
from pathlib import Path

import pytest
import websockets
import yaml
from websockets.exceptions import ConnectionClosed

from tool_runtime.registry import reset_registry


def write_yaml(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path


@pytest.fixture(autouse=True)
def clean_registry():
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Root directory holding .bmad-core/{tools,data,agents}."""
    core = tmp_path / ".bmad-core"
    (core / "tools").mkdir(parents=True)
    (core / "agents").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def tool_dir(workspace) -> Path:
    return workspace / ".bmad-core" / "tools"


@pytest.fixture
def agent_dir(workspace) -> Path:
    return workspace / ".bmad-core" / "agents"


@pytest.fixture
def registry_path(workspace) -> Path:
    return workspace / ".bmad-core" / "data" / "tool-registry.yaml"


@pytest.fixture
def hello_definition(tool_dir) -> Path:
    return write_yaml(tool_dir / "hello-world.md", {
        "tool": {
            "id": "hello-world",
            "name": "Hello World",
            "title": "Example Local Tool",
            "icon": "💬",
            "type": "local",
            "entrypoint": "./bmad-core/runtime/tools/hello-world.js",
            "description": "Demonstration tool that prints a message.",
            "version": "1.0.0",
        },
        "documentation": {
            "description": "This example tool demonstrates how to define and run a BMAD local tool.",
            "usage": "@dev: *tool hello-world",
            "example": 'Output: "Hello from BMAD Tools!"',
        },
    })


@pytest.fixture
def remote_definition(tool_dir) -> Path:
    return write_yaml(tool_dir / "weather.yaml", {
        "tool": {
            "id": "weather",
            "name": "Weather",
            "type": "remote",
            "entrypoint": "https://tools.example.test/weather",
        },
    })


class StubServer:
    """
    Websocket MCP server stub that records every connection and message.

    Tools:
    1. echo - replies {"received": payload}
    2. slow - replies after `delay` seconds (used to reorder replies)
    3. fail - replies ok=false
    4. hangup - closes the connection without replying
    5. legacy - replies with a bare result that has its own `id` field
    6. stray - sends an enveloped reply for an unknown id, then the real one
    """

    def __init__(self):
        self.connections = 0
        self.messages = []
        self.url = None

    async def handler(self, websocket):
        self.connections += 1
        async for raw in websocket:
            message = json.loads(raw)
            self.messages.append(message)
            if message.get("action") != "invoke":
                continue

            tool_id = message["toolId"]
            payload = message["payload"]
            if tool_id == "hangup":
                await websocket.close()
                return
            if tool_id == "slow":
                asyncio.create_task(self._reply_later(websocket, message["id"], payload))
                continue
            if tool_id == "fail":
                await websocket.send(json.dumps({"id": message["id"], "ok": False, "error": "bad payload"}))
                continue
            if tool_id == "legacy":
                await websocket.send(json.dumps({"id": "user-42", "name": "Ada"}))
                continue
            if tool_id == "stray":
                await websocket.send(json.dumps({"id": "stale-call", "ok": True, "result": "stale"}))
            await websocket.send(json.dumps({"id": message["id"], "ok": True, "result": {"received": payload}}))

    async def _reply_later(self, websocket, request_id, payload):
        await asyncio.sleep(payload.get("delay", 0))
        try:
            await websocket.send(json.dumps({"id": request_id, "ok": True, "result": {"received": payload}}))
        except ConnectionClosed:
            pass


@pytest.fixture
async def stub_server():
    stub = StubServer()
    async with websockets.serve(stub.handler, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        stub.url = f"ws://127.0.0.1:{port}"
        yield stub
