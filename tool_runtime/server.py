#!/usr/bin/env python3
"""
Tool Server Entrypoint

HTTP API that exposes the tool catalog and runs tools on behalf of agents.
Every call goes through the Executor, so access control and the invocation
log apply exactly as they do from the CLI. Callers authenticate with a
bearer token; the token, not the request body, decides which agent calls.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from agent.auth import AgentTokenStore
from agent.executor import Executor
from agent.profile import AgentProfile, load_agent_profile
from logs.invocation_logger import get_logger

from . import config
from .base import (
    AccessDeniedError,
    DefinitionError,
    ExecutionError,
    InvocationTimeoutError,
    NotFoundError,
    ToolError,
    TransportError,
    UnsupportedTypeError,
)
from .help import format_tool_help, tool_summary
from .registry import list_local_tools

logger = logging.getLogger(__name__)

SERVICE_NAME = "BMAD Tool Server"
SERVICE_VERSION = "6.3.0"

ERROR_STATUS = {
    NotFoundError: 404,
    AccessDeniedError: 403,
    UnsupportedTypeError: 422,
    DefinitionError: 422,
    ExecutionError: 502,
    TransportError: 502,
    InvocationTimeoutError: 504,
}


def status_for(error: ToolError) -> int:
    for error_class, status in ERROR_STATUS.items():
        if isinstance(error, error_class):
            return status
    return 500


class ToolRequest(BaseModel):
    """Request body for tool execution."""

    agent_id: Optional[str] = None
    payload: Dict[str, Any] = {}


class ToolResponse(BaseModel):
    """Response from tool execution."""

    success: bool
    tool: str
    result: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None


def create_app(
    executor: Optional[Executor] = None,
    agent_dir: Optional[Path] = None,
    tokens: Optional[AgentTokenStore] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        executor: Executor to dispatch through; defaults to one with the
            configured catalog, default adapters and the global audit log
        agent_dir: Directory holding agent capability declarations
        tokens: Bearer token -> agent id lookup
    """
    executor = executor or Executor(audit=get_logger())
    agent_dir = Path(agent_dir) if agent_dir is not None else config.AGENT_DIR
    tokens = tokens or AgentTokenStore()
    catalog = executor.catalog
    security = HTTPBearer(auto_error=False)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup: discover local plugins
        local_tools = list_local_tools()
        logger.info(f"Tool server starting with {len(local_tools)} local plugins")
        for name in local_tools:
            logger.info(f"  - {name}")

        yield

        # Shutdown: close open MCP sessions
        mcp_adapter = executor.adapters.get("mcp")
        sessions = getattr(mcp_adapter, "sessions", None)
        if sessions is not None:
            await sessions.close()
        logger.info("Tool server shutting down")

    app = FastAPI(
        title=SERVICE_NAME,
        description="Invoke BMAD tools on behalf of agents",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.TOOL_SERVER_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def authenticated_agent(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    ) -> str:
        if credentials is None:
            raise HTTPException(status_code=401, detail="Missing authorization header")
        agent_id = tokens.agent_for(credentials.credentials)
        if agent_id is None:
            raise HTTPException(status_code=401, detail="Invalid token")
        return agent_id

    def load_agent(agent_id: str) -> AgentProfile:
        # Every caller, the orchestrator included, needs a declaration file
        try:
            return load_agent_profile(agent_id, agent_dir)
        except FileNotFoundError:
            raise HTTPException(status_code=403, detail=f"Agent not declared: {agent_id}")
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    # ============== API Endpoints ==============

    @app.get("/")
    async def root():
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {
                "list_tools": "/tools",
                "tool_help": "/tools/{tool_id}",
                "execute": "/tools/{tool_id}/execute",
                "health": "/health",
            },
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "local_plugins": len(list_local_tools())}

    @app.get("/tools")
    async def list_tools():
        tools = catalog.list_tools()
        return {"total": len(tools), "tools": [tool_summary(tool) for tool in tools]}

    @app.get("/tools/{tool_id}")
    async def get_tool_info(tool_id: str):
        try:
            tool = catalog.resolve(tool_id)
        except ToolError as e:
            raise HTTPException(status_code=status_for(e), detail=e.message)

        info = tool_summary(tool)
        info["help"] = format_tool_help(tool)
        return info

    @app.post("/tools/{tool_id}/execute", response_model=ToolResponse)
    async def execute_tool_endpoint(
        tool_id: str,
        request: ToolRequest,
        caller_id: str = Depends(authenticated_agent),
    ):
        if request.agent_id is not None and request.agent_id != caller_id:
            logger.warning(f"Token for {caller_id} used to claim agent {request.agent_id}")
            raise HTTPException(status_code=403, detail=f"Token does not belong to agent {request.agent_id}")

        agent = load_agent(caller_id)
        try:
            result = await executor.execute(agent, tool_id, request.payload)
        except ToolError as e:
            response = ToolResponse(success=False, tool=tool_id, error=e.message, error_type=e.error_type)
            return JSONResponse(status_code=status_for(e), content=response.model_dump())

        return ToolResponse(success=True, tool=tool_id, result=result)

    return app


def main():
    """Run the tool server."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger.info(f"Starting tool server on {config.TOOL_SERVER_HOST}:{config.TOOL_SERVER_PORT}")
    uvicorn.run(
        "tool_runtime.server:create_app",
        factory=True,
        host=config.TOOL_SERVER_HOST,
        port=config.TOOL_SERVER_PORT,
    )


if __name__ == "__main__":
    main()
