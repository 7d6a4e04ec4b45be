"""HTTP surface: FastAPI app with the SSE bridge, health/security and legacy tool routes.

The native FastMCP streamable-HTTP app is mounted under ``/native``.
"""
import json
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from mcp.server.fastmcp import FastMCP

from gateway.bridge import JSONRPC_VERSION, McpBridge
from gateway.config import VERSION
from gateway.tools.catalog import get_tool
from gateway.utils.errors import GatewayError

logger = logging.getLogger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def create_app(service, mcp: FastMCP) -> FastAPI:
    bridge = McpBridge(service, mcp)
    native_app = mcp.streamable_http_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with mcp.session_manager.run():
            logger.info(
                f"Supabase MCP gateway started (forwarding={service.config.forwarding}, "
                f"{service.policy_config.summary()})"
            )
            yield
        logger.info("Supabase MCP gateway stopped")

    app = FastAPI(title="Supabase MCP Gateway", version=VERSION, lifespan=lifespan)
    app.mount("/native", native_app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "-"
        logger.info(f"{request.method} {request.url.path} - {client}")
        return await call_next(request)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": "Supabase MCP HTTP Server is running",
            "security": service.policy_config.summary(),
        }

    @app.get("/security")
    async def security():
        return service.policy_config.to_dict()

    @app.post("/mcp")
    async def mcp_stream(request: Request):
        body = await _json_body(request)
        credentials = service.credentials(request.headers)
        events = bridge.stream(
            body.get("id") or _request_id(),
            body.get("method"),
            body.get("params"),
            credentials,
        )
        return StreamingResponse(
            events, media_type="text/event-stream", headers=SSE_HEADERS
        )

    @app.get("/tools")
    async def list_tools(request: Request):
        try:
            service.require_credentials(service.credentials(request.headers))
        except GatewayError as e:
            return JSONResponse(status_code=401, content={"error": str(e)})
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": "tools_list",
            "result": {"tools": service.list_tools()},
        }

    @app.post("/tools/execute")
    async def execute_tool_stream(request: Request):
        body = await _json_body(request)
        credentials = service.credentials(request.headers)
        try:
            service.require_credentials(credentials)
        except GatewayError as e:
            return JSONResponse(status_code=401, content={"error": str(e)})
        events = bridge.stream_tool(
            _request_id(), body.get("toolName"), body.get("arguments"), credentials
        )
        return StreamingResponse(
            events, media_type="text/event-stream", headers=SSE_HEADERS
        )

    @app.post("/tools/{tool_name}")
    async def execute_tool(tool_name: str, request: Request):
        credentials = service.credentials(request.headers)
        try:
            service.require_credentials(credentials)
        except GatewayError as e:
            return JSONResponse(status_code=401, content={"error": str(e)})

        arguments = await _json_body(request)
        outcome = await service.call_tool(tool_name, arguments, credentials)
        if outcome.success:
            return outcome.shaped(service.response_shape)

        if outcome.denied:
            status = 403
        elif get_tool(tool_name) is None:
            status = 404
        else:
            status = 500
        return JSONResponse(
            status_code=status,
            content={"error": outcome.error, "tool": tool_name},
        )

    return app
