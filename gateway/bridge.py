"""HTTP-to-MCP bridge: JSON-RPC style method calls streamed back as SSE events.

Every request produces a sequence of ``data: {json}\\n\\n`` lines::

    {"id": ..., "type": "data", "data": {...}}       start / result
    {"id": ..., "type": "error", "error": "..."}     failure, ends the stream
    {"id": ..., "type": "complete", "data": {...}}   success, ends the stream
"""
import json
import logging
from enum import Enum
from typing import Any, AsyncIterator, Mapping, Optional
from dataclasses import dataclass, asdict

from mcp.server.fastmcp import FastMCP

from gateway.credentials import Credentials
from gateway.service import TOOL_ARGUMENTS_ERROR
from gateway.utils.errors import GatewayError, handle_error

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


class EventType(str, Enum):
    DATA = "data"
    ERROR = "error"
    COMPLETE = "complete"


@dataclass
class StreamEvent:
    id: Any
    type: EventType
    data: Any = None
    error: Optional[str] = None

    def to_sse(self) -> str:
        body = {k: v for k, v in asdict(self).items() if v is not None}
        body["type"] = self.type.value
        return f"data: {json.dumps(body, default=str)}\n\n"


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class McpBridge:
    """Dispatch MCP methods over plain HTTP.

    tools/* go through the gateway service (and its gatekeeping pipeline);
    prompts/* and resources/* are answered by the native FastMCP server.
    """

    def __init__(self, service, mcp: FastMCP):
        self.service = service
        self.mcp = mcp

    async def stream(
        self,
        request_id: Any,
        method: Optional[str],
        params: Optional[Mapping[str, Any]],
        credentials: Credentials,
    ) -> AsyncIterator[str]:
        params = params or {}
        try:
            self.service.require_credentials(credentials)
        except GatewayError as e:
            yield StreamEvent(request_id, EventType.ERROR, error=str(e)).to_sse()
            return

        denial = self.service.check_project(credentials.project_ref)
        if denial is not None:
            logger.warning(f"Bridge request denied: {denial.reason}")
            yield StreamEvent(request_id, EventType.ERROR, error=denial.reason).to_sse()
            return

        if not method:
            yield StreamEvent(
                request_id, EventType.ERROR, error="MCP method is required"
            ).to_sse()
            return

        if not isinstance(params, Mapping):
            yield StreamEvent(
                request_id, EventType.ERROR, error="MCP params must be an object"
            ).to_sse()
            return

        yield StreamEvent(
            request_id,
            EventType.DATA,
            data={
                "message": f"Starting MCP operation: {method}",
                "method": method,
                "params": dict(params),
                "projectRef": credentials.project_ref,
                "security": self.service.security_context(),
            },
        ).to_sse()

        try:
            result = await self.dispatch(method, params, credentials)
        except GatewayError as e:
            yield StreamEvent(request_id, EventType.ERROR, error=str(e)).to_sse()
            return
        except Exception as e:
            logger.error(f"MCP method '{method}' failed: {type(e).__name__}: {e}")
            yield StreamEvent(request_id, EventType.ERROR, error=handle_error(e)).to_sse()
            return

        yield StreamEvent(
            request_id,
            EventType.DATA,
            data={"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result},
        ).to_sse()
        yield StreamEvent(
            request_id, EventType.COMPLETE, data={"message": "MCP operation completed"}
        ).to_sse()

    async def dispatch(
        self, method: str, params: Mapping[str, Any], credentials: Credentials
    ) -> Any:
        if method == "tools/list":
            return {"tools": self.service.list_tools()}

        if method == "tools/call":
            name = params.get("name")
            if not name:
                raise GatewayError("Tool name is required for tools/call")
            outcome = await self.service.call_tool(
                name, params.get("arguments"), credentials
            )
            if not outcome.success:
                raise GatewayError(outcome.error)
            return outcome.shaped(self.service.response_shape)

        if method == "prompts/list":
            prompts = await self.mcp.list_prompts()
            return {"prompts": [_dump(p) for p in prompts]}

        if method == "prompts/get":
            name = params.get("name")
            if not name:
                raise GatewayError("Prompt name is required for prompts/get")
            return _dump(await self.mcp.get_prompt(name, params.get("arguments")))

        if method == "resources/list":
            resources = await self.mcp.list_resources()
            return {"resources": [_dump(r) for r in resources]}

        if method == "resources/read":
            uri = params.get("uri")
            if not uri:
                raise GatewayError("Resource URI is required for resources/read")
            contents = await self.mcp.read_resource(uri)
            return {
                "contents": [
                    {"uri": uri, "mimeType": c.mime_type, "text": c.content}
                    for c in contents
                ]
            }

        raise GatewayError(f"Unsupported MCP method: {method}")

    async def stream_tool(
        self,
        request_id: Any,
        tool_name: Optional[str],
        arguments: Optional[Mapping[str, Any]],
        credentials: Credentials,
    ) -> AsyncIterator[str]:
        """Legacy ``/tools/execute`` stream: one tool call, no JSON-RPC wrapping."""
        if not tool_name:
            yield StreamEvent(
                request_id, EventType.ERROR, error="Tool name is required"
            ).to_sse()
            return

        if arguments is not None and not isinstance(arguments, Mapping):
            yield StreamEvent(
                request_id, EventType.ERROR, error=TOOL_ARGUMENTS_ERROR
            ).to_sse()
            return

        yield StreamEvent(
            request_id,
            EventType.DATA,
            data={
                "message": f"Starting execution of tool: {tool_name}",
                "toolName": tool_name,
                "arguments": dict(arguments or {}),
            },
        ).to_sse()

        outcome = await self.service.call_tool(tool_name, arguments, credentials)
        if not outcome.success:
            yield StreamEvent(request_id, EventType.ERROR, error=outcome.error).to_sse()
            return

        yield StreamEvent(
            request_id, EventType.DATA, data=outcome.shaped(self.service.response_shape)
        ).to_sse()
        yield StreamEvent(
            request_id, EventType.COMPLETE, data={"message": "Tool execution completed"}
        ).to_sse()
