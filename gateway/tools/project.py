"""Project metadata tools: API URL and anonymous key."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from mcp.server.fastmcp import FastMCP, Context
from gateway.credentials import headers_from_context


class ProjectInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    project_id: Optional[str] = Field(
        default=None, description="Supabase project reference"
    )


def register_project_tools(mcp: FastMCP, service):

    @mcp.tool(
        name="get_project_url",
        annotations={
            "title": "Get Project API URL",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def get_project_url(params: ProjectInput, ctx: Context) -> str:
        """Get the API URL for a project."""
        outcome = await service.call_tool(
            "get_project_url",
            params.model_dump(exclude_none=True),
            service.credentials(headers_from_context(ctx)),
        )
        return outcome.text

    @mcp.tool(
        name="get_anon_key",
        annotations={
            "title": "Get Anonymous API Key",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def get_anon_key(params: ProjectInput, ctx: Context) -> str:
        """Get the anonymous (public) API key for a project."""
        outcome = await service.call_tool(
            "get_anon_key",
            params.model_dump(exclude_none=True),
            service.credentials(headers_from_context(ctx)),
        )
        return outcome.text
