"""Migration tool. A write operation: refused when the gateway is read-only."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from mcp.server.fastmcp import FastMCP, Context
from gateway.credentials import headers_from_context


class ApplyMigrationInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    name: str = Field(
        ...,
        description="Migration name in snake_case (e.g., 'add_orders_table')",
        min_length=1,
    )
    query: str = Field(..., description="SQL migration query", min_length=1)
    project_id: Optional[str] = Field(
        default=None, description="Supabase project reference"
    )


def register_migration_tools(mcp: FastMCP, service):

    @mcp.tool(
        name="apply_migration",
        annotations={
            "title": "Apply SQL Migration",
            "readOnlyHint": False,
            "destructiveHint": True,
            "idempotentHint": False,
            "openWorldHint": False,
        },
    )
    async def apply_migration(params: ApplyMigrationInput, ctx: Context) -> str:
        """Apply a SQL migration to the database and record it in the
        project's migration history. DDL belongs here, not in execute_sql."""
        outcome = await service.call_tool(
            "apply_migration",
            params.model_dump(exclude_none=True),
            service.credentials(headers_from_context(ctx)),
        )
        return outcome.text
