"""SQL execution tool, gated by the SQL guard before reaching Supabase."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from mcp.server.fastmcp import FastMCP, Context
from gateway.credentials import headers_from_context


class ExecuteSqlInput(BaseModel):
    # query is forwarded exactly as the SQL guard saw it
    model_config = ConfigDict(str_strip_whitespace=False)
    query: str = Field(
        ...,
        description="SQL query to execute (SELECT, INSERT, WITH, EXPLAIN, DESCRIBE)",
        min_length=1,
        max_length=50000,
    )
    project_id: Optional[str] = Field(
        default=None,
        description="Supabase project reference. Defaults to the request's project.",
    )


def register_query_tools(mcp: FastMCP, service):

    @mcp.tool(
        name="execute_sql",
        annotations={
            "title": "Execute SQL Query",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": False,
        },
    )
    async def execute_sql(params: ExecuteSqlInput, ctx: Context) -> str:
        """Execute a SQL query against the Supabase Postgres database.

        Only SELECT, INSERT, WITH, EXPLAIN and DESCRIBE statements are accepted;
        DROP, TRUNCATE, DELETE, UPDATE, CREATE/ALTER TABLE, GRANT and REVOKE are
        always refused. INSERT is refused when the gateway runs read-only.
        """
        outcome = await service.call_tool(
            "execute_sql",
            params.model_dump(exclude_none=True),
            service.credentials(headers_from_context(ctx)),
        )
        return outcome.text
