"""Schema discovery tools."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from mcp.server.fastmcp import FastMCP, Context
from gateway.credentials import headers_from_context


class ListTablesInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    project_id: Optional[str] = Field(
        default=None, description="Supabase project reference"
    )
    schemas: list[str] = Field(
        default_factory=lambda: ["public"],
        description="Database schemas to include",
    )


class DescribeTableInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    table_name: str = Field(
        ...,
        description="Table name: schema.table or just table (defaults to public)",
        min_length=1,
    )
    schema_name: str = Field(
        default="public",
        alias="schema",
        description="Schema of the table when table_name is not qualified",
    )
    project_id: Optional[str] = Field(
        default=None, description="Supabase project reference"
    )

    @property
    def qualified(self) -> tuple[str, str]:
        """(schema, table), honouring a qualified table_name."""
        if "." in self.table_name:
            schema, _, table = self.table_name.rpartition(".")
            return schema, table
        return self.schema_name, self.table_name


def register_schema_tools(mcp: FastMCP, service):

    @mcp.tool(
        name="list_tables",
        annotations={
            "title": "List Tables",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def list_tables(params: ListTablesInput, ctx: Context) -> str:
        """List all tables and views in the given schemas (default: public)."""
        outcome = await service.call_tool(
            "list_tables",
            params.model_dump(exclude_none=True),
            service.credentials(headers_from_context(ctx)),
        )
        return outcome.text

    @mcp.tool(
        name="describe_table",
        annotations={
            "title": "Describe Table Schema",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def describe_table(params: DescribeTableInput, ctx: Context) -> str:
        """Get column names, data types, nullability and defaults for a table.
        Essential for writing queries."""
        outcome = await service.call_tool(
            "describe_table",
            params.model_dump(exclude_none=True, by_alias=True),
            service.credentials(headers_from_context(ctx)),
        )
        return outcome.text
