"""Tool catalog shared by the native MCP surface and the HTTP bridge."""
from typing import Any, Mapping, Optional
from dataclasses import dataclass

from pydantic import BaseModel

from gateway.tools.query import ExecuteSqlInput
from gateway.tools.schema import ListTablesInput, DescribeTableInput
from gateway.tools.project import ProjectInput
from gateway.tools.migration import ApplyMigrationInput


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_model: type[BaseModel]
    read_only: bool = True

    def to_mcp(self) -> dict:
        """Tool listing entry in MCP ``tools/list`` form."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_model.model_json_schema(by_alias=True),
        }


TOOLS: dict[str, ToolDefinition] = {
    t.name: t
    for t in (
        ToolDefinition(
            "execute_sql",
            "Execute SQL queries on the Supabase database (SELECT and INSERT only)",
            ExecuteSqlInput,
            read_only=False,
        ),
        ToolDefinition(
            "list_tables", "List all tables in the database", ListTablesInput
        ),
        ToolDefinition(
            "describe_table",
            "Get table schema and column information",
            DescribeTableInput,
        ),
        ToolDefinition(
            "get_project_url", "Get the API URL for a project", ProjectInput
        ),
        ToolDefinition(
            "get_anon_key", "Get the anonymous API key for a project", ProjectInput
        ),
        ToolDefinition(
            "apply_migration",
            "Apply a SQL migration to the database",
            ApplyMigrationInput,
            read_only=False,
        ),
    )
}


def get_tool(name: str) -> Optional[ToolDefinition]:
    return TOOLS.get(name)


def with_defaults(name: str, arguments: Optional[Mapping[str, Any]]) -> dict:
    """Fill in defaulted tool arguments so gatekeeping sees what will be used.

    ``list_tables`` without ``schemas`` queries ``public``; the schema
    allow-list must be checked against that, not against nothing.
    """
    merged = dict(arguments or {})
    tool = TOOLS.get(name)
    if tool is None:
        return merged
    defaulted = set()
    for field_name, info in tool.input_model.model_fields.items():
        key = info.alias or field_name
        if key in merged or info.is_required():
            continue
        default = info.get_default(call_default_factory=True)
        if default is not None:
            merged[key] = default
            defaulted.add(key)
    # A qualified table_name carries its own schema
    if "schema" in defaulted and "." in str(merged.get("table_name", "")):
        del merged["schema"]
    return merged
