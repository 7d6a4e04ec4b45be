"""Response formatting and shaping helpers."""
import json
from enum import Enum
from typing import Any, Optional


class ResponseFormat(str, Enum):
    MARKDOWN = "markdown"
    JSON = "json"


class ResponseShape(str, Enum):
    MCP = "mcp"
    SIMPLIFIED = "simplified"


def format_query_results(
    rows: list[dict],
    columns: list[str] = None,
    fmt: ResponseFormat = ResponseFormat.MARKDOWN,
) -> str:
    if fmt == ResponseFormat.JSON:
        return json.dumps(
            {"row_count": len(rows), "rows": rows}, indent=2, default=str
        )
    if not rows:
        return "_No results returned._"
    cols = columns or list(rows[0].keys())
    lines = [f"**{len(rows)} row(s) returned**\n"]
    lines.append("| " + " | ".join(cols) + " |")
    lines.append("| " + " | ".join(["---"] * len(cols)) + " |")
    for row in rows[:50]:
        vals = [str(row.get(c, "")) for c in cols]
        lines.append("| " + " | ".join(vals) + " |")
    if len(rows) > 50:
        lines.append(f"\n_...and {len(rows) - 50} more rows (use LIMIT to control)_")
    return "\n".join(lines)


def format_table_list(
    tables: list[dict],
    project_ref: str = "",
    fmt: ResponseFormat = ResponseFormat.MARKDOWN,
) -> str:
    if fmt == ResponseFormat.JSON:
        return json.dumps(tables, indent=2, default=str)
    if not tables:
        return "_No tables found or accessible with current permissions._"
    title = f"## Tables in project {project_ref}\n" if project_ref else "## Tables\n"
    lines = [title]
    for t in tables:
        name = t.get("table_name", t.get("name", "unknown"))
        schema = t.get("table_schema", t.get("schema", "public"))
        lines.append(f"- **{schema}.{name}**")
        if t.get("table_type"):
            lines.append(f"  - {t['table_type']}")
    return "\n".join(lines)


def format_schema_info(
    columns: list[dict],
    table_name: str,
    fmt: ResponseFormat = ResponseFormat.MARKDOWN,
) -> str:
    if fmt == ResponseFormat.JSON:
        return json.dumps(
            {"table": table_name, "columns": columns}, indent=2, default=str
        )
    if not columns:
        return f"_No columns found for `{table_name}` or table not accessible._"
    lines = [f"## Schema: `{table_name}`\n"]
    lines.append("| Column | Type | Nullable | Default |")
    lines.append("| --- | --- | --- | --- |")
    for c in columns:
        default = c.get("column_default")
        lines.append(
            f"| {c['column_name']} | {c['data_type']} | "
            f"{c.get('is_nullable', 'YES')} | {'' if default is None else default} |"
        )
    return "\n".join(lines)


def to_tool_result(text: str, is_error: bool = False) -> dict:
    """MCP CallToolResult-shaped payload."""
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def to_envelope(
    data: Any = None, error: Optional[str] = None, tool: Optional[str] = None
) -> dict:
    """Flat success/error envelope for callers that cannot unpack MCP content."""
    envelope: dict[str, Any] = {"success": error is None}
    if tool:
        envelope["tool"] = tool
    if error is None:
        envelope["data"] = data
    else:
        envelope["error"] = error
    return envelope
