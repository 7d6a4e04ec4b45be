"""Native MCP surface: FastMCP server with the gateway's tools, prompts and resources."""
from mcp.server.fastmcp import FastMCP

from gateway.prompts.templates import register_prompts
from gateway.resources.project import register_project_resources
from gateway.tools.migration import register_migration_tools
from gateway.tools.project import register_project_tools
from gateway.tools.query import register_query_tools
from gateway.tools.schema import register_schema_tools


def build_mcp_server(service) -> FastMCP:
    """Build a stateless streamable-HTTP MCP server backed by ``service``."""
    mcp = FastMCP(
        "supabase_gateway",
        stateless_http=True,
        host="0.0.0.0",
        port=service.config.port,
    )

    register_query_tools(mcp, service)
    register_schema_tools(mcp, service)
    register_project_tools(mcp, service)
    register_migration_tools(mcp, service)
    register_project_resources(mcp, service)
    register_prompts(mcp)
    return mcp
