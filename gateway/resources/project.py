"""Project resource: the gateway's target project and active access policy."""
import json

from mcp.server.fastmcp import FastMCP


def register_project_resources(mcp: FastMCP, service):

    @mcp.resource("supabase://project", name="Supabase Project", mime_type="application/json")
    async def get_project() -> str:
        """Main Supabase project resource."""
        credentials = service.credentials()
        return json.dumps(
            {
                "projectRef": credentials.project_ref,
                "forwarding": service.config.forwarding,
                "security": service.policy_config.to_dict(),
            },
            indent=2,
        )
