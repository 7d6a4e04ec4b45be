"""Live forwarding to the Supabase Management API."""
import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import BaseModel

from gateway.config import GatewayConfig, config as default_config
from gateway.credentials import Credentials
from gateway.governance.pipeline import ToolInvocation
from gateway.supabase import SupabaseManagementClient
from gateway.utils.errors import GatewayError, UnknownToolError

logger = logging.getLogger(__name__)


def quote_literal(value: str) -> str:
    """Postgres string literal; the query endpoint takes no bind parameters."""
    return "'" + value.replace("'", "''") + "'"


class LiveForwarder:
    """Executes approved invocations against api.supabase.com."""

    requires_token = True

    def __init__(
        self,
        config: GatewayConfig = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or default_config
        self._transport = transport
        self._handlers = {
            "execute_sql": self._execute_sql,
            "list_tables": self._list_tables,
            "describe_table": self._describe_table,
            "get_project_url": self._get_project_url,
            "get_anon_key": self._get_anon_key,
            "apply_migration": self._apply_migration,
        }

    def client(self, credentials: Credentials) -> SupabaseManagementClient:
        return SupabaseManagementClient(
            credentials.access_token, config=self._config, transport=self._transport
        )

    async def forward(
        self,
        invocation: ToolInvocation,
        params: BaseModel,
        credentials: Credentials,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        handler = self._handlers.get(invocation.name)
        if handler is None:
            raise UnknownToolError(invocation.name)
        logger.info(f"Forwarding '{invocation.name}' to project {invocation.project_ref}")
        return await handler(self.client(credentials), invocation.project_ref, params)

    async def _execute_sql(self, client, project_ref: str, params) -> list[dict]:
        rows = await client.run_query(project_ref, params.query)
        return rows[: self._config.max_rows]

    async def _list_tables(self, client, project_ref: str, params) -> list[dict]:
        schemas = ", ".join(quote_literal(s) for s in params.schemas)
        return await client.run_query(
            project_ref,
            "SELECT table_schema, table_name, table_type "
            "FROM information_schema.tables "
            f"WHERE table_schema IN ({schemas}) "
            "ORDER BY table_schema, table_name",
        )

    async def _describe_table(self, client, project_ref: str, params) -> list[dict]:
        schema, table = params.qualified
        return await client.run_query(
            project_ref,
            "SELECT column_name, data_type, is_nullable, column_default "
            "FROM information_schema.columns "
            f"WHERE table_schema = {quote_literal(schema)} "
            f"AND table_name = {quote_literal(table)} "
            "ORDER BY ordinal_position",
        )

    async def _get_project_url(self, client, project_ref: str, params) -> dict:
        return {"project_id": project_ref, "url": f"https://{project_ref}.supabase.co"}

    async def _get_anon_key(self, client, project_ref: str, params) -> dict:
        keys = await client.get_api_keys(project_ref)
        for key in keys:
            if key.get("name") == "anon":
                return {"project_id": project_ref, "anon_key": key.get("api_key")}
        raise GatewayError(f"No anon key found for project {project_ref}")

    async def _apply_migration(self, client, project_ref: str, params) -> dict:
        result = await client.apply_migration(project_ref, params.name, params.query)
        return {
            "status": "applied",
            "project_id": project_ref,
            "migration": params.name,
            "result": result,
        }
