"""Async client for the Supabase Management API with transport retry.

Transport failures (connect errors, timeouts, dropped connections) are
retried with exponential backoff. HTTP error statuses are not retried;
they surface as SupabaseApiError.
"""
import asyncio
import logging
from typing import Any, Optional

import httpx

from gateway.config import GatewayConfig, config as default_config
from gateway.utils.errors import SupabaseApiError

logger = logging.getLogger(__name__)


class SupabaseManagementClient:
    """Thin wrapper over https://api.supabase.com/v1 for one access token."""

    def __init__(
        self,
        access_token: str,
        config: GatewayConfig = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token = access_token
        self._config = config or default_config
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        """Send a request, retrying transport errors with exponential backoff."""
        attempts = max(1, self._config.retry_attempts)
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(
                    base_url=self._config.api_url,
                    timeout=self._config.timeout_seconds,
                    transport=self._transport,
                ) as client:
                    response = await client.request(
                        method, path, json=json, headers=self._headers()
                    )
                return self._parse(response, path)
            except httpx.TransportError as e:
                last_error = e
                if attempt + 1 >= attempts:
                    break
                delay = min(
                    self._config.retry_base_delay * (2**attempt),
                    self._config.retry_max_delay,
                )
                logger.warning(
                    f"Supabase request {method} {path} failed "
                    f"(attempt {attempt + 1}/{attempts}): {e}. Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

        raise last_error

    @staticmethod
    def _parse(response: httpx.Response, path: str) -> Any:
        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                return response.text
        try:
            body = response.json()
            message = body.get("message") or body.get("error") or response.text
        except ValueError:
            message = response.text
        raise SupabaseApiError(response.status_code, message, path)

    async def run_query(self, project_ref: str, sql: str) -> list[dict]:
        result = await self.request(
            "POST", f"/v1/projects/{project_ref}/database/query", json={"query": sql}
        )
        if result is None:
            return []
        if isinstance(result, list):
            return result
        return [result]

    async def get_api_keys(self, project_ref: str) -> list[dict]:
        return await self.request("GET", f"/v1/projects/{project_ref}/api-keys") or []

    async def apply_migration(self, project_ref: str, name: str, sql: str) -> Any:
        return await self.request(
            "POST",
            f"/v1/projects/{project_ref}/database/migrations",
            json={"name": name, "query": sql},
        )
