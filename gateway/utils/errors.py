"""Gateway exceptions and centralized, actionable error messages."""
from typing import Optional

import httpx
from pydantic import ValidationError


class GatewayError(Exception):
    """Base class for errors the gateway reports to clients."""


class CredentialsError(GatewayError):
    """Access token or project reference missing for the request."""


class UnknownToolError(GatewayError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class SupabaseApiError(GatewayError):
    """Non-2xx response from the Supabase Management API."""

    def __init__(self, status_code: int, message: str, path: Optional[str] = None):
        super().__init__(f"Supabase API error ({status_code}): {message}")
        self.status_code = status_code
        self.message = message
        self.path = path


def handle_error(e: Exception) -> str:
    """Return a human-readable, actionable error message.

    Distinguishes between:
    - Transport problems (timeouts, unreachable API): retry later
    - Management API rejections (auth, missing project, rate limits)
    - Invalid tool arguments
    """
    if isinstance(e, SupabaseApiError):
        if e.status_code == 401:
            return (
                "Error: Supabase rejected the access token. Check the "
                "x-supabase-token header or SUPABASE_ACCESS_TOKEN."
            )
        if e.status_code == 403:
            return (
                "Error: The access token does not have permission for this project. "
                "Use a personal access token from an owner or developer of the project."
            )
        if e.status_code == 404:
            return (
                "Error: Project or resource not found. Check the x-project-ref header "
                "or the project_id argument."
            )
        if e.status_code == 429:
            return "Error: Supabase rate limit reached. Wait a moment and retry."
        if e.status_code >= 500:
            return (
                f"Error: Supabase API is unavailable ({e.status_code}). "
                "Retry in a few seconds."
            )
        return f"Error: SQL or request rejected by Supabase — {e.message}"

    if isinstance(e, httpx.TimeoutException):
        return (
            "Error: Request to Supabase timed out. Try limiting rows with LIMIT "
            "or raise SUPABASE_TIMEOUT_SECONDS."
        )

    if isinstance(e, httpx.TransportError):
        return (
            "Error: Cannot reach the Supabase Management API. Retries exhausted; "
            "check network access and SUPABASE_API_URL."
        )

    if isinstance(e, ValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
            for err in e.errors()
        )
        return f"Error: Invalid tool arguments — {problems}"

    if isinstance(e, GatewayError):
        return f"Error: {e}"

    return f"Error: {type(e).__name__} — {str(e)}"
