"""Supabase credential resolution from request headers or environment."""
import logging
from enum import Enum
from typing import Mapping, Optional
from dataclasses import dataclass

from gateway.config import GatewayConfig
from gateway.utils.errors import CredentialsError

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-supabase-token"
PROJECT_HEADER = "x-project-ref"
DEFAULT_PROJECT = "default-project"


class CredentialSource(str, Enum):
    HEADER = "header"
    ENV = "env"


@dataclass(frozen=True)
class Credentials:
    access_token: Optional[str]
    project_ref: Optional[str]
    source: CredentialSource

    def require(self, token_required: bool = True) -> "Credentials":
        """Raise CredentialsError when the request cannot be forwarded."""
        if token_required and not self.access_token:
            raise CredentialsError("Supabase access token required")
        if not self.project_ref:
            raise CredentialsError("Supabase project reference required")
        return self


def resolve_credentials(
    config: GatewayConfig, headers: Optional[Mapping[str, str]] = None
) -> Credentials:
    """Pick the token and project ref for one request.

    Header mode prefers x-supabase-token / x-project-ref and falls back to
    the environment; env mode ignores headers entirely. Mock forwarding
    targets a placeholder project when none is configured.
    """
    token = config.access_token or None
    project = config.project_ref or None
    source = CredentialSource.ENV

    if config.uses_headers and headers is not None:
        header_token = headers.get(TOKEN_HEADER)
        header_project = headers.get(PROJECT_HEADER)
        if header_token or header_project:
            source = CredentialSource.HEADER
        token = header_token or token
        project = header_project or project

    if not project and config.is_mock:
        project = DEFAULT_PROJECT

    return Credentials(access_token=token, project_ref=project, source=source)


def headers_from_context(ctx) -> Optional[Mapping[str, str]]:
    """HTTP headers of the request behind a FastMCP tool call, if any."""
    if ctx is None:
        return None
    try:
        request = ctx.request_context.request
    except (AttributeError, ValueError):
        return None
    return getattr(request, "headers", None)
