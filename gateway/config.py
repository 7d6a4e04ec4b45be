"""Configuration for the Supabase MCP gateway.

Access-policy settings (read-only, allow-lists, blocked operations) are
loaded separately by gateway/governance/policy.py.
"""
import os
from dataclasses import dataclass, field

VERSION = "1.0.0"


@dataclass
class GatewayConfig:
    """Server configuration loaded from environment variables."""

    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    log_level: str = field(
        default_factory=lambda: os.environ.get("MCP_LOG_LEVEL", "INFO").upper()
    )

    # Credentials
    access_token: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_ACCESS_TOKEN", "")
    )
    project_ref: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_PROJECT_REF", "")
    )
    # "header": x-supabase-token / x-project-ref, falling back to env
    # "env": headers ignored
    credential_source: str = field(
        default_factory=lambda: os.environ.get(
            "SUPABASE_CREDENTIAL_SOURCE", "header"
        ).lower()
    )

    # Forwarding: "live" (Management API) or "mock" (canned responses)
    forwarding: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_FORWARDING", "live").lower()
    )
    # Response shaping: "mcp" content blocks or "simplified" success/error envelope
    response_shape: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_RESPONSE_SHAPE", "mcp").lower()
    )
    response_format: str = field(
        default_factory=lambda: os.environ.get(
            "SUPABASE_RESPONSE_FORMAT", "markdown"
        ).lower()
    )
    sql_guard: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_SQL_GUARD", "pattern").lower()
    )

    # Supabase Management API
    api_url: str = field(
        default_factory=lambda: os.environ.get(
            "SUPABASE_API_URL", "https://api.supabase.com"
        ).rstrip("/")
    )
    timeout_seconds: float = field(
        default_factory=lambda: float(os.environ.get("SUPABASE_TIMEOUT_SECONDS", "30"))
    )
    retry_attempts: int = field(
        default_factory=lambda: int(os.environ.get("SUPABASE_RETRY_ATTEMPTS", "3"))
    )
    retry_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("SUPABASE_RETRY_DELAY", "0.5"))
    )
    retry_max_delay: float = field(
        default_factory=lambda: float(os.environ.get("SUPABASE_RETRY_MAX_DELAY", "5.0"))
    )
    max_rows: int = field(
        default_factory=lambda: int(os.environ.get("SUPABASE_MAX_ROWS", "1000"))
    )

    @property
    def uses_headers(self) -> bool:
        return self.credential_source == "header"

    @property
    def is_mock(self) -> bool:
        return self.forwarding == "mock"


config = GatewayConfig()
