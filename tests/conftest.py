"""Shared test fixtures for Supabase MCP gateway tests."""
import pytest
from unittest.mock import AsyncMock

from gateway.config import GatewayConfig
from gateway.credentials import CredentialSource, Credentials
from gateway.forwarding.mock import MockForwarder
from gateway.governance.pipeline import build_pipeline
from gateway.governance.tool_guard import AccessPolicyConfig
from gateway.service import GatewayService


def make_config(**overrides) -> GatewayConfig:
    """GatewayConfig independent of the test runner's environment."""
    values = dict(
        port=3000,
        log_level="INFO",
        access_token="",
        project_ref="",
        credential_source="header",
        forwarding="mock",
        response_shape="mcp",
        response_format="markdown",
        sql_guard="pattern",
        api_url="https://api.supabase.test",
        timeout_seconds=5.0,
        retry_attempts=3,
        retry_base_delay=0.01,
        retry_max_delay=0.05,
        max_rows=1000,
    )
    values.update(overrides)
    return GatewayConfig(**values)


def make_service(forwarder=None, config=None, **policy) -> GatewayService:
    config = config or make_config()
    return GatewayService(
        config,
        pipeline=build_pipeline(AccessPolicyConfig.from_lists(**policy), config.sql_guard),
        forwarder=forwarder or MockForwarder(),
    )


@pytest.fixture
def gateway_config():
    return make_config()


@pytest.fixture
def credentials():
    return Credentials(
        access_token="sbp_test", project_ref="proj1", source=CredentialSource.HEADER
    )


@pytest.fixture
def mock_forwarder():
    """Live-style forwarder double that needs a token."""
    mock = AsyncMock()
    mock.requires_token = True
    mock.forward = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def sample_columns():
    return [
        {
            "column_name": "id",
            "data_type": "integer",
            "is_nullable": "NO",
            "column_default": "nextval('id_seq')",
        },
        {
            "column_name": "name",
            "data_type": "character varying",
            "is_nullable": "YES",
            "column_default": None,
        },
        {
            "column_name": "created_at",
            "data_type": "timestamp with time zone",
            "is_nullable": "NO",
            "column_default": "now()",
        },
    ]


@pytest.fixture
def sample_rows():
    return [
        {"id": 1, "name": "Alice", "email": "alice@example.com"},
        {"id": 2, "name": "Bob", "email": "bob@example.com"},
    ]


@pytest.fixture
def sample_tables():
    return [
        {"table_schema": "public", "table_name": "orders", "table_type": "BASE TABLE"},
        {"table_schema": "public", "table_name": "users", "table_type": "BASE TABLE"},
    ]


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def service_factory():
    return make_service
