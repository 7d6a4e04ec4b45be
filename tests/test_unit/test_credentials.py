"""Unit tests for credential resolution."""
import pytest
from types import SimpleNamespace
from gateway.credentials import (
    DEFAULT_PROJECT,
    PROJECT_HEADER,
    TOKEN_HEADER,
    CredentialSource,
    Credentials,
    headers_from_context,
    resolve_credentials,
)
from gateway.utils.errors import CredentialsError


class TestResolveCredentials:
    def test_headers_preferred(self, config_factory):
        config = config_factory(access_token="env_tok", project_ref="env_proj")
        creds = resolve_credentials(
            config, {TOKEN_HEADER: "hdr_tok", PROJECT_HEADER: "hdr_proj"}
        )
        assert creds.access_token == "hdr_tok"
        assert creds.project_ref == "hdr_proj"
        assert creds.source == CredentialSource.HEADER

    def test_env_fallback(self, config_factory):
        config = config_factory(
            access_token="env_tok", project_ref="env_proj", forwarding="live"
        )
        creds = resolve_credentials(config, {})
        assert (creds.access_token, creds.project_ref) == ("env_tok", "env_proj")
        assert creds.source == CredentialSource.ENV

    def test_partial_headers(self, config_factory):
        config = config_factory(access_token="env_tok", project_ref="env_proj")
        creds = resolve_credentials(config, {PROJECT_HEADER: "hdr_proj"})
        assert creds.access_token == "env_tok"
        assert creds.project_ref == "hdr_proj"

    def test_env_mode_ignores_headers(self, config_factory):
        config = config_factory(
            credential_source="env", access_token="env_tok", project_ref="env_proj"
        )
        creds = resolve_credentials(config, {TOKEN_HEADER: "hdr_tok"})
        assert creds.access_token == "env_tok"

    def test_mock_defaults_project(self, config_factory):
        creds = resolve_credentials(config_factory(forwarding="mock"), None)
        assert creds.project_ref == DEFAULT_PROJECT

    def test_live_has_no_default_project(self, config_factory):
        creds = resolve_credentials(config_factory(forwarding="live"), None)
        assert creds.project_ref is None


class TestRequire:
    def test_missing_token(self):
        creds = Credentials(None, "proj1", CredentialSource.ENV)
        with pytest.raises(CredentialsError, match="Supabase access token required"):
            creds.require()

    def test_token_optional(self):
        creds = Credentials(None, "proj1", CredentialSource.ENV)
        assert creds.require(token_required=False) is creds

    def test_missing_project(self):
        creds = Credentials("tok", None, CredentialSource.ENV)
        with pytest.raises(CredentialsError, match="Supabase project reference required"):
            creds.require()


class TestHeadersFromContext:
    def test_none(self):
        assert headers_from_context(None) is None

    def test_request_headers(self):
        ctx = SimpleNamespace(
            request_context=SimpleNamespace(
                request=SimpleNamespace(headers={TOKEN_HEADER: "t"})
            )
        )
        assert headers_from_context(ctx) == {TOKEN_HEADER: "t"}

    def test_no_request_context(self):
        assert headers_from_context(SimpleNamespace()) is None
