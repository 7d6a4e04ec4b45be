"""Gateway service: gatekeeping, forwarding and response shaping for tool calls.

Both the native MCP tools and the HTTP bridge go through
``GatewayService.call_tool`` so policy is enforced identically.
"""
import json
import logging
from typing import Any, Mapping, Optional
from dataclasses import dataclass

from gateway.config import GatewayConfig
from gateway.credentials import Credentials, resolve_credentials
from gateway.forwarding.base import ForwardingCollaborator
from gateway.governance.pipeline import (
    GatekeepingPipeline,
    ToolInvocation,
    build_pipeline,
)
from gateway.governance.tool_guard import AccessPolicyConfig, DenialKind, PolicyDenial
from gateway.tools.catalog import TOOLS, get_tool, with_defaults
from gateway.utils.errors import GatewayError, UnknownToolError, handle_error
from gateway.utils.formatting import (
    ResponseFormat,
    ResponseShape,
    format_query_results,
    format_schema_info,
    format_table_list,
    to_envelope,
    to_tool_result,
)

logger = logging.getLogger(__name__)

TOOL_ARGUMENTS_ERROR = "Tool arguments must be an object"


@dataclass
class ToolOutcome:
    """Result of one tool call, before transport-specific framing."""

    tool: str
    success: bool
    text: str
    data: Any = None
    error: Optional[str] = None
    denial: Optional[DenialKind] = None

    @property
    def denied(self) -> bool:
        return self.denial is not None

    def shaped(self, shape: ResponseShape = ResponseShape.MCP) -> dict:
        if shape == ResponseShape.SIMPLIFIED:
            if self.success:
                return to_envelope(
                    self.data if self.data is not None else self.text, tool=self.tool
                )
            return to_envelope(error=self.error, tool=self.tool)
        return to_tool_result(self.text, is_error=not self.success)

    @classmethod
    def failure(cls, tool: str, error: str, denial: Optional[DenialKind] = None):
        text = error if error.startswith("Error:") else f"Error: {error}"
        return cls(tool=tool, success=False, text=text, error=error, denial=denial)


class GatewayService:
    def __init__(
        self,
        config: GatewayConfig,
        pipeline: GatekeepingPipeline,
        forwarder: ForwardingCollaborator,
    ):
        self.config = config
        self._pipeline = pipeline
        self.forwarder = forwarder
        self.response_shape = _enum_or_default(
            ResponseShape, config.response_shape, ResponseShape.MCP
        )
        self.response_format = _enum_or_default(
            ResponseFormat, config.response_format, ResponseFormat.MARKDOWN
        )

    @property
    def pipeline(self) -> GatekeepingPipeline:
        return self._pipeline

    @property
    def policy_config(self) -> AccessPolicyConfig:
        return self._pipeline.policy.config

    def reload_policy(self, policy_config: AccessPolicyConfig) -> None:
        """Swap in a new policy; in-flight calls keep the pipeline they started with."""
        self._pipeline = build_pipeline(policy_config, self.config.sql_guard)
        logger.info("Access policy reloaded")

    def credentials(self, headers: Optional[Mapping[str, str]] = None) -> Credentials:
        return resolve_credentials(self.config, headers)

    def require_credentials(self, credentials: Credentials) -> Credentials:
        return credentials.require(token_required=self.forwarder.requires_token)

    def check_project(self, project_ref: str) -> Optional[PolicyDenial]:
        policy = self._pipeline.policy
        if policy.check_project_access(project_ref):
            return None
        return policy.project_denial(project_ref)

    def security_context(self) -> dict:
        policy_config = self.policy_config
        return {
            "readOnly": policy_config.read_only,
            "allowedSchemas": sorted(policy_config.allowed_schemas) or "all",
        }

    def list_tools(self) -> list[dict]:
        """Tools visible under the current policy (write tools hidden when read-only)."""
        policy = self._pipeline.policy
        return [
            tool.to_mcp()
            for tool in TOOLS.values()
            if policy.is_operation_visible(tool.name)
        ]

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]],
        credentials: Credentials,
    ) -> ToolOutcome:
        pipeline = self._pipeline
        try:
            self.require_credentials(credentials)
        except GatewayError as e:
            return ToolOutcome.failure(name, str(e))
        if arguments is not None and not isinstance(arguments, Mapping):
            return ToolOutcome.failure(name, TOOL_ARGUMENTS_ERROR)

        invocation = ToolInvocation.create(
            name, with_defaults(name, arguments), credentials.project_ref
        )
        verdict = pipeline.evaluate(invocation)
        if not verdict.allowed:
            return ToolOutcome.failure(name, verdict.reason, verdict.denial.kind)

        tool = get_tool(name)
        if tool is None:
            return ToolOutcome.failure(name, str(UnknownToolError(name)))

        try:
            params = tool.input_model.model_validate(dict(invocation.arguments))
            payload = await self.forwarder.forward(
                invocation, params, credentials, context=self.security_context()
            )
        except Exception as e:
            logger.warning(f"Tool '{name}' failed: {type(e).__name__}: {e}")
            return ToolOutcome.failure(name, handle_error(e))

        return ToolOutcome(
            tool=name,
            success=True,
            text=self._render(invocation, params, payload),
            data=payload,
        )

    def _render(self, invocation: ToolInvocation, params, payload: Any) -> str:
        fmt = self.response_format
        if isinstance(payload, str):
            return payload
        if invocation.name == "execute_sql":
            return format_query_results(payload, fmt=fmt)
        if invocation.name == "list_tables":
            return format_table_list(payload, invocation.project_ref, fmt=fmt)
        if invocation.name == "describe_table":
            schema, table = params.qualified
            return format_schema_info(payload, f"{schema}.{table}", fmt=fmt)
        return json.dumps(payload, indent=2, default=str)


def _enum_or_default(enum_cls, value: str, default):
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} '{value}', using {default.value}")
        return default
