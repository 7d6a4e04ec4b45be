"""Gatekeeping pipeline: the ordered policy + SQL checks for one tool call.

project access -> operation name -> schema/table arguments -> SQL guard.
The first failing stage wins. No I/O happens here; forwarding is the
caller's job once the result says to proceed.
"""
import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional
from dataclasses import dataclass, field

from gateway.governance.sql_guard import SqlGuard, build_sql_guard
from gateway.governance.tool_guard import (
    AccessPolicy,
    AccessPolicyConfig,
    DenialKind,
    PolicyDenial,
)

logger = logging.getLogger(__name__)

SQL_OPERATION_PREFIX = "execute_sql"


@dataclass(frozen=True)
class ToolInvocation:
    """One inbound tool call. Lives for a single request."""

    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    project_ref: str = ""

    @classmethod
    def create(
        cls, name: str, arguments: Optional[Mapping[str, Any]], default_project: str = ""
    ) -> "ToolInvocation":
        """Build an invocation, targeting ``project_id`` from the arguments when given."""
        args = dict(arguments or {})
        project_ref = args.get("project_id") or default_project or ""
        return cls(
            name=name, arguments=MappingProxyType(args), project_ref=str(project_ref)
        )

    @property
    def is_sql(self) -> bool:
        return self.name.startswith(SQL_OPERATION_PREFIX)


@dataclass(frozen=True)
class GatekeepResult:
    allowed: bool
    denial: Optional[PolicyDenial] = None

    @property
    def reason(self) -> Optional[str]:
        return self.denial.reason if self.denial else None

    @classmethod
    def proceed(cls) -> "GatekeepResult":
        return cls(allowed=True)

    @classmethod
    def denied(cls, denial: PolicyDenial) -> "GatekeepResult":
        return cls(allowed=False, denial=denial)


def _as_list(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value if v is not None and v != ""]
    return [str(value)]


def extract_schemas_and_tables(arguments: Mapping[str, Any]) -> tuple[list[str], list[str]]:
    """Collect schema and table names referenced by tool arguments.

    A qualified ``schema.table`` contributes its schema to the schema list
    and its bare table name to the table list.
    """
    schemas = (
        _as_list(arguments.get("schemas"))
        + _as_list(arguments.get("schema"))
        + _as_list(arguments.get("schema_name"))
    )
    tables: list[str] = []
    for name in (
        _as_list(arguments.get("tables"))
        + _as_list(arguments.get("table_name"))
        + _as_list(arguments.get("table"))
    ):
        if "." in name:
            schema, _, table = name.rpartition(".")
            schemas.append(schema)
            tables.append(table)
        else:
            tables.append(name)
    return schemas, tables


class GatekeepingPipeline:
    """Sequences AccessPolicy and SqlGuard for a ToolInvocation."""

    def __init__(self, policy: AccessPolicy, sql_guard: SqlGuard):
        self.policy = policy
        self.sql_guard = sql_guard

    def evaluate(self, invocation: ToolInvocation) -> GatekeepResult:
        result = self._evaluate(invocation)
        if not result.allowed:
            logger.warning(
                f"Denied '{invocation.name}' for project '{invocation.project_ref}': "
                f"{result.denial.kind.value} ({result.reason})"
            )
        return result

    def _evaluate(self, invocation: ToolInvocation) -> GatekeepResult:
        if not self.policy.check_project_access(invocation.project_ref):
            return GatekeepResult.denied(
                self.policy.project_denial(invocation.project_ref)
            )

        denial = self.policy.check_operation_allowed(invocation.name)
        if denial:
            return GatekeepResult.denied(denial)

        schemas, tables = extract_schemas_and_tables(invocation.arguments)
        denial = self.policy.check_schema_access(schemas) or self.policy.check_table_access(
            tables
        )
        if denial:
            return GatekeepResult.denied(denial)

        query = invocation.arguments.get("query")
        if invocation.is_sql and query is not None:
            checked = self.sql_guard.check(str(query))
            if not checked.allowed:
                return GatekeepResult.denied(
                    PolicyDenial(
                        DenialKind.SQL_REJECTED,
                        checked.reason,
                        (checked.rule,) if checked.rule else (),
                    )
                )

        return GatekeepResult.proceed()


def build_pipeline(
    config: AccessPolicyConfig, guard_kind: str = "pattern"
) -> GatekeepingPipeline:
    """Wire a pipeline from policy settings, guard read-only mode included."""
    return GatekeepingPipeline(
        policy=AccessPolicy(config),
        sql_guard=build_sql_guard(guard_kind, read_only=config.read_only),
    )
