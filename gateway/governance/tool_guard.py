"""Operation-level access control: projects, operation names, schemas, tables.

Every allow-list is default-permissive: an empty list means "all allowed".
"""
import logging
from enum import Enum
from typing import Iterable, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


# Operations refused while the gateway runs read-only
WRITE_OPERATIONS: frozenset[str] = frozenset(
    {
        "apply_migration",
        "execute_sql_insert",
        "execute_sql_update",
        "execute_sql_delete",
        "deploy_edge_function",
        "create_project",
        "pause_project",
        "restore_project",
        "create_branch",
        "delete_branch",
        "merge_branch",
        "reset_branch",
        "rebase_branch",
        "update_storage_config",
    }
)


class DenialKind(str, Enum):
    PROJECT_NOT_ALLOWED = "project_not_allowed"
    READ_ONLY_VIOLATION = "read_only_violation"
    EXPLICITLY_BLOCKED = "explicitly_blocked"
    SCHEMA_NOT_ALLOWED = "schema_not_allowed"
    TABLE_NOT_ALLOWED = "table_not_allowed"
    SQL_REJECTED = "sql_rejected"


@dataclass(frozen=True)
class PolicyDenial:
    """Why an invocation was refused. ``reason`` is safe to show to clients."""

    kind: DenialKind
    reason: str
    offending: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AccessPolicyConfig:
    """Immutable policy settings. Empty sets mean unrestricted."""

    read_only: bool = False
    allowed_projects: frozenset[str] = frozenset()
    allowed_schemas: frozenset[str] = frozenset()
    allowed_tables: frozenset[str] = frozenset()
    blocked_operations: frozenset[str] = frozenset()

    @classmethod
    def from_lists(
        cls,
        read_only: bool = False,
        allowed_projects: Optional[Iterable[str]] = None,
        allowed_schemas: Optional[Iterable[str]] = None,
        allowed_tables: Optional[Iterable[str]] = None,
        blocked_operations: Optional[Iterable[str]] = None,
    ) -> "AccessPolicyConfig":
        return cls(
            read_only=read_only,
            allowed_projects=frozenset(allowed_projects or ()),
            allowed_schemas=frozenset(allowed_schemas or ()),
            allowed_tables=frozenset(allowed_tables or ()),
            blocked_operations=frozenset(blocked_operations or ()),
        )

    def summary(self) -> dict:
        """Counts for the health endpoint; 'all' where unrestricted."""
        return {
            "readOnly": self.read_only,
            "allowedProjects": len(self.allowed_projects) or "all",
            "allowedSchemas": len(self.allowed_schemas) or "all",
            "allowedTables": len(self.allowed_tables) or "all",
            "blockedOperations": sorted(self.blocked_operations),
        }

    def to_dict(self) -> dict:
        return {
            "readOnly": self.read_only,
            "allowedProjects": sorted(self.allowed_projects),
            "allowedSchemas": sorted(self.allowed_schemas),
            "allowedTables": sorted(self.allowed_tables),
            "blockedOperations": sorted(self.blocked_operations),
        }


class AccessPolicy:
    """Predicate checks over an AccessPolicyConfig. Pure, no side effects."""

    def __init__(self, config: AccessPolicyConfig):
        self._config = config

    @property
    def config(self) -> AccessPolicyConfig:
        return self._config

    @property
    def read_only(self) -> bool:
        return self._config.read_only

    def check_project_access(self, project_ref: str) -> bool:
        """Exact, case-sensitive membership; project refs are opaque."""
        if not self._config.allowed_projects:
            return True
        return project_ref in self._config.allowed_projects

    def project_denial(self, project_ref: str) -> PolicyDenial:
        return PolicyDenial(
            DenialKind.PROJECT_NOT_ALLOWED,
            f"Access denied: Project {project_ref} is not in the allowed projects list",
            (project_ref,),
        )

    def is_write_operation(self, operation: str) -> bool:
        return operation in WRITE_OPERATIONS

    def check_operation_allowed(self, operation: str) -> Optional[PolicyDenial]:
        if self._config.read_only and operation in WRITE_OPERATIONS:
            return PolicyDenial(
                DenialKind.READ_ONLY_VIOLATION,
                f"Operation '{operation}' is not allowed in read-only mode",
                (operation,),
            )
        if operation in self._config.blocked_operations:
            return PolicyDenial(
                DenialKind.EXPLICITLY_BLOCKED,
                f"Operation '{operation}' is explicitly blocked",
                (operation,),
            )
        return None

    def is_operation_visible(self, operation: str) -> bool:
        """Whether a tool should be advertised in tool listings."""
        return self.check_operation_allowed(operation) is None

    def check_schema_access(self, schemas: Iterable[str]) -> Optional[PolicyDenial]:
        offending = _not_in(schemas, self._config.allowed_schemas)
        if offending:
            return PolicyDenial(
                DenialKind.SCHEMA_NOT_ALLOWED,
                f"Access denied: Schemas {', '.join(offending)} are not allowed",
                offending,
            )
        return None

    def check_table_access(self, tables: Iterable[str]) -> Optional[PolicyDenial]:
        offending = _not_in(tables, self._config.allowed_tables)
        if offending:
            return PolicyDenial(
                DenialKind.TABLE_NOT_ALLOWED,
                f"Access denied: Tables {', '.join(offending)} are not allowed",
                offending,
            )
        return None


def _not_in(names: Iterable[str], allowed: frozenset[str]) -> tuple[str, ...]:
    if not allowed:
        return ()
    return tuple(name for name in names if name not in allowed)
