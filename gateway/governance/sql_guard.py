"""SQL statement guards for the execute_sql family of tools.

Two guards share one contract (``check(sql) -> SQLCheckResult``):

- PatternSqlGuard: substring denylist + prefix allow-list over the
  uppercased query. This is the gateway's default and its matching
  semantics are relied on by deployed n8n workflows, blind spots included.
- ParserSqlGuard: sqlglot AST classification of every statement in the
  payload. Opt-in via SUPABASE_SQL_GUARD=parser.
"""
import logging
from enum import Enum
from typing import Optional, Protocol
from dataclasses import dataclass, field

import sqlglot
from sqlglot import exp

logger = logging.getLogger(__name__)


# Rejected in every mode. Order matters: the first hit is reported.
DANGEROUS_PATTERNS: tuple[str, ...] = (
    "DROP TABLE",
    "TRUNCATE TABLE",
    "DELETE FROM",
    "UPDATE ",  # trailing space keeps UPDATED_AT and friends out
    "CREATE TABLE",
    "ALTER TABLE",
    "GRANT ",
    "REVOKE ",
    "DROP DATABASE",
    "DROP SCHEMA",
)

READ_ONLY_INSERT_PATTERN = "INSERT INTO"

# A query must start with one of these (after upper + strip)
ALLOWED_PREFIXES: tuple[str, ...] = (
    "SELECT ",
    "INSERT INTO",
    "WITH ",
    "EXPLAIN ",
    "DESCRIBE ",
)

RULE_READ_ONLY_INSERT = "insert blocked in read-only mode"
RULE_NOT_ALLOWED = "operation not in allow-list"
RULE_UNPARSEABLE = "could not parse SQL"


class SQLStatementType(str, Enum):
    """Statement types the parser guard distinguishes."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    CREATE = "create"
    DROP = "drop"
    ALTER = "alter"
    MERGE = "merge"
    TRUNCATE = "truncate"
    GRANT = "grant"
    REVOKE = "revoke"
    EXPLAIN = "explain"
    DESCRIBE = "describe"
    OTHER = "other"


_EXPRESSION_MAP: dict[type, SQLStatementType] = {
    exp.Select: SQLStatementType.SELECT,
    exp.Union: SQLStatementType.SELECT,
    exp.Intersect: SQLStatementType.SELECT,
    exp.Except: SQLStatementType.SELECT,
    exp.Insert: SQLStatementType.INSERT,
    exp.Update: SQLStatementType.UPDATE,
    exp.Delete: SQLStatementType.DELETE,
    exp.Create: SQLStatementType.CREATE,
    exp.Drop: SQLStatementType.DROP,
    exp.Alter: SQLStatementType.ALTER,
    exp.Merge: SQLStatementType.MERGE,
    exp.TruncateTable: SQLStatementType.TRUNCATE,
    exp.Grant: SQLStatementType.GRANT,
    exp.Describe: SQLStatementType.DESCRIBE,
}

_COMMAND_MAP: dict[str, SQLStatementType] = {
    "EXPLAIN": SQLStatementType.EXPLAIN,
    "REVOKE": SQLStatementType.REVOKE,
    "GRANT": SQLStatementType.GRANT,
    "TRUNCATE": SQLStatementType.TRUNCATE,
}

PARSER_ALLOWED_TYPES: frozenset[SQLStatementType] = frozenset(
    {
        SQLStatementType.SELECT,
        SQLStatementType.INSERT,
        SQLStatementType.EXPLAIN,
        SQLStatementType.DESCRIBE,
    }
)


@dataclass(frozen=True)
class SQLCheckResult:
    """Outcome of guarding one query string.

    ``query`` is the caller's original text when allowed; the guards never
    rewrite or escape it. ``rule`` names the pattern or rule that rejected it.
    """

    allowed: bool
    query: Optional[str] = None
    rule: Optional[str] = None
    reason: Optional[str] = None
    parsed_types: tuple[SQLStatementType, ...] = field(default_factory=tuple)

    @classmethod
    def accept(cls, query: str, parsed_types=()) -> "SQLCheckResult":
        return cls(allowed=True, query=query, parsed_types=tuple(parsed_types))

    @classmethod
    def reject(cls, rule: str, reason: str, parsed_types=()) -> "SQLCheckResult":
        return cls(
            allowed=False, rule=rule, reason=reason, parsed_types=tuple(parsed_types)
        )


class SqlGuard(Protocol):
    read_only: bool

    def check(self, sql: str) -> SQLCheckResult: ...


class PatternSqlGuard:
    """Substring/prefix heuristic. Not a SQL parser.

    Over-blocks (``UPDATE `` inside a string literal) and under-blocks
    (anything after the first statement that avoids the denylist, e.g.
    ``SELECT 1; DROP VIEW v``). Both behaviours are part of the contract.
    """

    def __init__(self, read_only: bool = False):
        self.read_only = read_only

    def check(self, sql: str) -> SQLCheckResult:
        normalized = sql.upper().strip()

        for pattern in DANGEROUS_PATTERNS:
            if pattern in normalized:
                return SQLCheckResult.reject(
                    pattern,
                    f"Dangerous SQL operation blocked: {pattern.strip()}",
                )

        if self.read_only and READ_ONLY_INSERT_PATTERN in normalized:
            return SQLCheckResult.reject(
                RULE_READ_ONLY_INSERT,
                f"SQL rejected: {RULE_READ_ONLY_INSERT}",
            )

        if not any(normalized.startswith(p) for p in ALLOWED_PREFIXES):
            return SQLCheckResult.reject(
                RULE_NOT_ALLOWED,
                f"SQL rejected: {RULE_NOT_ALLOWED}. Only SELECT, INSERT, WITH, "
                "EXPLAIN, and DESCRIBE operations are allowed",
            )

        return SQLCheckResult.accept(sql)


class ParserSqlGuard:
    """Classifies each statement with sqlglot (postgres dialect).

    Every statement of a multi-statement payload must be SELECT, INSERT,
    EXPLAIN or DESCRIBE; CTEs classify as the statement they wrap.
    """

    def __init__(self, read_only: bool = False):
        self.read_only = read_only

    def classify(self, sql: str) -> list[SQLStatementType]:
        try:
            statements = sqlglot.parse(sql, dialect="postgres")
        except sqlglot.errors.ParseError:
            logger.warning(f"Could not parse SQL, will deny: {sql[:100]}")
            return []
        return [
            self._classify_expression(stmt) for stmt in statements if stmt is not None
        ]

    def check(self, sql: str) -> SQLCheckResult:
        types = self.classify(sql)
        if not types:
            return SQLCheckResult.reject(
                RULE_UNPARSEABLE, f"SQL rejected: {RULE_UNPARSEABLE}"
            )

        for stmt_type in types:
            if stmt_type not in PARSER_ALLOWED_TYPES:
                return SQLCheckResult.reject(
                    stmt_type.value,
                    f"SQL rejected: statement type '{stmt_type.value}' is not allowed",
                    types,
                )
            if self.read_only and stmt_type == SQLStatementType.INSERT:
                return SQLCheckResult.reject(
                    RULE_READ_ONLY_INSERT,
                    f"SQL rejected: {RULE_READ_ONLY_INSERT}",
                    types,
                )

        return SQLCheckResult.accept(sql, types)

    def _classify_expression(self, node: exp.Expression) -> SQLStatementType:
        for expr_type, stmt_type in _EXPRESSION_MAP.items():
            if isinstance(node, expr_type):
                return stmt_type

        # EXPLAIN / REVOKE and friends come back as Command nodes
        if isinstance(node, exp.Command):
            cmd = node.this.upper() if isinstance(node.this, str) else ""
            return _COMMAND_MAP.get(cmd, SQLStatementType.OTHER)

        logger.debug(f"Unrecognized expression type: {type(node).__name__}")
        return SQLStatementType.OTHER


GUARDS: dict[str, type] = {
    "pattern": PatternSqlGuard,
    "parser": ParserSqlGuard,
}


def build_sql_guard(kind: str = "pattern", read_only: bool = False) -> SqlGuard:
    """Instantiate a guard by name, falling back to the pattern guard."""
    guard_cls = GUARDS.get((kind or "pattern").lower())
    if guard_cls is None:
        logger.warning(f"Unknown SQL guard '{kind}', using pattern guard")
        guard_cls = PatternSqlGuard
    return guard_cls(read_only=read_only)
