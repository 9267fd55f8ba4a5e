# src/dbsweep/sql/validator.py
"""
SQL validation and parameter binding using sqlglot.

Listing queries run against a production metastore, so every statement is
parsed and checked before execution:

  1. It parses successfully in the source dialect
  2. It is a single SELECT (CTEs allowed)
  3. It contains no write operations or side-effecting functions

Parameters are written as `:name` placeholders in the statement and bound
as SQL literals on the parsed tree, so the same template works for every
dialect the source supports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Set

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, SqlglotError

# Statement types that are NOT allowed (write operations)
FORBIDDEN_STATEMENT_TYPES: Set[type] = {
    exp.Insert,
    exp.Update,
    exp.Delete,
    exp.Drop,
    exp.Create,
    exp.Alter,
    exp.Merge,
    exp.Grant,
    exp.Command,
}

# Function names that could have side effects (case-insensitive)
FORBIDDEN_FUNCTIONS: Set[str] = {
    "pg_sleep",
    "pg_terminate_backend",
    "pg_cancel_backend",
    "pg_reload_conf",
    "set_config",
    "dblink",
    "dblink_exec",
    "lo_import",
    "lo_export",
    "pg_file_write",
    "pg_read_file",
    "pg_ls_dir",
    "sleep",
}

_DIALECTS = {
    "postgres": "postgres",
    "postgresql": "postgres",
    "duckdb": "duckdb",
}


def sqlglot_dialect(dialect: str) -> str:
    return _DIALECTS.get((dialect or "").lower(), "postgres")


@dataclass
class ValidationResult:
    """Result of SQL validation."""

    is_safe: bool
    reason: Optional[str] = None
    parsed_sql: Optional[str] = None
    dialect: Optional[str] = None


def _parse_single(sql: str, dialect: str) -> exp.Expression:
    statements = [s for s in sqlglot.parse(sql, dialect=dialect) if s is not None]
    if len(statements) != 1:
        raise ParseError(
            f"Expected 1 statement, found {len(statements)}. Multiple statements not allowed."
        )
    return statements[0]


def _forbidden_function(stmt: exp.Expression) -> Optional[str]:
    for node in stmt.walk():
        if isinstance(node, (exp.Func, exp.Anonymous)):
            name = (node.name or "").lower()
            if name in FORBIDDEN_FUNCTIONS:
                return name
    return None


def validate_sql(sql: str, dialect: str = "postgres") -> ValidationResult:
    """
    Validate that SQL is a single, read-only SELECT.

    Returns:
        ValidationResult with is_safe=True and the normalized SQL if safe.
    """
    target = sqlglot_dialect(dialect)
    sql = (sql or "").strip()
    if not sql:
        return ValidationResult(is_safe=False, reason="Empty SQL statement", dialect=target)

    try:
        stmt = _parse_single(sql, target)
    except ParseError as e:
        return ValidationResult(is_safe=False, reason=f"SQL parse error: {e}", dialect=target)

    if not isinstance(stmt, (exp.Select, exp.Union)):
        return ValidationResult(
            is_safe=False,
            reason=f"Only SELECT statements allowed, found: {type(stmt).__name__}",
            dialect=target,
        )

    for node in stmt.walk():
        if type(node) in FORBIDDEN_STATEMENT_TYPES:
            return ValidationResult(
                is_safe=False,
                reason=f"Forbidden operation: {type(node).__name__}",
                dialect=target,
            )

    bad = _forbidden_function(stmt)
    if bad:
        return ValidationResult(is_safe=False, reason=f"Forbidden function: {bad}", dialect=target)

    return ValidationResult(is_safe=True, parsed_sql=stmt.sql(dialect=target), dialect=target)


def placeholders(sql: str, dialect: str = "postgres") -> Set[str]:
    """Names of all `:name` placeholders in a statement."""
    stmt = _parse_single(sql, sqlglot_dialect(dialect))
    return {p.name for p in stmt.find_all(exp.Placeholder) if p.name}


def bind_parameters(sql: str, values: Mapping[str, Any], dialect: str = "postgres") -> str:
    """
    Replace `:name` placeholders with SQL literals.

    Raises:
        KeyError: a placeholder has no value.
        sqlglot.errors.SqlglotError: the statement cannot be parsed.
    """
    target = sqlglot_dialect(dialect)
    stmt = _parse_single(sql, target)

    def _bind(node: exp.Expression) -> exp.Expression:
        if isinstance(node, exp.Placeholder) and node.name:
            if node.name not in values:
                raise KeyError(node.name)
            return exp.convert(values[node.name])
        return node

    return stmt.transform(_bind).sql(dialect=target)


__all__ = [
    "ValidationResult",
    "validate_sql",
    "placeholders",
    "bind_parameters",
    "sqlglot_dialect",
    "SqlglotError",
]
