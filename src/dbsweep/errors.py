# src/dbsweep/errors.py
"""
Exception hierarchy for dbsweep.

Fatal vs. recoverable
---------------------
- ConfigError, QueryDefinitionError: the run never starts.
- FatalDispatchError: the run stops mid-way (listing query failed, or a
  per-database resource context could not be opened while checks are
  configured). Carries the process exit code.
- QueryExecutionError / ResourceContextError: raised by collaborators and
  either escalated to FatalDispatchError or recorded per task/query.
"""

from __future__ import annotations

from typing import Optional


class DbsweepError(Exception):
    """Base class for all dbsweep errors."""

    hint: Optional[str] = None


class ConfigError(DbsweepError):
    """Configuration file is missing, unparsable or semantically invalid."""

    hint = "Check the YAML configuration file (use --verbose for the full error)."


class QueryDefinitionError(DbsweepError):
    """A query template id is not present in the query catalogue."""

    def __init__(self, query_id: str):
        super().__init__(f"Unknown query definition '{query_id}'")
        self.query_id = query_id


class QueryExecutionError(DbsweepError):
    """A statement could not be bound, validated or executed."""

    def __init__(self, query_id: str, message: str):
        super().__init__(f"Query '{query_id}' failed: {message}")
        self.query_id = query_id
        self.reason = message


class TabularResultError(DbsweepError):
    """A result set could not be turned into a TabularResult."""


class UnknownColumnError(TabularResultError, KeyError):
    """A column name did not resolve against the result header."""

    def __init__(self, name: str, header: list[str]):
        super().__init__(f"Column '{name}' not found; available: {', '.join(header) or '<none>'}")
        self.name = name
        self.header = list(header)

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class ResourceContextError(DbsweepError):
    """The per-database resource context (filesystem) is unavailable."""


class FatalDispatchError(DbsweepError):
    """Aborts the whole run; no partial dispatch is allowed."""

    def __init__(self, message: str, exit_code: int = 255):
        super().__init__(message)
        self.exit_code = exit_code


CONNECTIVITY_HINT = (
    "Issue establishing a connection to the filesystem. "
    "Check credentials (kerberos), client configuration, "
    "and/or availability of the filesystem service. "
    "Can you list the filesystem root from this host?"
)


def format_error_for_cli(exc: BaseException) -> str:
    """Render an exception as a short, user-facing message."""
    msg = str(exc) or exc.__class__.__name__
    cause = exc.__cause__
    if cause is not None and str(cause) and str(cause) not in msg:
        msg = f"{msg} ({cause})"
    hint = getattr(exc, "hint", None)
    if hint:
        msg = f"{msg}\n  Hint: {hint}"
    return msg
