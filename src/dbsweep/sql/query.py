# src/dbsweep/sql/query.py
"""
QuerySource: run catalogued query templates against the metastore.

    source = QuerySource(config.queries, provider)
    dbs = source.execute("db_listing", {"catalog": "hive"})   # TabularResult

Each call:
  1) looks up the QueryDefinition (QueryDefinitionError if unknown)
  2) merges parameter defaults with the overrides and coerces types
  3) binds `:name` placeholders as SQL literals (sqlglot)
  4) validates the bound statement is a single read-only SELECT
  5) executes on a fresh provider connection and builds a TabularResult

Any failure in 2-5 surfaces as QueryExecutionError. No retries.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from dbsweep.config.models import QueryDefinition
from dbsweep.connectors.provider import ConnectionProvider
from dbsweep.errors import DbsweepError, QueryDefinitionError, QueryExecutionError
from dbsweep.logging import get_logger
from dbsweep.sql.tabular import TabularResult
from dbsweep.sql.validator import SqlglotError, bind_parameters, validate_sql

_logger = get_logger(__name__)


class QuerySource:
    def __init__(
        self,
        definitions: Mapping[str, QueryDefinition],
        connections: ConnectionProvider,
        logger=None,
    ):
        self.definitions = dict(definitions)
        self.connections = connections
        self._log = logger or _logger

    @property
    def dialect(self) -> str:
        return self.connections.dialect

    def definition(self, query_id: str) -> QueryDefinition:
        try:
            return self.definitions[query_id]
        except KeyError:
            raise QueryDefinitionError(query_id) from None

    def parameter_values(self, query_id: str, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Defaults from the definition, replaced by overrides, coerced by sql_type."""
        qd = self.definition(query_id)
        values: Dict[str, Any] = {name: p.initial for name, p in qd.parameters.items()}
        values.update(overrides or {})
        try:
            return {
                name: (qd.parameters[name].coerce(v) if name in qd.parameters else v)
                for name, v in values.items()
            }
        except (TypeError, ValueError) as e:
            raise QueryExecutionError(query_id, f"bad parameter value: {e}") from e

    def render(self, query_id: str, overrides: Optional[Mapping[str, Any]] = None) -> str:
        """The bound, validated SQL that `execute()` would run."""
        qd = self.definition(query_id)
        values = self.parameter_values(query_id, overrides)

        try:
            sql = bind_parameters(qd.statement, values, dialect=self.dialect)
        except KeyError as e:
            raise QueryExecutionError(query_id, f"no value for parameter :{e.args[0]}") from e
        except SqlglotError as e:
            raise QueryExecutionError(query_id, f"SQL parse error: {e}") from e

        check = validate_sql(sql, dialect=self.dialect)
        if not check.is_safe:
            raise QueryExecutionError(query_id, check.reason or "unsafe SQL")
        return sql

    def execute(self, query_id: str, overrides: Optional[Mapping[str, Any]] = None) -> TabularResult:
        sql = self.render(query_id, overrides)
        self._log.debug("Executing %s: %s", query_id, sql)

        try:
            with self.connections.connect() as conn:
                cursor = conn.cursor()
                try:
                    cursor.execute(sql)
                    return TabularResult.from_cursor(cursor, logger=self._log)
                finally:
                    cursor.close()
        except DbsweepError as e:
            if isinstance(e, QueryExecutionError):
                raise
            raise QueryExecutionError(query_id, str(e)) from e
        except Exception as e:
            raise QueryExecutionError(query_id, str(e)) from e
