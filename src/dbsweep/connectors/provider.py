# src/dbsweep/connectors/provider.py
"""
Connection provider for the metastore.

Hands out short-lived DB-API connections that are safe to use from worker
threads:

  - PostgreSQL: a fresh psycopg connection per `connect()`
  - DuckDB:     one database connection opened lazily, and a per-call
                `cursor()` (DuckDB's thread-safe duplicate connection)
  - BYOC:       the caller's connection (duckdb: per-call cursor); never
                closed by us
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from dbsweep.connectors.handle import DUCKDB, POSTGRES, SourceHandle
from dbsweep.logging import get_logger

_logger = get_logger(__name__)


class ConnectionProvider:
    def __init__(self, handle: SourceHandle, logger=None):
        self.handle = handle
        self._log = logger or _logger
        self._duck: Optional[Any] = None
        self._lock = threading.Lock()

    @property
    def dialect(self) -> str:
        return self.handle.dialect

    @classmethod
    def from_uri(cls, uri: str, logger=None) -> "ConnectionProvider":
        return cls(SourceHandle.from_uri(uri), logger=logger)

    def _duckdb_root(self):
        with self._lock:
            if self._duck is None:
                import duckdb

                self._log.debug("Opening DuckDB metastore %s", self.handle.path)
                self._duck = duckdb.connect(self.handle.path or ":memory:", read_only=False)
            return self._duck

    @contextmanager
    def connect(self) -> Iterator[Any]:
        h = self.handle

        if h.external_conn is not None:
            if h.dialect == DUCKDB:
                cur = h.external_conn.cursor()
                try:
                    yield cur
                finally:
                    cur.close()
            else:
                yield h.external_conn
            return

        if h.dialect == POSTGRES:
            from dbsweep.connectors.postgres import get_connection

            with get_connection(h.db_params) as conn:
                yield conn
            return

        if h.dialect == DUCKDB:
            cur = self._duckdb_root().cursor()
            try:
                yield cur
            finally:
                cur.close()
            return

        raise ValueError(f"Unsupported dialect '{h.dialect}'")

    def close(self) -> None:
        with self._lock:
            if self._duck is not None:
                self._duck.close()
                self._duck = None

    def __enter__(self) -> "ConnectionProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
