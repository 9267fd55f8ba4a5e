# tests/conftest.py
"""
Shared fixtures.

The metastore is an in-memory DuckDB database passed in as a BYOC
connection; the filesystem is a temporary local directory.
"""

from __future__ import annotations

from pathlib import Path

import duckdb
import pytest

from dbsweep.config.models import QueryDefinition
from dbsweep.connectors.filesystem import ResourceContextFactory
from dbsweep.connectors.handle import SourceHandle
from dbsweep.connectors.provider import ConnectionProvider
from dbsweep.engine.counters import CounterAggregate
from dbsweep.engine.pool import WorkerPool
from dbsweep.engine.sinks import SinkRegistry
from dbsweep.sql.query import QuerySource

from utils import DATABASES, QUERIES


@pytest.fixture
def warehouse(tmp_path) -> Path:
    """db1 and db2 have their directories on disk; db3's is missing."""
    root = tmp_path / "warehouse"
    for db in ("db1", "db2"):
        (root / f"{db}.db").mkdir(parents=True)
    return root


@pytest.fixture
def metastore(warehouse):
    con = duckdb.connect()
    con.execute("CREATE TABLE dbs (name VARCHAR, owner VARCHAR)")
    con.executemany(
        "INSERT INTO dbs VALUES (?, ?)",
        [("db1", "alice"), ("db2", "bob"), ("db3", "alice")],
    )
    con.execute("CREATE TABLE locations (db VARCHAR, path VARCHAR)")
    con.executemany(
        "INSERT INTO locations VALUES (?, ?)",
        [(db, str(warehouse / f"{db}.db")) for db in DATABASES],
    )
    yield con
    con.close()


@pytest.fixture
def connections(metastore) -> ConnectionProvider:
    return ConnectionProvider(SourceHandle.from_connection(metastore))


@pytest.fixture
def query_source(connections) -> QuerySource:
    return QuerySource(
        {k: QueryDefinition.model_validate(v) for k, v in QUERIES.items()},
        connections,
    )


@pytest.fixture
def counters() -> CounterAggregate:
    return CounterAggregate()


@pytest.fixture
def sinks(tmp_path):
    registry = SinkRegistry(tmp_path / "reports")
    yield registry
    registry.close_all()


@pytest.fixture
def pool():
    p = WorkerPool(max_workers=2)
    yield p
    p.shutdown()


@pytest.fixture
def fs_factory(tmp_path) -> ResourceContextFactory:
    return ResourceContextFactory(tmp_path.as_uri())


@pytest.fixture
def broken_fs_factory(tmp_path) -> ResourceContextFactory:
    return ResourceContextFactory((tmp_path / "does-not-exist").as_uri())

