# src/dbsweep/__init__.py
"""
dbsweep - fan-out rule checks over the databases of a metastore

Usage:
    # CLI
    $ dbsweep run sweep.yml
    $ dbsweep run sweep.yml --include 'sales_.*' --parallelism 8
    $ dbsweep run sweep.yml --test-sql

    # Python API
    import dbsweep
    report = dbsweep.sweep("sweep.yml", output_dir="/tmp/reports")
    print(report.counters)

    # Bring your own metastore connection
    import duckdb
    report = dbsweep.sweep("sweep.yml", connection=duckdb.connect("meta.duckdb"))
"""

from dbsweep.version import VERSION as __version__

from pathlib import Path
from typing import Any, List, Optional, Union

from dbsweep.config.loader import ConfigLoader
from dbsweep.config.models import CheckSpec, ProcessConfig, SweepConfig
from dbsweep.config.settings import resolve_effective_config
from dbsweep.connectors.handle import SourceHandle
from dbsweep.connectors.provider import ConnectionProvider
from dbsweep.engine.counters import CounterAggregate, TaskState
from dbsweep.engine.dispatcher import DispatchResult, EntityDispatcher
from dbsweep.engine.runner import RunReport, SweepRunner
from dbsweep.errors import DbsweepError, FatalDispatchError
from dbsweep.logging import get_logger
from dbsweep.rules.registry import available_checks
from dbsweep.sql.tabular import TabularResult

_logger = get_logger(__name__)


def load_config(config: Union[str, Path, dict, SweepConfig]) -> SweepConfig:
    """Accept a path, a YAML-shaped dict, or an already built SweepConfig."""
    if isinstance(config, SweepConfig):
        return config
    if isinstance(config, dict):
        return ConfigLoader.from_dict(config)
    return ConfigLoader.from_path(config)


def sweep(
    config: Union[str, Path, dict, SweepConfig],
    *,
    connection: Optional[Any] = None,
    **overrides: Any,
) -> RunReport:
    """
    Run every active process of a sweep configuration.

    Args:
        config: path to YAML, dict, or SweepConfig
        connection: optional DB-API connection (duckdb / psycopg) used instead
            of the configured metastore URI; it is not closed
        **overrides: output_dir, parallelism, dbs_override, include_regex,
            exclude_regex, test_sql, processes

    Raises:
        ConfigError: invalid configuration
        FatalDispatchError: listing query failed or filesystem unavailable
    """
    cfg = resolve_effective_config(load_config(config), overrides)
    provider = None
    if connection is not None:
        provider = ConnectionProvider(SourceHandle.from_connection(connection))
    return SweepRunner(cfg, connections=provider).run()


def list_checks() -> List[str]:
    """Registered check kinds."""
    return available_checks()


__all__ = [
    "__version__",
    "sweep",
    "load_config",
    "list_checks",
    "SweepConfig",
    "ProcessConfig",
    "CheckSpec",
    "SweepRunner",
    "RunReport",
    "EntityDispatcher",
    "DispatchResult",
    "CounterAggregate",
    "TaskState",
    "TabularResult",
    "DbsweepError",
    "FatalDispatchError",
]
