# src/dbsweep/engine/runner.py
"""
SweepRunner: run every active process of a SweepConfig on one shared pool.

    report = SweepRunner(config).run()
    print(report.counters)

Collaborators (connection provider, filesystem factory, counters, sinks,
pool) are built once per run and shared by all dispatchers. Tests inject a
provider or filesystem factory directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from dbsweep.config.models import SweepConfig
from dbsweep.connectors.filesystem import ResourceContextFactory
from dbsweep.connectors.provider import ConnectionProvider
from dbsweep.engine.counters import CounterAggregate
from dbsweep.engine.dispatcher import DispatchResult, EntityDispatcher
from dbsweep.engine.pool import WorkerPool
from dbsweep.engine.sinks import SinkRegistry
from dbsweep.errors import FatalDispatchError
from dbsweep.logging import get_logger
from dbsweep.sql.query import QuerySource

_logger = get_logger(__name__)


@dataclass
class RunReport:
    name: str
    dispatches: List[DispatchResult] = field(default_factory=list)
    counters: Dict[str, Dict[str, int]] = field(default_factory=dict)
    task_errors: List[str] = field(default_factory=list)
    output_details: Dict[str, List[str]] = field(default_factory=dict)
    files: List[Path] = field(default_factory=list)

    @property
    def tests_failed(self) -> bool:
        return any(d.test_passed is False for d in self.dispatches)

    @property
    def ok(self) -> bool:
        return not self.task_errors and not self.tests_failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "ok": self.ok,
            "dispatches": [d.to_dict() for d in self.dispatches],
            "counters": self.counters,
            "task_errors": list(self.task_errors),
            "files": [str(p) for p in self.files],
        }


class SweepRunner:
    def __init__(
        self,
        config: SweepConfig,
        *,
        connections: Optional[ConnectionProvider] = None,
        resource_factory: Optional[ResourceContextFactory] = None,
        err_stream: Optional[TextIO] = None,
        logger=None,
    ):
        self.config = config
        self._connections = connections
        self._resource_factory = resource_factory
        self._err = err_stream
        self._log = logger or _logger

    def run(self) -> RunReport:
        cfg = self.config
        owns_connections = self._connections is None
        connections = self._connections or ConnectionProvider.from_uri(cfg.metastore, logger=self._log)
        resource_factory = self._resource_factory or ResourceContextFactory(cfg.filesystem, logger=self._log)

        counters = CounterAggregate()
        sinks = SinkRegistry(cfg.output_dir, logger=self._log)
        source = QuerySource(cfg.queries, connections, logger=self._log)
        pool = WorkerPool(max_workers=cfg.parallelism, logger=self._log)

        report = RunReport(name=cfg.name)
        fatal = False
        try:
            # every dispatcher is built (and its checks validated) before any runs
            dispatchers = []
            for process in cfg.processes:
                if not process.active:
                    self._log.info("Skipping inactive process %s", process.id)
                    continue
                dispatchers.append(
                    EntityDispatcher(
                        process,
                        query_source=source,
                        pool=pool,
                        counters=counters,
                        sinks=sinks,
                        resource_factory=resource_factory,
                        err_stream=self._err,
                        logger=self._log,
                    )
                )

            for dispatcher in dispatchers:
                self._log.info("Running process %s", dispatcher.process.name)
                report.dispatches.append(dispatcher.run())
                report.output_details[dispatcher.process.id] = dispatcher.output_details()

            report.task_errors = [str(e) or e.__class__.__name__ for e in pool.wait()]
        except FatalDispatchError:
            fatal = True
            raise
        finally:
            if fatal:
                # running tasks are not awaited; their late writes hit closed sinks
                pool.abandon()
            else:
                pool.shutdown()
            sinks.close_all()
            if owns_connections:
                connections.close()

        report.counters = counters.snapshot()
        report.files = [p for p in sinks.paths() if p.exists()]
        return report
