# src/dbsweep/engine/task.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from dbsweep.config.models import ProcessConfig
from dbsweep.connectors.filesystem import ResourceContext, ResourceContextFactory
from dbsweep.engine.counters import CounterAggregate, TaskState
from dbsweep.logging import get_logger, log_exception
from dbsweep.rules.base import RuleCheck, SkipCommandCheck
from dbsweep.sql.query import QuerySource

_logger = get_logger(__name__)


class EntityTask:
    """
    Unit of work for one database.

    Lists the database's locations with the process's paths query, runs every
    check against every location and routes the messages. Results are only
    observable through the shared counters and the sinks.
    """

    def __init__(
        self,
        entity: str,
        process: ProcessConfig,
        checks: Optional[List[RuleCheck]],
        skip_check: Optional[SkipCommandCheck],
        counters: CounterAggregate,
        query_source: QuerySource,
        resource_factory: ResourceContextFactory,
        logger=None,
    ):
        self.entity = entity
        self.process = process
        self.checks = checks or []
        self.skip_check = skip_check
        self.counters = counters
        self.query_source = query_source
        self.resource_factory = resource_factory
        self.context: Optional[ResourceContext] = None
        self._log = logger or _logger

    @property
    def group(self) -> str:
        return self.process.id

    def __repr__(self) -> str:
        return f"EntityTask({self.process.id}:{self.entity})"

    def initialize(self) -> bool:
        """Open the filesystem context. False when it is unavailable."""
        self.context = self.resource_factory.initialize(self.entity)
        return self.context is not None

    def locations(self) -> List[Dict[str, Any]]:
        p = self.process
        if not p.paths_listing_query:
            return [{p.entity_column: self.entity}]
        overrides = {**p.path_listing_parameters, p.entity_parameter: self.entity}
        return self.query_source.execute(p.paths_listing_query, overrides).rows()

    def __call__(self) -> None:
        self.run()

    def run(self) -> None:
        self.counters.increment(self.group, TaskState.STARTED)
        try:
            records = self.locations()
            self.counters.increment(self.group, TaskState.PROCESSING)
            self._log.debug("%s: %d location(s)", self.entity, len(records))

            if self.checks:
                for record in records:
                    for check in self.checks:
                        self._apply(check, record)
            else:
                self._echo(records)
        except Exception as e:
            self.counters.increment(self.group, TaskState.ERROR)
            log_exception(self._log, f"Task for database '{self.entity}' failed", e)
            raise

        self.counters.increment(self.group, TaskState.COMPLETED)

    def _apply(self, check: RuleCheck, record: Mapping[str, Any]) -> None:
        outcome = check.evaluate(record, self.context)
        if outcome.error:
            self._log.debug("%s: check %s errored: %s", self.entity, check.counter, outcome.error)

        if outcome.passed:
            if check.process_on_success:
                check.success_sink.println(check.message(outcome, record, self.entity))
            self.counters.increment(self.group, f"{check.counter}.success")
        else:
            if check.process_on_error:
                check.error_sink.println(check.message(outcome, record, self.entity))
            self.counters.increment(self.group, f"{check.counter}.error")
        self.counters.increment(self.group, check.counter)

    def _echo(self, records: List[Dict[str, Any]]) -> None:
        # no checks: nothing is judged, the task only reports what it saw
        self.counters.increment(self.group, TaskState.SKIPPED)
        if self.skip_check is None:
            return
        for record in records:
            line = self.skip_check.record_line(record, self.entity)
            if line is not None:
                self.skip_check.success_sink.println(line)
            self.counters.increment(self.group, self.skip_check.counter)
