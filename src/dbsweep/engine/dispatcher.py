# src/dbsweep/engine/dispatcher.py
"""
EntityDispatcher: one process's fan-out from "list the databases" to
"one EntityTask per database on the pool".

    dispatcher = EntityDispatcher(process, query_source=..., pool=..., counters=...,
                                  sinks=..., resource_factory=...)
    result = dispatcher.run()

run() is either test mode (validate both listing queries, dispatch nothing)
or the normal sequence:

  1) prepare_output_routing()  resolve sinks, register counters, write headers
  2) resolve_entities()        override list, or listing query + one filter
  3) dispatch(entities)        count, build, initialise and submit each task

Submission is fire-and-forget. The futures are kept on `self.futures` so the
runner can wait for them; task results are only visible through counters.
"""

from __future__ import annotations

import sys
import traceback
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, TextIO

from dbsweep.config.models import ProcessConfig
from dbsweep.config.settings import substitute_variables
from dbsweep.connectors.filesystem import ResourceContextFactory
from dbsweep.engine.counters import CounterAggregate, TaskState
from dbsweep.engine.pool import WorkerPool
from dbsweep.engine.sinks import Sink, SinkRegistry
from dbsweep.engine.task import EntityTask
from dbsweep.errors import CONNECTIVITY_HINT, ConfigError, DbsweepError, FatalDispatchError, UnknownColumnError
from dbsweep.logging import get_logger, log_exception
from dbsweep.rules.base import RuleCheck, SkipCommandCheck
from dbsweep.rules.factory import RESERVED_COUNTERS, CheckFactory
from dbsweep.sql.query import QuerySource

_logger = get_logger(__name__)

CHECKS_SKIPPED_NOTICE = "Command Checks Skipped.  Rules Processing Skipped."


@dataclass
class DispatchResult:
    process_id: str
    entities: List[str] = field(default_factory=list)
    futures: List[Future] = field(default_factory=list)
    # None unless the dispatcher ran in test mode
    test_passed: Optional[bool] = None

    @property
    def test_mode(self) -> bool:
        return self.test_passed is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "process_id": self.process_id,
            "entities": list(self.entities),
            "submitted": len(self.futures),
            "test_passed": self.test_passed,
        }


class EntityDispatcher:
    def __init__(
        self,
        process: ProcessConfig,
        *,
        query_source: QuerySource,
        pool: WorkerPool,
        counters: CounterAggregate,
        sinks: SinkRegistry,
        resource_factory: ResourceContextFactory,
        err_stream: Optional[TextIO] = None,
        logger=None,
    ):
        self.process = process
        self.query_source = query_source
        self.pool = pool
        self.counters = counters
        self.sinks = sinks
        self.resource_factory = resource_factory
        self._err = err_stream
        self._log = logger or _logger

        self.checks: Optional[List[RuleCheck]] = CheckFactory(process.checks).build_checks()
        self.skip_check: Optional[SkipCommandCheck] = (
            SkipCommandCheck(process.skip_check) if process.skip_check else None
        )
        if self.skip_check is not None and self.skip_check.counter in RESERVED_COUNTERS:
            raise ConfigError(f"Skip check counter '{self.skip_check.counter}' is reserved")
        self.success_sink: Sink = sinks.default_success(process.id)
        self.error_sink: Sink = sinks.default_error(process.id)

        self.futures: List[Future] = []
        self._routed = False

    @property
    def group(self) -> str:
        return self.process.id

    def public_view(self) -> Dict[str, Any]:
        return self.process.public_view()

    def __repr__(self) -> str:
        return f"EntityDispatcher({self.process.id!r}, checks={len(self.checks or [])})"

    # ------------------------------------------------------------------ #
    # Output routing
    # ------------------------------------------------------------------ #

    def _resolve_sinks(self) -> None:
        for check in self.checks or []:
            check.success_sink = (
                self.sinks.resolve(check.success_filename) if check.success_filename else self.success_sink
            )
            check.error_sink = (
                self.sinks.resolve(check.error_filename) if check.error_filename else self.error_sink
            )
        if self.skip_check is not None:
            self.skip_check.success_sink = self.success_sink
            self.skip_check.error_sink = self.error_sink

    def register_counters(self) -> None:
        if self.checks:
            for check in self.checks:
                for key in (check.counter, f"{check.counter}.success", f"{check.counter}.error"):
                    self.counters.register(self.group, key)
        elif self.skip_check is not None:
            self.counters.register(self.group, self.skip_check.counter)
        else:
            self.counters.register(self.group, TaskState.SKIPPED)

    @staticmethod
    def _text_lines(title: Optional[str], note: Optional[str], header: Optional[str]) -> List[str]:
        # variables are expanded in titles only
        return [t for t in (substitute_variables(title), note, header) if t]

    def prepare_output_routing(self) -> None:
        """
        Resolve every check's sinks, register counters and prime the report
        files with header text. Runs once; later calls are no-ops.

        The process title/note/header goes to the default success sink and to
        every check sink (each file receives it once). A check's own
        title/note/header then goes to its error sink when `process_on_error`
        and to its success sink when `process_on_success`. Inverted checks
        are primed the same way; inversion only changes evaluation.
        """
        if self._routed:
            return
        self._resolve_sinks()
        self.register_counters()

        shared = self._text_lines(self.process.title, self.process.note, self.process.header)
        primed: List[Sink] = []

        def prime(sink: Sink) -> None:
            if any(sink is s for s in primed):
                return
            primed.append(sink)
            for line in shared:
                sink.println(line)

        prime(self.success_sink)

        for check in self.checks or []:
            prime(check.success_sink)
            prime(check.error_sink)
            own = self._text_lines(check.title, check.note, check.header)
            if check.process_on_error:
                for line in own:
                    check.error_sink.println(line)
            if check.process_on_success:
                for line in own:
                    check.success_sink.println(line)

        self._routed = True

    def output_details(self) -> List[str]:
        """Dedicated output files per check, for the end-of-run summary."""
        out_dir = self.sinks.output_dir
        details: List[str] = []
        for check in self.checks or []:
            if check.success_filename:
                desc = check.spec.success_description or f"{check.counter} success"
                details.append(f"\t{desc} -> {out_dir}/{check.success_filename}")
            if check.error_filename:
                desc = check.spec.error_description or f"{check.counter} error"
                details.append(f"\t{desc} -> {out_dir}/{check.error_filename}")
        return details

    # ------------------------------------------------------------------ #
    # Entities
    # ------------------------------------------------------------------ #

    def resolve_entities(self) -> List[str]:
        p = self.process
        if p.dbs_override:
            self._log.info("%s: using %d database(s) from override", p.id, len(p.dbs_override))
            return list(p.dbs_override)

        try:
            result = self.query_source.execute(p.db_listing_query, p.db_listing_parameters)
            column = result.index_of(p.entity_column)
            if p.include_regex:
                result.keep(p.include_regex, column)
            elif p.exclude_regex:
                result.remove(p.exclude_regex, column)
        except UnknownColumnError as e:
            raise FatalDispatchError(
                f"Listing query '{p.db_listing_query}' has no column '{p.entity_column}'"
            ) from e
        except DbsweepError as e:
            raise FatalDispatchError("Issue getting 'databases' to process.") from e

        names = result.get_column(p.entity_column)
        entities = [v for v in names if v is not None]
        if len(entities) < len(names):
            self._log.info("%s: dropped %d NULL database name(s)", p.id, len(names) - len(entities))
        self._log.info("%s: %d database(s) to process", p.id, len(entities))
        return entities

    def dispatch(self, entities: Sequence[str]) -> List[Future]:
        """
        Submit one task per entity, in order.

        Raises FatalDispatchError when an entity's filesystem context cannot
        be opened and checks are configured; nothing after it is submitted.
        """
        self.counters.increment(self.group, TaskState.CONSTRUCTED, len(entities))

        submitted: List[Future] = []
        for entity in entities:
            task = EntityTask(
                entity,
                self.process,
                self.checks,
                self.skip_check,
                self.counters,
                self.query_source,
                self.resource_factory,
                logger=self._log,
            )
            if not task.initialize() and self.checks:
                print(CONNECTIVITY_HINT, file=self._err or sys.stderr)
                raise FatalDispatchError(
                    f"Unable to open filesystem context for database '{entity}'"
                )
            future = self.pool.submit(task)
            submitted.append(future)
            self.futures.append(future)

        if not self.checks:
            line = None
            if self.skip_check is not None:
                line = substitute_variables(self.skip_check.title) or self.skip_check.note
            self.success_sink.println(line or CHECKS_SKIPPED_NOTICE)

        return submitted

    # ------------------------------------------------------------------ #
    # Test mode
    # ------------------------------------------------------------------ #

    def _test_query(self, query_id: str, overrides: Dict[str, Any]) -> bool:
        try:
            self.query_source.execute(query_id, overrides)
        except Exception as e:
            log_exception(self._log, f"Test of query '{query_id}' failed", e)
            self.error_sink.println(query_id)
            self.error_sink.println(f"> Processing Issue: {e}")
            self.error_sink.println("".join(traceback.format_exception(type(e), e, e.__traceback__)).rstrip())
            return False
        self._log.info("Test of query '%s' passed", query_id)
        return True

    def test_mode(self) -> bool:
        """
        Run both listing queries once without dispatching anything.

        Each query is tested independently; failures land in the error sink.
        """
        p = self.process
        ok = self._test_query(p.db_listing_query, dict(p.db_listing_parameters))

        if p.paths_listing_query:
            overrides = dict(p.path_listing_parameters)
            known = self.query_source.definitions.get(p.paths_listing_query)
            if p.entity_parameter not in overrides and (known is None or p.entity_parameter not in known.parameters):
                overrides[p.entity_parameter] = ""
            ok = self._test_query(p.paths_listing_query, overrides) and ok

        return ok

    # ------------------------------------------------------------------ #
    # Runnable
    # ------------------------------------------------------------------ #

    def run(self) -> DispatchResult:
        if self.process.test_sql:
            return DispatchResult(self.process.id, test_passed=self.test_mode())

        self.prepare_output_routing()
        entities = self.resolve_entities()
        futures = self.dispatch(entities)
        return DispatchResult(self.process.id, entities=entities, futures=futures)
