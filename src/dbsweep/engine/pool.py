# src/dbsweep/engine/pool.py
"""
Bounded worker pool: a ThreadPoolExecutor that remembers what it was given.

    pool = WorkerPool(max_workers=4)
    pool.submit(task)
    errors = pool.wait()
    pool.shutdown()

Only pending work can be cancelled. `abandon()` stops waiting for running
tasks; they finish in the background.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Any, Callable, List

from dbsweep.logging import get_logger

_logger = get_logger(__name__)


class WorkerPool:
    def __init__(self, max_workers: int = 4, logger=None):
        """
        Args:
            max_workers: ThreadPool size (default: 4)
            logger: optional logger
        """
        self.max_workers = max_workers
        self._log = logger or _logger
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dbsweep")
        self._futures: List[Future] = []
        self._lock = threading.Lock()

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future = self._pool.submit(fn, *args, **kwargs)
        with self._lock:
            self._futures.append(future)
        return future

    @property
    def futures(self) -> List[Future]:
        with self._lock:
            return list(self._futures)

    def wait(self) -> List[BaseException]:
        """Block until every submitted future is done; return task exceptions."""
        futures = self.futures
        wait_futures(futures)
        errors = []
        for f in futures:
            if f.cancelled():
                continue
            exc = f.exception()
            if exc is not None:
                errors.append(exc)
        return errors

    def cancel_pending(self) -> int:
        cancelled = sum(1 for f in self.futures if f.cancel())
        if cancelled:
            self._log.warning("Cancelled %d pending task(s)", cancelled)
        return cancelled

    def shutdown(self, cancel_futures: bool = False) -> None:
        self._pool.shutdown(wait=True, cancel_futures=cancel_futures)

    def abandon(self) -> None:
        """Cancel pending work and return without waiting for running tasks."""
        self.cancel_pending()
        running = sum(1 for f in self.futures if f.running())
        if running:
            self._log.warning("Abandoning %d running task(s)", running)
        self._pool.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abandon()
        else:
            self.shutdown()
