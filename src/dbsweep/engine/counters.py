# src/dbsweep/engine/counters.py
"""
Thread-safe counter aggregate shared by every task of a run.

    counters = CounterAggregate()
    counters.register("hive", "path_exists")
    counters.increment("hive", TaskState.CONSTRUCTED, 3)
    counters.increment("hive", "path_exists")

Keys live in groups (one group per process). Lifecycle keys (TaskState) are
registered automatically when a group is first touched; any other key must be
registered before it is incremented, so a typo in a counter name fails loudly
instead of silently producing a separate tally.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Dict, List, Union


class TaskState(str, Enum):
    """Lifecycle of one entity task."""

    CONSTRUCTED = "constructed"
    STARTED = "started"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"

    def __str__(self) -> str:
        return self.value


Key = Union[str, TaskState]


def _key(key: Key) -> str:
    return key.value if isinstance(key, TaskState) else str(key)


class CounterAggregate:
    def __init__(self):
        self._lock = threading.Lock()
        self._groups: Dict[str, Dict[str, int]] = {}

    def _group(self, group: str) -> Dict[str, int]:
        # caller holds the lock
        counters = self._groups.get(group)
        if counters is None:
            counters = {state.value: 0 for state in TaskState}
            self._groups[group] = counters
        return counters

    def register(self, group: str, key: Key) -> None:
        with self._lock:
            self._group(group).setdefault(_key(key), 0)

    def increment(self, group: str, key: Key, amount: int = 1) -> int:
        """Add `amount` and return the new total. Unregistered keys raise KeyError."""
        k = _key(key)
        with self._lock:
            counters = self._group(group)
            if k not in counters:
                raise KeyError(f"Counter '{k}' is not registered in group '{group}'")
            counters[k] += amount
            return counters[k]

    def get(self, group: str, key: Key) -> int:
        with self._lock:
            return self._groups.get(group, {}).get(_key(key), 0)

    def groups(self) -> List[str]:
        with self._lock:
            return list(self._groups)

    def group(self, group: str) -> Dict[str, int]:
        with self._lock:
            return dict(self._groups.get(group, {}))

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return {g: dict(c) for g, c in self._groups.items()}

    def __str__(self) -> str:
        lines = []
        for group, counters in self.snapshot().items():
            lines.append(f"{group}:")
            lines.extend(f"  {k}: {v}" for k, v in counters.items())
        return "\n".join(lines)
