# tests/test_counters.py
"""Tests for the thread-safe CounterAggregate."""

import random
import threading

import pytest

from dbsweep.engine.counters import CounterAggregate, TaskState


class TestCounterAggregate:
    def test_task_states_registered_per_group(self):
        counters = CounterAggregate()
        counters.increment("hive", TaskState.CONSTRUCTED, 3)

        group = counters.group("hive")
        assert group["constructed"] == 3
        assert {s.value for s in TaskState} <= set(group)

    def test_unregistered_key_raises(self):
        counters = CounterAggregate()

        with pytest.raises(KeyError):
            counters.increment("hive", "path_exists")

    def test_registered_key(self):
        counters = CounterAggregate()
        counters.register("hive", "path_exists")
        counters.increment("hive", "path_exists")
        counters.increment("hive", "path_exists", 4)

        assert counters.get("hive", "path_exists") == 5
        assert counters.get("other", "path_exists") == 0

    def test_register_is_idempotent(self):
        counters = CounterAggregate()
        counters.register("g", "k")
        counters.increment("g", "k")
        counters.register("g", "k")

        assert counters.get("g", "k") == 1

    def test_groups_are_independent(self):
        counters = CounterAggregate()
        counters.increment("a", TaskState.STARTED)

        assert counters.get("b", TaskState.STARTED) == 0
        assert counters.groups() == ["a"]

    def test_concurrent_increments_are_order_independent(self):
        counters = CounterAggregate()
        counters.register("g", "hits")
        amounts = [random.randint(1, 5) for _ in range(2000)]
        chunks = [amounts[i::8] for i in range(8)]

        def work(chunk):
            for a in chunk:
                counters.increment("g", "hits", a)
                counters.increment("g", TaskState.COMPLETED)

        threads = [threading.Thread(target=work, args=(c,)) for c in chunks]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counters.get("g", "hits") == sum(amounts)
        assert counters.get("g", TaskState.COMPLETED) == len(amounts)

    def test_snapshot_is_a_copy(self):
        counters = CounterAggregate()
        counters.increment("g", TaskState.ERROR)
        snap = counters.snapshot()
        counters.increment("g", TaskState.ERROR)

        assert snap["g"]["error"] == 1
        assert counters.get("g", "error") == 2

    def test_task_state_str(self):
        assert str(TaskState.PROCESSING) == "processing"
