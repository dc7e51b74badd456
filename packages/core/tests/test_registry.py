"""Tests for the per-commit task registry."""

import threading
from datetime import datetime, timezone

from reviewwindow_core.registry import TaskRegistry
from reviewwindow_core.timer import ScheduledTask

SHA = "a" * 40
SHA2 = "b" * 40


def _task(action=None):
    return ScheduledTask(datetime(2030, 1, 1, tzinfo=timezone.utc), action or (lambda t: None))


class TestPut:
    def test_stores_task(self):
        registry = TaskRegistry()
        task = _task()
        assert registry.put(SHA, task) is None
        assert registry.get(SHA) is task
        assert SHA in registry
        assert len(registry) == 1

    def test_replacing_cancels_previous(self):
        registry = TaskRegistry()
        first, second = _task(), _task()
        registry.put(SHA, first)

        replaced = registry.put(SHA, second)

        assert replaced is first
        assert first.cancelled
        assert not second.cancelled
        assert registry.get(SHA) is second
        assert len(registry) == 1

    def test_putting_same_task_twice_does_not_cancel_it(self):
        registry = TaskRegistry()
        task = _task()
        registry.put(SHA, task)
        registry.put(SHA, task)
        assert not task.cancelled

    def test_replacing_a_fired_task_is_harmless(self):
        registry = TaskRegistry()
        fired = _task()
        fired.run()
        registry.put(SHA, fired)

        registry.put(SHA, _task())

        assert fired.done
        assert not fired.cancelled

    def test_keys_are_independent(self):
        registry = TaskRegistry()
        first, second = _task(), _task()
        registry.put(SHA, first)
        registry.put(SHA2, second)
        assert not first.cancelled
        assert sorted(registry.keys()) == [SHA, SHA2]


class TestRemoveIfCurrent:
    def test_removes_current_task(self):
        registry = TaskRegistry()
        task = _task()
        registry.put(SHA, task)
        assert registry.remove_if_current(SHA, task) is True
        assert SHA not in registry

    def test_does_not_remove_newer_task(self):
        registry = TaskRegistry()
        old, new = _task(), _task()
        registry.put(SHA, old)
        registry.put(SHA, new)

        assert registry.remove_if_current(SHA, old) is False
        assert registry.get(SHA) is new

    def test_missing_key_is_noop(self):
        assert TaskRegistry().remove_if_current(SHA, _task()) is False


class TestPop:
    def test_pop_cancels_and_removes(self):
        registry = TaskRegistry()
        task = _task()
        registry.put(SHA, task)

        assert registry.pop(SHA) is task
        assert task.cancelled
        assert SHA not in registry

    def test_pop_missing_returns_none(self):
        assert TaskRegistry().pop(SHA) is None

    def test_cancel_all(self):
        registry = TaskRegistry()
        tasks = [_task(), _task()]
        registry.put(SHA, tasks[0])
        registry.put(SHA2, tasks[1])

        assert registry.cancel_all() == 2
        assert len(registry) == 0
        assert all(t.cancelled for t in tasks)


def test_concurrent_puts_leave_exactly_one_live_task():
    registry = TaskRegistry()
    tasks = [_task() for _ in range(200)]
    start = threading.Barrier(8)

    def worker(chunk):
        start.wait()
        for task in chunk:
            registry.put(SHA, task)

    threads = [threading.Thread(target=worker, args=(tasks[i::8],)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    live = [t for t in tasks if not t.cancelled]
    assert live == [registry.get(SHA)]
    assert len(registry) == 1
