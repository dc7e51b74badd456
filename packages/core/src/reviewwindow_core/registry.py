"""Pending completion tasks keyed by commit SHA."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewwindow_core.timer import ScheduledTask

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Thread-safe map of commit SHA -> the one task allowed to complete it.

    ``put`` replaces and cancels in a single step, so two live tasks never
    share a key. ``remove_if_current`` compares by identity, so a task that
    fires while being superseded cannot clear its successor's entry.

    Callers never lock: every operation takes the registry's own lock, and
    ``ScheduledTask.cancel`` only takes the task's lock, never this one.
    """

    def __init__(self):
        self._tasks: dict[str, ScheduledTask] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._tasks

    def get(self, key: str) -> ScheduledTask | None:
        with self._lock:
            return self._tasks.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._tasks)

    def put(self, key: str, task: ScheduledTask) -> ScheduledTask | None:
        """Store ``task`` for ``key``, cancelling and returning the task it replaces."""
        with self._lock:
            previous = self._tasks.get(key)
            self._tasks[key] = task
            if previous is not None and previous is not task:
                previous.cancel()
        if previous is not None and previous is not task:
            logger.debug("Superseded %r for %s", previous, key[:7])
        return previous

    def remove_if_current(self, key: str, task: ScheduledTask) -> bool:
        """Remove ``key`` only while ``task`` is the stored entry. Returns whether it was removed."""
        with self._lock:
            if self._tasks.get(key) is task:
                del self._tasks[key]
                return True
        return False

    def pop(self, key: str) -> ScheduledTask | None:
        """Remove whatever is stored for ``key`` and cancel it."""
        with self._lock:
            task = self._tasks.pop(key, None)
            if task is not None:
                task.cancel()
        return task

    def cancel_all(self) -> int:
        with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
            for task in tasks:
                task.cancel()
        return len(tasks)
