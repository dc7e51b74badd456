"""Deferred execution: cancellable, fire-once tasks run at a wall-clock time.

A single daemon thread keeps pending tasks in a min-heap ordered by due time
and sleeps on a condition until the earliest one is due (or a new, earlier
task arrives). Due tasks are handed to a worker pool, so a slow action for one
commit never delays the firing of another.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable

logger = logging.getLogger(__name__)

_PENDING = "pending"
_RUNNING = "running"
_DONE = "done"
_CANCELLED = "cancelled"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScheduledTask:
    """Handle to an action due at ``run_at``.

    The action is called with the task itself, so it can identify its own
    registry entry. A task runs at most once; ``cancel()`` only prevents a
    future run and returns False once the task has started.
    """

    def __init__(self, run_at: datetime, action: Callable[[ScheduledTask], None], name: str = ""):
        self.run_at = run_at
        self.name = name
        self._action = action
        self._state = _PENDING
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<ScheduledTask {self.name or hex(id(self))} at {self.run_at.isoformat()} ({self._state})>"

    @property
    def cancelled(self) -> bool:
        return self._state == _CANCELLED

    @property
    def done(self) -> bool:
        return self._state in (_DONE, _CANCELLED)

    @property
    def pending(self) -> bool:
        return self._state == _PENDING

    def cancel(self) -> bool:
        with self._lock:
            if self._state != _PENDING:
                return False
            self._state = _CANCELLED
            return True

    def _claim(self) -> bool:
        with self._lock:
            if self._state != _PENDING:
                return False
            self._state = _RUNNING
            return True

    def run(self) -> None:
        """Run the action unless the task was cancelled or already ran."""
        if not self._claim():
            return
        try:
            self._action(self)
        finally:
            with self._lock:
                self._state = _DONE


class TaskTimer:
    """Shared scheduling facility for ScheduledTask objects."""

    def __init__(self, max_workers: int = 4, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._heap: list[tuple[float, int, ScheduledTask]] = []
        self._counter = itertools.count()
        self._cond = threading.Condition()
        self._stopped = False
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="review-window")
        self._thread = threading.Thread(target=self._loop, name="review-window-timer", daemon=True)
        self._thread.start()

    def schedule(self, task: ScheduledTask) -> ScheduledTask:
        """Arm ``task``. A ``run_at`` in the past fires as soon as possible."""
        delay = (task.run_at - self._clock()).total_seconds()
        deadline = time.monotonic() + max(delay, 0.0)
        with self._cond:
            if self._stopped:
                raise RuntimeError("TaskTimer has been shut down")
            self._purge_cancelled()
            heapq.heappush(self._heap, (deadline, next(self._counter), task))
            self._cond.notify()
        logger.debug("Scheduled %r in %.1fs", task, max(delay, 0.0))
        return task

    def pending_count(self) -> int:
        with self._cond:
            return sum(1 for _, _, task in self._heap if task.pending)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the timer thread, cancel tasks that have not fired and stop the pool."""
        with self._cond:
            self._stopped = True
            queued = [task for _, _, task in self._heap]
            self._heap.clear()
            self._cond.notify_all()
        for task in queued:
            task.cancel()
        if wait:
            self._thread.join()
        self._executor.shutdown(wait=wait)

    def _purge_cancelled(self) -> None:
        # Caller holds self._cond.
        live = [entry for entry in self._heap if not entry[2].cancelled]
        if len(live) != len(self._heap):
            self._heap[:] = live
            heapq.heapify(self._heap)

    def _loop(self) -> None:
        while True:
            with self._cond:
                while not self._stopped:
                    if not self._heap:
                        self._cond.wait()
                        continue
                    deadline, _, task = self._heap[0]
                    if task.cancelled:
                        heapq.heappop(self._heap)
                        continue
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        heapq.heappop(self._heap)
                        break
                    self._cond.wait(timeout=remaining)
                else:
                    return
            self._dispatch(task)

    def _dispatch(self, task: ScheduledTask) -> None:
        try:
            self._executor.submit(self._run, task)
        except RuntimeError:
            # Pool already shut down; the task will never run.
            task.cancel()

    @staticmethod
    def _run(task: ScheduledTask) -> None:
        try:
            task.run()
        except Exception:
            logger.exception("Scheduled task %r failed", task)
