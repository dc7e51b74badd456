"""Tests for ScheduledTask and the TaskTimer facility."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from reviewwindow_core.timer import ScheduledTask, TaskTimer, utcnow

WAIT = 5  # generous upper bound for thread hand-offs


@pytest.fixture
def timer():
    t = TaskTimer(max_workers=2)
    yield t
    t.shutdown()


class TestScheduledTask:
    def test_runs_action_with_itself(self):
        seen = []
        task = ScheduledTask(utcnow(), seen.append)
        task.run()
        assert seen == [task]
        assert task.done

    def test_runs_at_most_once(self):
        seen = []
        task = ScheduledTask(utcnow(), seen.append)
        task.run()
        task.run()
        assert len(seen) == 1

    def test_cancelled_task_does_not_run(self):
        seen = []
        task = ScheduledTask(utcnow(), seen.append)
        assert task.cancel() is True
        task.run()
        assert seen == []
        assert task.cancelled

    def test_cancel_after_run_is_noop(self):
        task = ScheduledTask(utcnow(), lambda t: None)
        task.run()
        assert task.cancel() is False
        assert not task.cancelled

    def test_cancel_does_not_interrupt_running_action(self):
        started, release = threading.Event(), threading.Event()
        finished = []

        def action(task):
            started.set()
            release.wait(WAIT)
            finished.append(task)

        task = ScheduledTask(utcnow(), action)
        runner = threading.Thread(target=task.run)
        runner.start()
        assert started.wait(WAIT)

        assert task.cancel() is False
        release.set()
        runner.join(WAIT)
        assert finished == [task]

    def test_failed_action_still_marks_done(self):
        def action(task):
            raise RuntimeError("boom")

        task = ScheduledTask(utcnow(), action)
        with pytest.raises(RuntimeError):
            task.run()
        assert task.done


class TestTaskTimer:
    def test_past_due_task_fires(self, timer):
        fired = threading.Event()
        timer.schedule(ScheduledTask(utcnow() - timedelta(seconds=5), lambda t: fired.set()))
        assert fired.wait(WAIT)

    def test_fires_after_delay(self, timer):
        fired_at = []
        done = threading.Event()
        due = utcnow() + timedelta(milliseconds=200)

        def action(task):
            fired_at.append(utcnow())
            done.set()

        timer.schedule(ScheduledTask(due, action))
        assert done.wait(WAIT)
        assert fired_at[0] >= due - timedelta(milliseconds=20)

    def test_earlier_task_scheduled_later_fires_first(self, timer):
        order = []
        both = threading.Event()

        def record(label):
            def action(task):
                order.append(label)
                if len(order) == 2:
                    both.set()

            return action

        timer.schedule(ScheduledTask(utcnow() + timedelta(milliseconds=400), record("late")))
        timer.schedule(ScheduledTask(utcnow() + timedelta(milliseconds=50), record("early")))
        assert both.wait(WAIT)
        assert order == ["early", "late"]

    def test_cancelled_task_never_fires(self, timer):
        fired = threading.Event()
        sentinel = threading.Event()
        task = ScheduledTask(utcnow() + timedelta(milliseconds=100), lambda t: fired.set())
        timer.schedule(task)
        task.cancel()
        timer.schedule(ScheduledTask(utcnow() + timedelta(milliseconds=300), lambda t: sentinel.set()))

        assert sentinel.wait(WAIT)
        assert not fired.is_set()

    def test_failing_action_does_not_stop_timer(self, timer):
        fired = threading.Event()

        def explode(task):
            raise RuntimeError("boom")

        timer.schedule(ScheduledTask(utcnow(), explode))
        timer.schedule(ScheduledTask(utcnow() + timedelta(milliseconds=50), lambda t: fired.set()))
        assert fired.wait(WAIT)

    def test_pending_count(self, timer):
        far = utcnow() + timedelta(hours=1)
        timer.schedule(ScheduledTask(far, lambda t: None))
        cancelled = timer.schedule(ScheduledTask(far, lambda t: None))
        cancelled.cancel()
        assert timer.pending_count() == 1

    def test_superseded_tasks_do_not_accumulate(self, timer):
        far = utcnow() + timedelta(days=3)
        previous = None
        for _ in range(10):
            if previous is not None:
                previous.cancel()
            previous = timer.schedule(ScheduledTask(far, lambda t: None))

        assert len(timer._heap) == 1
        assert timer.pending_count() == 1

    def test_shutdown_cancels_queued_tasks(self):
        t = TaskTimer()
        task = t.schedule(ScheduledTask(utcnow() + timedelta(hours=1), lambda t: None))
        t.shutdown()
        assert task.cancelled

    def test_schedule_after_shutdown_raises(self):
        t = TaskTimer()
        t.shutdown()
        with pytest.raises(RuntimeError):
            t.schedule(ScheduledTask(utcnow(), lambda t: None))

    def test_uses_injected_clock(self):
        fired = threading.Event()
        frozen = datetime(2020, 1, 1, tzinfo=timezone.utc)
        t = TaskTimer(clock=lambda: frozen)
        try:
            # Due relative to the injected clock, not the real one.
            t.schedule(ScheduledTask(frozen - timedelta(seconds=1), lambda task: fired.set()))
            assert fired.wait(WAIT)
        finally:
            t.shutdown()
