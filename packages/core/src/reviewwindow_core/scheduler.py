"""Review window orchestration: decide, post, and schedule completion."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from reviewwindow_core.timer import ScheduledTask, utcnow
from reviewwindow_core.utils.duration import make_human_readable
from reviewwindow_status.models import CommitState

if TYPE_CHECKING:
    from reviewwindow_core.registry import TaskRegistry
    from reviewwindow_core.resolver import DurationResolver
    from reviewwindow_core.timer import TaskTimer
    from reviewwindow_status.base import BaseNotifier

logger = logging.getLogger(__name__)

SUCCESS_DESCRIPTION = "The review window has passed"


def _as_utc(value: datetime) -> datetime:
    # PyGithub returned naive UTC datetimes before 2.0.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_timestamp(text: str) -> datetime:
    if not isinstance(text, str):
        raise ValueError(f"Expected an ISO-8601 timestamp, got {text!r}")
    return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))


@dataclass(frozen=True)
class ReviewEvent:
    """One pull request evaluation: which commit, and when its window opened."""

    repo: str  # owner/name
    number: int
    sha: str
    created_at: datetime
    action: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> ReviewEvent:
        """Build an event from a ``pull_request`` webhook payload.

        Raises KeyError or ValueError when required fields are missing or malformed.
        """
        pull = payload["pull_request"]
        return cls(
            repo=payload["repository"]["full_name"],
            number=int(pull["number"]),
            sha=pull["head"]["sha"],
            created_at=_parse_timestamp(pull["created_at"]),
            action=payload.get("action"),
        )

    @classmethod
    def from_pull(cls, repo_name: str, pull) -> ReviewEvent:
        """Build an event from a PyGithub PullRequest."""
        return cls(
            repo=repo_name,
            number=pull.number,
            sha=pull.head.sha,
            created_at=_as_utc(pull.created_at),
        )


@dataclass(frozen=True)
class WindowDecision:
    """Outcome of one evaluation, returned for logging and the `check` command."""

    sha: str
    window: timedelta
    close_time: datetime
    elapsed: bool

    @property
    def human_window(self) -> str:
        return _render_window(self.window)


def _render_window(window: timedelta) -> str:
    return make_human_readable(window) or "0 second"


def pending_description(window: timedelta) -> str:
    return f"The review window of {_render_window(window)} has not passed"


class WindowScheduler:
    """Blocks merging until each pull request's review window has closed.

    Owns no global state: the registry, timer and notifier are injected by
    whoever builds the scheduler, and the same instance serves webhook events
    and startup replay.
    """

    def __init__(
        self,
        resolver: DurationResolver,
        notifier: BaseNotifier,
        registry: TaskRegistry,
        timer: TaskTimer,
        repositories=None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.resolver = resolver
        self.notifier = notifier
        self.registry = registry
        self.timer = timer
        self.repositories = repositories  # RepositoryQuery-like: .get(full_name)
        self._clock = clock

    def evaluate(self, repo, number: int, created_at: datetime, sha: str) -> WindowDecision:
        """Work out the window and whether it has closed, without side effects."""
        window = self.resolver.resolve(repo, number)
        close_time = _as_utc(created_at) + window
        elapsed = self._clock() >= close_time
        logger.info(
            "created_at(%s) + window(%s) = close_time(%s), so elapsed = %s",
            created_at.isoformat(),
            window,
            close_time.isoformat(),
            elapsed,
        )
        return WindowDecision(sha=sha, window=window, close_time=close_time, elapsed=elapsed)

    def process(self, repo, number: int, created_at: datetime, sha: str) -> WindowDecision:
        """Post the status for ``sha`` and, if the window is still open, schedule its completion.

        Lookup failures propagate before anything is posted. A later call for
        the same ``sha`` supersedes the completion scheduled by this one.
        """
        decision = self.evaluate(repo, number, created_at, sha)

        if decision.elapsed:
            self._complete_now(repo, sha)
            return decision

        self.notifier.post_status(repo, sha, CommitState.PENDING, pending_description(decision.window))

        task = ScheduledTask(
            decision.close_time,
            lambda fired: self._complete(repo, sha, fired),
            name=f"{getattr(repo, 'full_name', repo)}#{number}@{sha[:7]}",
        )
        # Registered before it is armed, so even an immediate firing finds its own entry.
        self.registry.put(sha, task)
        try:
            self.timer.schedule(task)
        except Exception:
            self.registry.remove_if_current(sha, task)
            raise
        return decision

    def handle(self, event: ReviewEvent) -> WindowDecision:
        """Process a ReviewEvent, looking its repository up by full name."""
        if self.repositories is None:
            raise RuntimeError("WindowScheduler.handle() needs a repository lookup")
        repo = self.repositories.get(event.repo)
        return self.process(repo, event.number, event.created_at, event.sha)

    def cancel(self, sha: str) -> bool:
        """Drop the pending completion for ``sha``, if any."""
        task = self.registry.pop(sha)
        if task is not None:
            logger.info("Cancelled pending completion for %s", sha[:7])
        return task is not None

    def _complete_now(self, repo, sha: str) -> None:
        self.notifier.post_status(repo, sha, CommitState.SUCCESS, SUCCESS_DESCRIPTION)
        # Nothing should be pending for an elapsed window; clear anything stale anyway.
        self.registry.pop(sha)

    def _complete(self, repo, sha: str, task: ScheduledTask) -> None:
        try:
            self.notifier.post_status(repo, sha, CommitState.SUCCESS, SUCCESS_DESCRIPTION)
        finally:
            if not self.registry.remove_if_current(sha, task):
                logger.debug("%r no longer owns %s; registry left untouched", task, sha[:7])
