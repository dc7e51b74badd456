"""No-op notifier — schedules run, nothing is posted."""

from __future__ import annotations

from reviewwindow_status.base import BaseNotifier
from reviewwindow_status.models import CommitState


class NoOpNotifier(BaseNotifier):
    """Silently discards every status. Used by `check` and in tests."""

    def _create_status(self, repo, sha: str, state: CommitState, description: str) -> None:
        pass  # intentional no-op
