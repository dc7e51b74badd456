"""Abstract status notifier interface.

The scheduler depends on BaseNotifier, not on GitHub, so the same scheduling
path can run for real, as a dry run, or inside tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from reviewwindow_status.models import DEFAULT_CONTEXT, CommitState

logger = logging.getLogger(__name__)


class BaseNotifier(ABC):
    """Posts review-window statuses to commits.

    A missed status is fixed by the next event for the commit, while an
    exception here would leave the scheduler's bookkeeping half done. So
    post_status() never raises: failures are logged and reported as False.
    """

    def __init__(self, context: str = DEFAULT_CONTEXT):
        self.context = context

    def post_status(self, repo, sha: str, state: CommitState, description: str) -> bool:
        """Post ``state`` for ``sha``. Returns False if the post failed."""
        try:
            self._create_status(repo, sha, CommitState(state), description)
        except Exception as e:
            logger.warning(
                "Could not post %s status for %s (%s): %s",
                getattr(state, "value", state),
                sha[:7],
                type(e).__name__,
                e,
            )
            return False
        return True

    @abstractmethod
    def _create_status(self, repo, sha: str, state: CommitState, description: str) -> None:
        """Make the actual status post. May raise; post_status() handles it."""
