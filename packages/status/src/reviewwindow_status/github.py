"""GitHubNotifier — commit statuses through the GitHub API."""

from __future__ import annotations

import logging

from reviewwindow_status.base import BaseNotifier
from reviewwindow_status.models import CommitState

logger = logging.getLogger(__name__)


class GitHubNotifier(BaseNotifier):
    """Creates commit statuses on the repository object passed in.

    ``repo`` is a PyGithub Repository; re-posting under the same context
    overwrites the previous status, so repeated posts are harmless.
    """

    def _create_status(self, repo, sha: str, state: CommitState, description: str) -> None:
        repo.get_commit(sha).create_status(
            state=state.value,
            description=description,
            context=self.context,
        )
        logger.info("%s: %s -> %s (%s)", getattr(repo, "full_name", repo), sha[:7], state.value, description)
