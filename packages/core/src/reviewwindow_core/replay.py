"""Startup replay: re-evaluate every open pull request of the configured repositories.

Scheduled completions live in memory only, so after a restart each open PR is
pushed through the same path as a live webhook event.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from reviewwindow_core.gh.pull_request import get_open_pull_requests
from reviewwindow_core.scheduler import ReviewEvent

if TYPE_CHECKING:
    from reviewwindow_core.scheduler import WindowScheduler

logger = logging.getLogger(__name__)


def replay_open_pull_requests(scheduler: WindowScheduler, repositories: Iterable[str]) -> int:
    """Process every open PR of ``repositories``. Returns how many were processed.

    One failing PR or repository is logged and skipped; it does not stop the
    rest of the replay.
    """
    processed = 0
    for full_name in repositories:
        try:
            repo = scheduler.repositories.get(full_name)
            pulls = list(get_open_pull_requests(repo))
        except Exception as e:
            logger.error("Could not list open pull requests for %s (%s): %s", full_name, type(e).__name__, e)
            continue

        logger.info("Replaying %d open pull request(s) for %s", len(pulls), full_name)
        for pull in pulls:
            try:
                event = ReviewEvent.from_pull(full_name, pull)
                scheduler.process(repo, event.number, event.created_at, event.sha)
            except Exception:
                logger.exception("Failed to process %s#%s", full_name, getattr(pull, "number", "?"))
                continue
            processed += 1
    return processed
