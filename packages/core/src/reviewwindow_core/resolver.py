"""Review window lookup for a pull request, honoring per-label overrides."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable

from reviewwindow_core.config import LABEL_PREFIX, default_duration, label_overrides, parse_window
from reviewwindow_core.gh.pull_request import get_issue_labels

logger = logging.getLogger(__name__)


class DurationResolver:
    """Resolve the review window for ``(repository, number)``.

    The first label (in GitHub's order) with a ``duration.<label>`` entry wins;
    labels without one are ignored. With no match the default window applies.

    Durations are parsed once here, so a malformed value raises ConfigError
    when the resolver is built rather than when an event arrives.
    """

    def __init__(self, config: dict, label_lookup: Callable = get_issue_labels):
        self._default = default_duration(config)
        self._overrides: dict[str, timedelta] = {
            label: parse_window(f"{LABEL_PREFIX}{label}", raw) for label, raw in label_overrides(config).items()
        }
        self._label_lookup = label_lookup

    @property
    def default(self) -> timedelta:
        return self._default

    def resolve(self, repo, number: int) -> timedelta:
        if not self._overrides:
            # Nothing can match, so skip the label request entirely.
            return self._default

        for label in self._label_lookup(repo, number):
            window = self._overrides.get(label)
            if window is not None:
                logger.debug("PR #%s uses the '%s' label window (%s)", number, label, window)
                return window
        return self._default
