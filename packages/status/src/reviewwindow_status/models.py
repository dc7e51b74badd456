"""Commit status values shared by every notifier."""

from __future__ import annotations

from enum import Enum

DEFAULT_CONTEXT = "review-window"


class CommitState(str, Enum):
    """The two states the review window ever reports.

    Values match the GitHub commit status API.
    """

    PENDING = "pending"
    SUCCESS = "success"
