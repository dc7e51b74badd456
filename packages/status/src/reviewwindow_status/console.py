"""Dry-run notifier that prints statuses instead of posting them."""

from __future__ import annotations

from rich.console import Console

from reviewwindow_status.base import BaseNotifier
from reviewwindow_status.models import DEFAULT_CONTEXT, CommitState

_STATE_STYLE = {CommitState.PENDING: "yellow", CommitState.SUCCESS: "green"}


class ConsoleNotifier(BaseNotifier):
    def __init__(self, context: str = DEFAULT_CONTEXT, console: Console | None = None):
        super().__init__(context)
        self.console = console or Console()

    def _create_status(self, repo, sha: str, state: CommitState, description: str) -> None:
        style = _STATE_STYLE.get(state, "white")
        name = getattr(repo, "full_name", repo)
        self.console.print(
            f"[dim](dry run)[/dim] [bold cyan]{name}[/bold cyan] {sha[:7]}  "
            f"[{style}]{state.value.upper()}[/{style}]  {self.context}: {description}"
        )
