"""check command — show a pull request's review window without touching GitHub statuses."""

from __future__ import annotations

import click
import requests
from github import GithubException
from rich.console import Console
from rich.table import Table

console = Console()


@click.command("check")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option("--duration", default=None, help="Default review window (ISO-8601). Overrides config file.")
@click.pass_context
def check_cmd(ctx, repo: str, pr_number: int, duration: str | None):
    """Evaluate one pull request and print when its review window closes.

    Nothing is posted and nothing is scheduled.
    """
    from reviewwindow_cli.cli import _build_scheduler, _require_token
    from reviewwindow_core.config import ConfigError
    from reviewwindow_core.scheduler import ReviewEvent
    from reviewwindow_status.noop import NoOpNotifier

    config = dict(ctx.obj["config"])
    if duration is not None:
        config["duration"] = duration
    _require_token(config)

    try:
        scheduler = _build_scheduler(config, notifier=NoOpNotifier())
    except ConfigError as e:
        raise click.UsageError(str(e))

    try:
        this_repo = scheduler.repositories.get(repo)
        event = ReviewEvent.from_pull(repo, this_repo.get_pull(pr_number))
        decision = scheduler.evaluate(this_repo, event.number, event.created_at, event.sha)
    except (GithubException, requests.exceptions.RequestException) as e:
        raise click.ClickException(f"Could not look up {repo}#{pr_number}: {e}")
    finally:
        scheduler.timer.shutdown(wait=False)

    table = Table(title=f"Review window — {repo}#{pr_number}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Head SHA", event.sha[:7])
    table.add_row("Created", event.created_at.isoformat())
    table.add_row("Window", decision.human_window)
    table.add_row("Closes", decision.close_time.isoformat())
    table.add_row("Status", "[green]passed[/green]" if decision.elapsed else "[yellow]pending[/yellow]")
    console.print(table)
