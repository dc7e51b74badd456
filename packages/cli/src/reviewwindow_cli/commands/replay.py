"""replay command — re-evaluate open pull requests once."""

from __future__ import annotations

import time

import click
from rich.console import Console

console = Console()


@click.command("replay")
@click.option("--repo", "repos", multiple=True, help="Repository (owner/name). Repeatable. Defaults to startup_repos.")
@click.option("--duration", default=None, help="Default review window (ISO-8601). Overrides config file.")
@click.option("--dry-run", "dry_run", is_flag=True, help="Print statuses instead of posting them to GitHub.")
@click.option(
    "--wait/--no-wait",
    default=False,
    show_default=True,
    help="Stay running until every scheduled completion has fired.",
)
@click.pass_context
def replay_cmd(ctx, repos: tuple[str, ...], duration: str | None, dry_run: bool, wait: bool):
    """Post review-window statuses for every open pull request.

    Without --wait, PRs whose window is still open get a pending status only;
    the success status is posted by the next event or replay after it closes.
    """
    from reviewwindow_cli.cli import _build_scheduler, _require_token
    from reviewwindow_core.config import ConfigError
    from reviewwindow_core.replay import replay_open_pull_requests

    config = dict(ctx.obj["config"])
    if duration is not None:
        config["duration"] = duration
    targets = list(repos) or list(config.get("startup_repos") or [])
    if not targets:
        raise click.UsageError("No repositories given. Pass --repo or set startup_repos in the config file.")
    if not dry_run:
        _require_token(config)

    try:
        scheduler = _build_scheduler(config, dry_run=dry_run)
    except ConfigError as e:
        raise click.UsageError(str(e))

    try:
        count = replay_open_pull_requests(scheduler, targets)
        console.print(f"Processed {count} open pull request(s).")
        pending = len(scheduler.registry)
        if pending and wait:
            console.print(f"[cyan]Waiting for {pending} review window(s) to close. Ctrl-C to stop.[/cyan]")
            while len(scheduler.registry):
                time.sleep(1)
            console.print("[green]All review windows have closed.[/green]")
        elif pending:
            console.print(f"[yellow]{pending} review window(s) still open; left pending.[/yellow]")
    finally:
        scheduler.registry.cancel_all()
        scheduler.timer.shutdown(wait=False)
