"""CLI entry point for review-window.

Commands:
  serve   — run the webhook server (replays open PRs of startup_repos first)
  check   — show the review window of one pull request without posting anything
  replay  — one-shot replay of open pull requests
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from reviewwindow_cli.commands.check import check_cmd
from reviewwindow_cli.commands.replay import replay_cmd
from reviewwindow_cli.commands.serve import serve_cmd

console = Console()


def _build_notifier(config: dict, dry_run: bool = False):
    """Pick the notifier: GitHub statuses normally, console output for --dry-run."""
    context = config.get("status_context") or "review-window"
    if dry_run:
        from reviewwindow_status.console import ConsoleNotifier

        return ConsoleNotifier(context=context, console=console)

    from reviewwindow_status.github import GitHubNotifier

    return GitHubNotifier(context=context)


def _build_scheduler(config: dict, notifier=None, dry_run: bool = False):
    """Wire resolver, registry, timer and notifier into a WindowScheduler.

    The registry and timer are created here and owned by the returned
    scheduler; callers shut them down with ``scheduler.timer.shutdown()``.
    Raises ConfigError for unusable durations.
    """
    from reviewwindow_core.config import validate_config
    from reviewwindow_core.gh.pull_request import RepositoryQuery, get_github
    from reviewwindow_core.registry import TaskRegistry
    from reviewwindow_core.resolver import DurationResolver
    from reviewwindow_core.scheduler import WindowScheduler
    from reviewwindow_core.timer import TaskTimer

    validate_config(config)
    resolver = DurationResolver(config)
    return WindowScheduler(
        resolver=resolver,
        notifier=notifier or _build_notifier(config, dry_run=dry_run),
        registry=TaskRegistry(),
        timer=TaskTimer(max_workers=int(config.get("max_workers", 4))),
        repositories=RepositoryQuery(get_github(config.get("github_token"))),
    )


def _require_token(config: dict) -> str:
    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "The token needs the repo:status scope to post commit statuses."
        )
    return token


@click.group()
@click.version_option(
    version=importlib.metadata.version("review-window"),
    prog_name="review-window",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewwindow.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEW_WINDOW_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Block pull request merges until their review window has passed."""
    from reviewwindow_cli.auth import resolve_github_token
    from reviewwindow_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config


main.add_command(serve_cmd)
main.add_command(check_cmd)
main.add_command(replay_cmd)
