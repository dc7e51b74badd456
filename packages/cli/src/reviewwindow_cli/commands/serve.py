"""serve command — run the webhook server."""

from __future__ import annotations

import click
from rich.console import Console

console = Console()


@click.command("serve")
@click.option("--host", default=None, help="Interface to bind. Overrides config file.")
@click.option("--port", type=int, default=None, help="Port to listen on. Overrides config file.")
@click.option("--duration", default=None, help="Default review window (ISO-8601, e.g. P3D). Overrides config file.")
@click.option("--no-replay", "no_replay", is_flag=True, help="Skip re-evaluating open PRs of startup_repos.")
@click.option("--dry-run", "dry_run", is_flag=True, help="Print statuses instead of posting them to GitHub.")
@click.pass_context
def serve_cmd(ctx, host: str | None, port: int | None, duration: str | None, no_replay: bool, dry_run: bool):
    """Receive GitHub pull_request webhooks and maintain review-window statuses.

    \b
    Point a repository or organization webhook (content type application/json,
    event "Pull requests") at this server. Set REVIEW_WINDOW_WEBHOOK_SECRET to
    the webhook secret to have deliveries verified.
    """
    from reviewwindow_cli.cli import _build_scheduler, _require_token
    from reviewwindow_cli.server import create_app
    from reviewwindow_core.config import ConfigError
    from reviewwindow_core.replay import replay_open_pull_requests

    config = dict(ctx.obj["config"])
    for key, value in {"host": host, "port": port, "duration": duration}.items():
        if value is not None:
            config[key] = value

    if not dry_run:
        _require_token(config)

    try:
        scheduler = _build_scheduler(config, dry_run=dry_run)
    except ConfigError as e:
        raise click.UsageError(str(e))

    try:
        repos = config.get("startup_repos") or []
        if repos and not no_replay:
            count = replay_open_pull_requests(scheduler, repos)
            console.print(f"[cyan]Replayed {count} open pull request(s) from {len(repos)} repository(ies).[/cyan]")

        app = create_app(scheduler, webhook_secret=config.get("webhook_secret"))
        console.print(
            f"[bold]review-window[/bold] listening on {config['host']}:{config['port']} "
            f"(default window {scheduler.resolver.default})"
        )
        app.run(host=config["host"], port=int(config["port"]), threaded=True)
    finally:
        cancelled = scheduler.registry.cancel_all()
        scheduler.timer.shutdown(wait=False)
        if cancelled:
            console.print(f"[yellow]Dropped {cancelled} pending completion(s) on shutdown.[/yellow]")
