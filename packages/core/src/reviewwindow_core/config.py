import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

import yaml

from reviewwindow_core.utils.duration import parse_duration

DEFAULT_CONFIG: dict = {
    "duration": None,  # required: default review window, e.g. "P3D"
    "durations": {},  # label name -> duration, flattened into "duration.<label>" keys
    "startup_repos": [],  # owner/name repositories whose open PRs are replayed on startup
    "status_context": "review-window",
    "host": "127.0.0.1",
    "port": 8080,
    "max_workers": 4,
}

LABEL_PREFIX = "duration."


class ConfigError(ValueError):
    """Raised when the configuration cannot be used to start the service."""


def load_config(config_path: str = ".reviewwindow.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewwindow.yml in the current directory
      3. CLI argument overrides

    Per-label windows may be given either as flat ``duration.<label>`` keys or
    under a ``durations`` mapping; flat keys win when both name the same label.
    """
    config = {
        **DEFAULT_CONFIG,
        "durations": dict(DEFAULT_CONFIG["durations"]),
        "startup_repos": list(DEFAULT_CONFIG["startup_repos"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    for label, value in (config.get("durations") or {}).items():
        config.setdefault(f"{LABEL_PREFIX}{label}", value)

    # A single "startup_repo" is accepted for compatibility with older configs.
    single_repo = config.pop("startup_repo", None)
    if single_repo and single_repo not in config["startup_repos"]:
        config["startup_repos"] = [*config["startup_repos"], single_repo]

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["webhook_secret"] = os.environ.get("REVIEW_WINDOW_WEBHOOK_SECRET", config.get("webhook_secret"))

    return config


def label_overrides(config: dict) -> dict[str, str]:
    """Return the configured ``duration.<label>`` entries keyed by label name."""
    return {
        key[len(LABEL_PREFIX) :]: value
        for key, value in config.items()
        if isinstance(key, str) and key.startswith(LABEL_PREFIX) and value is not None
    }


def parse_window(key: str, raw) -> timedelta:
    """Parse the review window stored under ``key``.

    A window is either zero or at least one second long; anything shorter or
    negative raises ConfigError.
    """
    try:
        window = parse_duration(str(raw))
    except ValueError as e:
        raise ConfigError(f"Invalid value for '{key}': {e}") from e
    if window < timedelta(0):
        raise ConfigError(f"Invalid value for '{key}': review window {raw!r} is negative")
    if timedelta(0) < window < timedelta(seconds=1):
        raise ConfigError(f"Invalid value for '{key}': review window {raw!r} is shorter than one second")
    return window


def default_duration(config: dict) -> timedelta:
    """Parse the required default review window.

    Raises ConfigError when it is missing or malformed.
    """
    raw = config.get("duration")
    if raw is None or raw == "":
        raise ConfigError("No default review window configured. Set 'duration' (e.g. P3D) in the config file.")
    return parse_window("duration", raw)


def validate_config(config: dict) -> None:
    """Check every configured duration up front so a typo fails at startup, not per event."""
    default_duration(config)
    for label, raw in label_overrides(config).items():
        parse_window(f"{LABEL_PREFIX}{label}", raw)
