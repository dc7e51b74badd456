"""GitHub token resolution for the review-window service.

Resolution order (first hit wins):
  1. GITHUB_TOKEN, then GH_TOKEN environment variables (deployments, CI)
  2. `gh auth token` (a local GitHub CLI session, handy when trying the service out)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def resolve_github_token() -> str | None:
    """Return a GitHub token, or None when no source provides one.

    Never raises; commands that need a token turn None into a UsageError.
    """
    for name in _TOKEN_ENV_VARS:
        token = os.environ.get(name)
        if token:
            logger.debug("Using GitHub token from %s.", name)
            return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh missing or hung; treat as "no token".
        return None

    if result.returncode == 0 and result.stdout.strip():
        logger.debug("Using GitHub token from the gh CLI session.")
        return result.stdout.strip()
    return None
