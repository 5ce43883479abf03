"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable
  2. `gh auth token` (GitHub CLI session, works after `gh auth login`)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_GH_TIMEOUT_SECONDS = 5


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no source is available.

    Never raises; the caller decides whether a missing token is a usage error.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=_GH_TIMEOUT_SECONDS,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug("gh auth token unavailable: %s", e)
        return None

    if result.returncode != 0:
        logger.debug("gh auth token exited with %d", result.returncode)
        return None
    return result.stdout.strip() or None
