from __future__ import annotations

import re
from urllib.parse import urlparse

from prq_core.errors import InputError

_PR_REF_RE = re.compile(r"^([^/\s]+/[^#\s]+)#([0-9]+)$")


def parse_pr_ref(ref: str) -> tuple[str, int]:
    """Return ``(owner/repo, number)`` from ``owner/repo#123`` or a PR URL."""
    ref = (ref or "").strip()
    if ref.startswith(("http://", "https://")):
        parts = urlparse(ref).path.strip("/").split("/")
        if len(parts) < 4 or parts[2] != "pull" or not parts[3].isdigit():
            raise InputError(f"invalid PR URL: {ref!r}")
        return f"{parts[0]}/{parts[1]}", int(parts[3])

    match = _PR_REF_RE.match(ref)
    if not match:
        raise InputError(f"invalid PR reference: {ref!r} (expected OWNER/REPO#123 or a pull request URL)")
    return match.group(1), int(match.group(2))


def format_pr_ref(repo: str, number: int) -> str:
    return f"{repo}#{number}"


def normalize_pr_ref(ref: str) -> tuple[str, int, str]:
    """Parse ``ref`` and also return its canonical ``owner/repo#N`` form, the store key."""
    repo, number = parse_pr_ref(ref)
    return repo, number, format_pr_ref(repo, number)
