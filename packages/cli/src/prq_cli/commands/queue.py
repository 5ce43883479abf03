"""queue command: list open pull requests waiting for your review."""

from __future__ import annotations

from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from prq_core.gh.pull_request import format_pr_ref
from prq_store.base import NotFoundError

console = Console()

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def build_queue_query(repo: str | None, owner: str | None, label: str | None) -> str:
    """Search qualifiers added on top of the base review-requested query."""
    parts = []
    if repo:
        parts.append(f"repo:{repo}")
    if owner:
        parts.append(f"user:{owner}")
    if label:
        parts.append(f'label:"{label}"' if " " in label else f"label:{label}")
    return " ".join(parts)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return _aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def is_snoozed(store, pr_id: str, now: datetime) -> bool:
    try:
        state = store.get_pr(pr_id)
    except NotFoundError:
        return False
    until = _parse_iso(state.snoozed_until)
    return until is not None and until > now


def format_age(created_at: datetime | None, now: datetime) -> str:
    if created_at is None:
        return "-"
    seconds = max(0, int((now - _aware(created_at)).total_seconds()))
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


@click.command("queue")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Maximum PRs to fetch.  [default: queue_limit]")
@click.option("--repo", default=None, help="Only PRs in this repository (owner/name).")
@click.option("--owner", default=None, help="Only PRs in repositories owned by this user or org.")
@click.option("--label", default=None, help="Only PRs carrying this label.")
@click.pass_context
def queue_cmd(ctx, limit: int | None, repo: str | None, owner: str | None, label: str | None):
    """List open PRs requesting your review, oldest first.

    PRs snoozed in the local store are hidden until the snooze expires.
    """
    app = ctx.obj["app"]
    limit = limit or app.config["queue_limit"]

    items = app.host.search_review_requests(build_queue_query(repo, owner, label), limit)
    now = datetime.now(timezone.utc)
    items = [i for i in items if not is_snoozed(app.store, format_pr_ref(i.repo, i.number), now)]
    items.sort(key=lambda i: _aware(i.created_at) if i.created_at else _FAR_FUTURE)

    if not items:
        console.print("[yellow]No pull requests waiting for your review.[/yellow]")
        return

    table = Table(title="Review queue", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold", no_wrap=True)
    table.add_column("Title", max_width=50)
    table.add_column("Author")
    table.add_column("Age", justify="right")
    table.add_column("Labels")

    for item in items:
        table.add_row(
            format_pr_ref(item.repo, item.number),
            item.title,
            item.author,
            format_age(item.created_at, now),
            ", ".join(item.labels),
        )

    console.print(table)
