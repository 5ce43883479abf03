"""submit command: post the saved draft review to GitHub."""

from __future__ import annotations

import click
from rich.console import Console

from prq_core.submission import submit_draft

console = Console()

_EVENT_CHOICES = ("approve", "comment", "request_changes")


def _click_confirm(question: str) -> bool:
    try:
        answer = click.prompt(f"{question} [y/N]", default="", show_default=False, prompt_suffix=" ")
    except click.Abort:
        # closed stdin counts as "no"
        return False
    return answer.strip().lower() in ("y", "yes")


@click.command("submit")
@click.argument("pr_ref", metavar="<pr-url|OWNER/REPO#123>")
@click.option("--yes", "-y", is_flag=True, help="Post without asking for confirmation.")
@click.option("--dry-run", is_flag=True, help="Show the preview without posting anything.")
@click.option(
    "--event",
    type=click.Choice(_EVENT_CHOICES, case_sensitive=False),
    default=None,
    help="Override the review event chosen from the plan's decision.",
)
@click.pass_context
def submit_cmd(ctx, pr_ref: str, yes: bool, dry_run: bool, event: str | None):
    """Post the saved draft for a PR as an inline-commented review.

    Issues are re-mapped against the PR's current diff; anything that no
    longer lands on a diff line is listed in the review body instead.
    """
    app = ctx.obj["app"]

    result = submit_draft(
        app.store,
        app.host,
        pr_ref,
        event_override=event,
        dry_run=dry_run,
        yes=yes,
        confirm=_click_confirm,
    )
    if result is None or result.response is None:
        return

    response = result.response
    console.print(f"Submitted review: {response.html_url or response.id}", markup=False, highlight=False)
