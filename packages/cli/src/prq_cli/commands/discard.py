"""discard command: delete the saved draft for a PR."""

from __future__ import annotations

import click
from rich.console import Console

from prq_core.gh.pull_request import normalize_pr_ref
from prq_store.base import NotFoundError

console = Console()


@click.command("discard")
@click.argument("pr_ref", metavar="<pr-url|OWNER/REPO#123>")
@click.pass_context
def discard_cmd(ctx, pr_ref: str):
    """Delete the saved draft for a PR. Safe to run when there is none."""
    app = ctx.obj["app"]
    _, _, full_ref = normalize_pr_ref(pr_ref)

    try:
        app.store.get_draft_review(full_ref)
    except NotFoundError:
        console.print(f"No saved draft for {full_ref}.", markup=False, highlight=False)
        return

    app.store.delete_draft_review(full_ref)
    console.print(f"Discarded draft for {full_ref}.", markup=False, highlight=False)
