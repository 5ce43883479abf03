"""draft command: generate a review plan and save it for later submission."""

from __future__ import annotations

import click
from rich.console import Console

from prq_core.reviewer import generate_review, save_draft

console = Console()


@click.command("draft")
@click.argument("pr_ref", metavar="<pr-url|OWNER/REPO#123>")
@click.option("--max-issues", type=click.IntRange(min=0), default=0, help="Keep at most N issues (0 = all).")
@click.pass_context
def draft_cmd(ctx, pr_ref: str, max_issues: int):
    """Generate a review plan and save it locally as a draft.

    Running it again replaces the saved draft. Nothing is posted to GitHub
    until you run `prq submit`.
    """
    app = ctx.obj["app"]

    run = generate_review(app.host, app.provider, pr_ref, app.config, max_issues=max_issues)
    _, preview = save_draft(app.store, run)

    console.print(preview, markup=False, highlight=False, soft_wrap=True)
    console.print(f"Saved locally. To post to GitHub, run: prq submit {run.full_ref}", markup=False, highlight=False)
