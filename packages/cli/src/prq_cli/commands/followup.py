"""followup command: what changed since you last reviewed a PR."""

from __future__ import annotations

import click
from rich.console import Console

from prq_core.reviewer import build_followup, render_followup

console = Console()


@click.command("followup")
@click.argument("pr_ref", metavar="<pr-url|OWNER/REPO#123>")
@click.pass_context
def followup_cmd(ctx, pr_ref: str):
    """Show commits since your last drafted review and unresolved review threads."""
    app = ctx.obj["app"]
    followup = build_followup(app.store, app.host, pr_ref)
    console.print(render_followup(followup), markup=False, highlight=False, soft_wrap=True, end="")
