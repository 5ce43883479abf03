"""review command: generate and print an AI review plan."""

from __future__ import annotations

import click
from rich.console import Console

from prq_core.reviewer import OUTPUT_FORMATS, format_plan, generate_review

console = Console()


@click.command("review")
@click.argument("pr_ref", metavar="<pr-url|OWNER/REPO#123>")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.option("--max-issues", type=click.IntRange(min=0), default=0, help="Keep at most N issues (0 = all).")
@click.pass_context
def review_cmd(ctx, pr_ref: str, fmt: str, max_issues: int):
    """Generate a review plan for a PR and print it.

    Nothing is saved except the PR's last seen head commit; use
    `prq draft` to keep the plan for `prq submit`.

    \b
    Environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      ANTHROPIC_API_KEY    Required when provider is anthropic
      OPENAI_API_KEY       Required when provider is openai
    """
    app = ctx.obj["app"]

    run = generate_review(app.host, app.provider, pr_ref, app.config, max_issues=max_issues)
    view = run.view
    app.store.upsert_pr(run.full_ref, view.repository, view.number, view.head_ref_oid)

    console.print(format_plan(run.plan, fmt, run.raw), markup=False, highlight=False, soft_wrap=True, end="")
