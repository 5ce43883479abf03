"""Review generation, draft saving and follow-up.

The pipeline for a single PR:

    fetch view + diff → parse_unified → build_chunks → redact → render prompt
        → provider.run_review → ReviewPlan

generate_review() stops there and returns a ReviewRun; the CLI either prints
it (`prq review`) or hands it to save_draft() (`prq draft`). Nothing in this
module posts to GitHub; that is prq_core.submission's job.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from prq_core.compose import render_draft_preview
from prq_core.diff.unified import build_chunks, parse_unified
from prq_core.gh.host import BaseHost, Comparison, PRFile, PRView, ReviewThread
from prq_core.gh.pull_request import normalize_pr_ref
from prq_core.models import DraftReviewPayload, Issue, ReviewPlan
from prq_core.prompt import PromptSnapshot, default_schema_path, load_template, render
from prq_core.providers.base import BaseProvider
from prq_core.utils.redact import redact_optional, redact_rules
from prq_store.base import BaseStore, NotFoundError

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "json", "md")

# Placeholders for inputs prq does not collect.
_CI_SUMMARY = "Not fetched"
_TEST_RESULTS = "Not run"


@dataclass
class ReviewRun:
    """A generated plan plus the PR snapshot it was generated from."""

    full_ref: str
    view: PRView
    plan: ReviewPlan
    raw: str
    diff_text: str


@dataclass
class Followup:
    full_ref: str
    current_head: str
    last_reviewed_head: str | None
    comparison: Comparison | None = None
    open_threads: list[ReviewThread] = field(default_factory=list)


def render_file_list(files: list[PRFile]) -> str:
    if not files:
        return "No files"
    return "\n".join(f"{f.path} (+{f.additions}/-{f.deletions})" for f in files)


def generate_review(host: BaseHost, provider: BaseProvider, pr_ref: str, config: dict, max_issues: int = 0) -> ReviewRun:
    repo, number, full_ref = normalize_pr_ref(pr_ref)

    view = host.fetch_pr_view(repo, number)
    diff_text = host.fetch_diff(repo, number)

    files = parse_unified(diff_text)
    chunks = build_chunks(
        files,
        config.get("diff_ignore") or [],
        config["diff_max_files"],
        config["diff_max_chunk_chars"],
    )
    logger.debug("%s: %d file(s) in diff, %d prompt chunk(s)", full_ref, len(files), len(chunks))

    enabled = bool(config.get("redaction", True))
    snapshot = PromptSnapshot(
        repo=view.repository,
        pr_number=view.number,
        title=redact_optional(view.title, enabled),
        description=redact_optional(view.body, enabled),
        base_sha=view.base_ref_oid,
        head_sha=view.head_ref_oid,
        ci_summary=_CI_SUMMARY,
        test_results=_TEST_RESULTS,
        file_list_stats=redact_optional(render_file_list(view.files), enabled),
        diff_chunks=redact_optional("\n\n".join(chunks), enabled),
    )
    template = load_template(config.get("prompt_path"))
    prompt_text = render(
        template,
        redact_rules(config.get("user_rules") or [], enabled),
        redact_rules(config.get("repo_rules") or [], enabled),
        snapshot,
    )
    if enabled:
        prompt_text = prompt_text.replace("\x00", "")

    plan, raw = provider.run_review(prompt_text, default_schema_path(config))

    if max_issues > 0 and len(plan.issues) > max_issues:
        logger.debug("%s: truncating %d issues to %d", full_ref, len(plan.issues), max_issues)
        plan.issues = plan.issues[:max_issues]
        # raw no longer matches the truncated plan
        raw = json.dumps(plan.to_dict(), indent=2)

    return ReviewRun(full_ref=full_ref, view=view, plan=plan, raw=raw, diff_text=diff_text)


def save_draft(store: BaseStore, run: ReviewRun) -> tuple[DraftReviewPayload, str]:
    """Persist ``run`` as the PR's pending draft and record it as reviewed."""
    view = run.view
    store.upsert_pr(run.full_ref, view.repository, view.number, view.head_ref_oid)
    store.mark_reviewed(run.full_ref, view.head_ref_oid)

    payload = DraftReviewPayload(
        repo=view.repository,
        number=view.number,
        base_sha=view.base_ref_oid,
        head_sha=view.head_ref_oid,
        plan=run.plan,
    )
    preview = render_draft_preview(payload)
    store.upsert_draft_review(run.full_ref, json.dumps(payload.to_dict()), preview)
    return payload, preview


def format_plan(plan: ReviewPlan, fmt: str = "text", raw: str = "") -> str:
    """Render a plan for `prq review`. ``json`` prints the provider's raw output when available."""
    if fmt == "json":
        return (raw.strip() if raw else json.dumps(plan.to_dict(), indent=2)) + "\n"
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown format {fmt!r}; expected one of: {', '.join(OUTPUT_FORMATS)}")

    markdown = fmt == "md"
    out: list[str] = []

    def header(title: str) -> None:
        out.append(f"## {title}" if markdown else title)

    header("Summary")
    out.append(plan.summary)
    header("Risk and Decision")
    out.append(f"Risk: {plan.risk_level}")
    out.append(f"Decision: {plan.decision}")
    header("Key Changes")
    out.extend(f"- {change}" for change in plan.key_changes)
    header("Issues")
    by_file: dict[str, list[Issue]] = {}
    for issue in plan.issues:
        by_file.setdefault(issue.file, []).append(issue)
    for file, issues in by_file.items():
        out.append(file)
        for issue in issues:
            out.append(
                f"  - [{issue.severity}/{issue.category}] {issue.message} ({issue.start_line}-{issue.end_line})"
            )
            if issue.suggestion_patch:
                out.append("    Suggested patch:")
                if markdown:
                    out += ["```diff", issue.suggestion_patch, "```"]
                else:
                    out.append(issue.suggestion_patch)
    header("Questions")
    out.extend(f"- {q}" for q in plan.questions)
    header("Praise")
    out.extend(f"- {p}" for p in plan.praise)
    header("Draft Review Body")
    out.append(plan.draft_review_body)
    return "\n".join(out) + "\n"


def build_followup(store: BaseStore, host: BaseHost, pr_ref: str) -> Followup:
    repo, number, full_ref = normalize_pr_ref(pr_ref)
    view = host.fetch_pr_view(repo, number)
    store.upsert_pr(full_ref, view.repository, view.number, view.head_ref_oid)

    try:
        last_reviewed = store.get_pr(full_ref).last_reviewed_head_sha
    except NotFoundError:
        last_reviewed = None

    comparison = None
    if last_reviewed and last_reviewed != view.head_ref_oid:
        comparison = host.compare_commits(repo, last_reviewed, view.head_ref_oid)

    threads = host.review_threads(repo, number)
    return Followup(
        full_ref=full_ref,
        current_head=view.head_ref_oid,
        last_reviewed_head=last_reviewed,
        comparison=comparison,
        open_threads=[t for t in threads if not t.is_resolved],
    )


def render_followup(followup: Followup) -> str:
    lines = [f"Follow-up for {followup.full_ref}", f"Current head: {followup.current_head}"]
    if followup.last_reviewed_head:
        lines.append(f"Last reviewed head: {followup.last_reviewed_head}")
        if followup.comparison is None:
            lines.append("No new commits since last review.")
        else:
            lines.append(f"Changes since last review: {followup.comparison.total_commits} commits")
            lines.extend(
                f"- {f.filename} ({f.status} +{f.additions}/-{f.deletions})" for f in followup.comparison.files
            )
    else:
        lines.append("No previous review recorded.")

    if not followup.open_threads:
        lines.append("No open review threads.")
        return "\n".join(lines) + "\n"

    lines.append(f"Open review threads: {len(followup.open_threads)}")
    for thread in followup.open_threads:
        path = thread.path.strip() or "(unknown)"
        line = "?" if thread.line is None else str(thread.line)
        entry = f"- {path}:{line} ({len(thread.comments)} comments)"
        if thread.is_outdated:
            entry += " [outdated]"
        lines.append(entry)
        if thread.comments:
            last = thread.comments[-1]
            lines.append(f"  Last: {last.author} at {last.created_at}")
    return "\n".join(lines) + "\n"
