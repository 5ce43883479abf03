"""Compose review comments, the review body, and operator previews."""

from __future__ import annotations

from prq_core.errors import InputError
from prq_core.models import DraftReviewPayload, Issue, IssuePosition

REVIEW_EVENTS = ("APPROVE", "COMMENT", "REQUEST_CHANGES")

_DECISION_EVENTS = {
    "approve": "APPROVE",
    "request_changes": "REQUEST_CHANGES",
    "comment": "COMMENT",
    "": "COMMENT",
}

UNMAPPED_HEADER = "Additional notes (could not map to diff positions):"


def decision_to_event(decision: str) -> tuple[str, bool]:
    """Map the plan's decision to a review event.

    Returns ``(event, known)``. Unrecognised decisions fall back to COMMENT
    with ``known=False`` so the caller can warn.
    """
    event = _DECISION_EVENTS.get((decision or "").strip().lower())
    if event is None:
        return "COMMENT", False
    return event, True


def normalize_event_override(value: str) -> str:
    """Validate a ``--event`` override and return the API event name."""
    event = value.strip().upper()
    if event not in REVIEW_EVENTS:
        raise InputError(f"invalid --event value {value!r}; must be one of: approve, comment, request_changes")
    return event


def render_issue_summary(issue: Issue) -> str:
    loc = issue.file
    if issue.start_line > 0:
        loc = f"{issue.file}:{issue.start_line}"
    if issue.end_line > 0 and issue.end_line != issue.start_line:
        loc = f"{issue.file}:{issue.start_line}-{issue.end_line}"
    return f"{loc} [{issue.severity}/{issue.category}] {issue.message}"


def render_issue_comment_body(issue: Issue) -> str:
    body = f"[{issue.severity}/{issue.category}] {issue.message}"
    patch = issue.suggestion_patch.strip()
    if patch:
        body += f"\n\nSuggested patch:\n```diff\n{patch}\n```\n"
    return body


def build_review_comments(issue_positions: list[IssuePosition]) -> tuple[list[dict], list[Issue]]:
    """Split resolved issues into inline comments and unmapped leftovers."""
    comments: list[dict] = []
    unmapped: list[Issue] = []
    for item in issue_positions:
        if not item.mapped:
            unmapped.append(item.issue)
            continue
        comments.append({"path": item.path, "position": item.position, "body": render_issue_comment_body(item.issue)})
    return comments, unmapped


def build_review_body(base: str, summary: str, unmapped: list[Issue]) -> str:
    """Build the top-level review body.

    Prefers the plan's drafted body, falls back to its summary, and always
    appends unmapped issues so none of them is silently lost.
    """
    body = (base or "").strip() or (summary or "").strip()
    if not unmapped:
        return body

    lines = [body, ""] if body else []
    lines.append(UNMAPPED_HEADER)
    lines.extend(f"- {render_issue_summary(issue)}" for issue in unmapped)
    return "\n".join(lines).strip()


def render_draft_preview(payload: DraftReviewPayload) -> str:
    """Preview saved alongside a draft; shown by `prq draft`."""
    plan = payload.plan
    event, _ = decision_to_event(plan.decision)
    body = plan.draft_review_body.strip() or plan.summary.strip()

    lines = [
        f"PR: {payload.repo}#{payload.number}",
        f"Head SHA: {payload.head_sha}",
        f"Event: {event}",
        "",
        "Review body:",
        body,
        "",
    ]
    if not plan.issues:
        lines.append("Inline comments: none")
    else:
        lines.append(f"Inline comments ({len(plan.issues)}):")
        lines.extend(f"- {render_issue_summary(issue)}" for issue in plan.issues)
    return "\n".join(lines) + "\n"


def render_submit_preview(
    full_ref: str,
    payload: DraftReviewPayload,
    current_head_sha: str,
    event: str,
    body: str,
    issue_positions: list[IssuePosition],
    dry_run: bool = False,
    decision_known: bool = True,
) -> str:
    """Everything the operator should see before a review is posted."""
    draft_head = payload.head_sha.strip()
    current_head = (current_head_sha or "").strip()

    lines = [f"PR: {full_ref}"]
    if draft_head:
        lines.append(f"Draft head SHA: {draft_head}")
    if current_head:
        lines.append(f"Current head SHA: {current_head}")
    if draft_head and current_head and draft_head != current_head:
        lines.append("WARNING: draft was generated for a different head SHA; inline comment mapping may be incomplete.")
    if not decision_known:
        lines.append(f"WARNING: unknown decision {payload.plan.decision!r}; defaulting to COMMENT.")
    lines.append(f"Event: {event}")
    if dry_run:
        lines.append("DRY RUN: not posting to GitHub.")

    lines += ["", "Review body:", body.strip(), ""]

    mapped = sum(1 for item in issue_positions if item.mapped)
    lines.append(f"Inline comments: {mapped} mapped, {len(issue_positions) - mapped} unmapped")
    for item in issue_positions:
        if item.mapped:
            lines.append(f"- {item.path}:{item.line} => position {item.position}")
        else:
            lines.append(f"- {render_issue_summary(item.issue)} (unmapped)")
    return "\n".join(lines) + "\n\n"
