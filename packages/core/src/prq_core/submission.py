"""Post a saved draft review to GitHub.

submit_draft() never trusts positions computed at draft time: the diff is
fetched again and every issue is re-mapped against the PR's current head, so
a PR that moved since `prq draft` gets whatever comments still land and the
rest fall back to the review body. The operator sees all of it in the preview
before anything is posted.

Store updates happen only after the post succeeds, in this order:
upsert_pr → mark_submitted → delete_draft_review. A failure at any step
leaves the draft in place so the command can be re-run.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from rich.console import Console

from prq_core.compose import (
    build_review_body,
    build_review_comments,
    decision_to_event,
    normalize_event_override,
    render_submit_preview,
)
from prq_core.diff.positions import build_position_map
from prq_core.diff.unified import parse_unified
from prq_core.errors import NoDraftError, PayloadDecodeError
from prq_core.gh.host import BaseHost, ReviewResponse
from prq_core.gh.pull_request import normalize_pr_ref
from prq_core.mapping import map_issues_to_positions
from prq_core.models import DraftReviewPayload, IssuePosition
from prq_store.base import BaseStore, NotFoundError

console = Console()
logger = logging.getLogger(__name__)

_CONFIRM_ANSWERS = ("y", "yes")


@dataclass
class SubmitResult:
    full_ref: str
    event: str
    body: str
    comments: list[dict]
    issue_positions: list[IssuePosition]
    preview: str
    dry_run: bool = False
    response: Optional[ReviewResponse] = None


def _default_confirm(question: str) -> bool:
    return input(f"{question} [y/N]: ").strip().lower() in _CONFIRM_ANSWERS


def _decode_payload(payload_json: str, full_ref: str) -> DraftReviewPayload:
    try:
        data = json.loads(payload_json)
    except json.JSONDecodeError as e:
        raise PayloadDecodeError(f"saved draft for {full_ref} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise PayloadDecodeError(f"saved draft for {full_ref} is not a JSON object")
    try:
        return DraftReviewPayload.from_dict(data)
    except (AttributeError, TypeError, ValueError) as e:
        raise PayloadDecodeError(f"saved draft for {full_ref} has an unexpected shape: {e}") from e


def submit_draft(
    store: BaseStore,
    host: BaseHost,
    pr_ref: str,
    *,
    event_override: Optional[str] = None,
    dry_run: bool = False,
    yes: bool = False,
    confirm: Optional[Callable[[str], bool]] = None,
) -> Optional[SubmitResult]:
    """Preview, confirm and post the saved draft for ``pr_ref``.

    Returns the SubmitResult (with ``response`` set when posted), or None
    when the operator declined at the confirmation prompt.
    """
    repo, number, full_ref = normalize_pr_ref(pr_ref)
    override = normalize_event_override(event_override) if event_override else None

    try:
        draft = store.get_draft_review(full_ref)
    except NotFoundError:
        raise NoDraftError(full_ref) from None
    payload = _decode_payload(draft.payload_json, full_ref)

    view = host.fetch_pr_view(repo, number)
    diff_text = host.fetch_diff(repo, number)
    position_map = build_position_map(parse_unified(diff_text))

    if override:
        event, decision_known = override, True
    else:
        event, decision_known = decision_to_event(payload.plan.decision)

    issue_positions = map_issues_to_positions(position_map, payload.plan.issues)
    comments, unmapped = build_review_comments(issue_positions)
    body = build_review_body(payload.plan.draft_review_body, payload.plan.summary, unmapped)
    if unmapped:
        logger.debug("%s: %d issue(s) could not be mapped to diff positions", full_ref, len(unmapped))

    preview = render_submit_preview(
        full_ref,
        payload,
        view.head_ref_oid,
        event,
        body,
        issue_positions,
        dry_run=dry_run,
        decision_known=decision_known,
    )
    console.print(preview, markup=False, highlight=False, soft_wrap=True, end="")

    result = SubmitResult(
        full_ref=full_ref,
        event=event,
        body=body,
        comments=comments,
        issue_positions=issue_positions,
        preview=preview,
        dry_run=dry_run,
    )
    if dry_run:
        return result

    if not yes:
        ask = confirm or _default_confirm
        if not ask(f"Post this review to {full_ref}?"):
            console.print("Aborted.", markup=False)
            return None

    result.response = host.create_review(repo, number, body, event, comments)
    logger.debug("%s: posted %s review with %d inline comment(s)", full_ref, event, len(comments))

    store.upsert_pr(full_ref, view.repository, view.number, view.head_ref_oid)
    store.mark_submitted(full_ref)
    store.delete_draft_review(full_ref)
    return result
