"""Persisted review-state records.

Decoupled from prq_core so the store layer can be used independently
and prq_core has no knowledge of persistence concerns. The draft payload
is kept as an opaque JSON string here; prq_core owns its shape.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PRState:
    """Per-PR bookkeeping, keyed by the PR reference (``owner/repo#123``).

    Created on first contact with a PR and mutated in place afterwards.
    Timestamps are ISO-8601 UTC strings; optional columns are None until set.
    """

    id: str
    repo: str
    number: int
    last_seen_head_sha: str
    last_reviewed_head_sha: str | None = None
    last_reviewed_at: str | None = None
    last_submitted_at: str | None = None
    snoozed_until: str | None = None
    notes: str | None = None


@dataclass
class DraftReview:
    """A locally saved review that has not been posted yet.

    At most one exists per PR: ``id`` and ``pr_id`` are both the PR reference
    for every draft written by this version of prq.
    """

    id: str
    pr_id: str
    created_at: str  # ISO-8601 UTC timestamp
    payload_json: str
    rendered_preview: str
