"""In-memory store used by tests and fixture mode.

Same semantics as SQLiteStore, kept in two dicts. Nothing survives the
process, which is exactly what a mock run wants.
"""

from __future__ import annotations

from dataclasses import replace

from prq_store.base import BaseStore, NotFoundError, utc_now
from prq_store.models import DraftReview, PRState


class MemoryStore(BaseStore):
    def __init__(self):
        self._prs: dict[str, PRState] = {}
        self._drafts: dict[str, DraftReview] = {}

    def upsert_pr(self, pr_id: str, repo: str, number: int, head_sha: str) -> None:
        self._require(pr_id=pr_id)
        existing = self._prs.get(pr_id)
        if existing is None:
            self._prs[pr_id] = PRState(id=pr_id, repo=repo, number=number, last_seen_head_sha=head_sha)
        else:
            self._prs[pr_id] = replace(existing, repo=repo, number=number, last_seen_head_sha=head_sha)

    def get_pr(self, pr_id: str) -> PRState:
        try:
            return replace(self._prs[pr_id])
        except KeyError:
            raise NotFoundError(f"no PR state for {pr_id}") from None

    def mark_reviewed(self, pr_id: str, head_sha: str) -> None:
        self._require(pr_id=pr_id, head_sha=head_sha)
        state = self.get_pr(pr_id)
        self._prs[pr_id] = replace(state, last_reviewed_head_sha=head_sha, last_reviewed_at=utc_now())

    def mark_submitted(self, pr_id: str) -> None:
        self._require(pr_id=pr_id)
        state = self.get_pr(pr_id)
        self._prs[pr_id] = replace(state, last_submitted_at=utc_now())

    def upsert_draft_review(self, pr_id: str, payload_json: str, rendered_preview: str) -> None:
        self._require(pr_id=pr_id, payload_json=payload_json, rendered_preview=rendered_preview)
        self._drafts[pr_id] = DraftReview(
            id=pr_id,
            pr_id=pr_id,
            created_at=utc_now(),
            payload_json=payload_json,
            rendered_preview=rendered_preview,
        )

    def get_draft_review(self, pr_id: str) -> DraftReview:
        draft = self._drafts.get(pr_id)
        if draft is None:
            matches = [d for d in self._drafts.values() if d.pr_id == pr_id]
            if matches:
                draft = max(matches, key=lambda d: d.created_at)
        if draft is None:
            raise NotFoundError(f"no draft review for {pr_id}")
        return replace(draft)

    def delete_draft_review(self, pr_id: str) -> None:
        for key in [k for k, d in self._drafts.items() if k == pr_id or d.pr_id == pr_id]:
            del self._drafts[key]
