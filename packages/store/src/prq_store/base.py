"""Abstract store interface.

The CLI and the submission pipeline depend on BaseStore, not on a concrete
backend, so SQLite can be swapped for the in-memory store in tests and
fixture mode without touching any caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prq_store.models import DraftReview, PRState


class NotFoundError(LookupError):
    """Raised when a PR state row or draft review does not exist."""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BaseStore(ABC):
    """Sole owner of persisted draft reviews and PR state.

    Every method is individually atomic. Callers must re-read state after
    any external call instead of caching records across a submit.
    """

    # ------------------------------------------------------------------ #
    # PR state                                                             #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def upsert_pr(self, pr_id: str, repo: str, number: int, head_sha: str) -> None:
        """Create the PR row or refresh its repo, number and last seen head."""

    @abstractmethod
    def get_pr(self, pr_id: str) -> PRState:
        """Return the PR row. Raises NotFoundError if it was never seen."""

    @abstractmethod
    def mark_reviewed(self, pr_id: str, head_sha: str) -> None:
        """Record that a review was generated for ``head_sha``."""

    @abstractmethod
    def mark_submitted(self, pr_id: str) -> None:
        """Stamp ``last_submitted_at`` with the current time."""

    # ------------------------------------------------------------------ #
    # Draft reviews                                                        #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def upsert_draft_review(self, pr_id: str, payload_json: str, rendered_preview: str) -> None:
        """Insert or fully replace the single draft for ``pr_id``."""

    @abstractmethod
    def get_draft_review(self, pr_id: str) -> DraftReview:
        """Return the draft for ``pr_id``. Raises NotFoundError if absent.

        Looks up by draft id first, then falls back to the newest draft whose
        pr_id matches, for databases written when the two could differ.
        """

    @abstractmethod
    def delete_draft_review(self, pr_id: str) -> None:
        """Remove the draft for ``pr_id``. A missing draft is not an error."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional; subclasses that need cleanup should override this.
        """

    @staticmethod
    def _require(**values: str) -> None:
        for name, value in values.items():
            if not value:
                raise ValueError(f"{name} is required")
