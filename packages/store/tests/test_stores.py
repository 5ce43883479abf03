"""Tests for prq-store implementations."""

from __future__ import annotations

import sqlite3

import pytest

from prq_store.base import NotFoundError
from prq_store.memory import MemoryStore
from prq_store.sqlite import SQLiteStore

PR_ID = "acme/app#1"


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path):
    """Run the shared contract tests against every backend."""
    if request.param == "sqlite":
        s = SQLiteStore(db_path=str(tmp_path / "prq.db"))
    else:
        s = MemoryStore()
    yield s
    s.close()


# ---------------------------------------------------------------------------
# PR state
# ---------------------------------------------------------------------------


class TestPRState:
    def test_upsert_and_get(self, store):
        store.upsert_pr(PR_ID, "acme/app", 1, "headsha1")

        state = store.get_pr(PR_ID)
        assert state.repo == "acme/app"
        assert state.number == 1
        assert state.last_seen_head_sha == "headsha1"
        assert state.last_reviewed_head_sha is None
        assert state.last_submitted_at is None

    def test_upsert_refreshes_head_without_touching_review_columns(self, store):
        store.upsert_pr(PR_ID, "acme/app", 1, "headsha1")
        store.mark_reviewed(PR_ID, "headsha1")

        store.upsert_pr(PR_ID, "acme/app", 1, "headsha2")

        state = store.get_pr(PR_ID)
        assert state.last_seen_head_sha == "headsha2"
        assert state.last_reviewed_head_sha == "headsha1"
        assert state.last_reviewed_at is not None

    def test_mark_reviewed_and_submitted(self, store):
        store.upsert_pr(PR_ID, "acme/app", 1, "headsha1")
        store.mark_reviewed(PR_ID, "headsha1")
        store.mark_submitted(PR_ID)

        state = store.get_pr(PR_ID)
        assert state.last_reviewed_head_sha == "headsha1"
        assert state.last_reviewed_at is not None
        assert state.last_submitted_at is not None

    def test_get_unknown_pr_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get_pr("acme/app#404")

    def test_mark_submitted_unknown_pr_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.mark_submitted("acme/app#404")

    def test_mark_reviewed_unknown_pr_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.mark_reviewed("acme/app#404", "sha")

    def test_mark_reviewed_requires_head_sha(self, store):
        store.upsert_pr(PR_ID, "acme/app", 1, "headsha1")
        with pytest.raises(ValueError, match="head_sha"):
            store.mark_reviewed(PR_ID, "")


# ---------------------------------------------------------------------------
# Draft reviews
# ---------------------------------------------------------------------------


class TestDraftReviews:
    def test_upsert_then_get_returns_last_write(self, store):
        store.upsert_draft_review(PR_ID, '{"ok":true}', "preview")

        draft = store.get_draft_review(PR_ID)
        assert draft.id == PR_ID
        assert draft.pr_id == PR_ID
        assert draft.payload_json == '{"ok":true}'
        assert draft.rendered_preview == "preview"
        assert draft.created_at

    def test_second_upsert_replaces(self, store):
        store.upsert_draft_review(PR_ID, '{"v":1}', "first")
        store.upsert_draft_review(PR_ID, '{"v":2}', "second")

        draft = store.get_draft_review(PR_ID)
        assert draft.payload_json == '{"v":2}'
        assert draft.rendered_preview == "second"

    def test_drafts_are_isolated_per_pr(self, store):
        store.upsert_draft_review(PR_ID, '{"v":1}', "one")
        store.upsert_draft_review("acme/app#2", '{"v":2}', "two")

        assert store.get_draft_review(PR_ID).rendered_preview == "one"
        assert store.get_draft_review("acme/app#2").rendered_preview == "two"

    @pytest.mark.parametrize(
        "args",
        [
            ("", "{}", "preview"),
            (PR_ID, "", "preview"),
            (PR_ID, "{}", ""),
        ],
    )
    def test_upsert_rejects_empty_arguments(self, store, args):
        with pytest.raises(ValueError):
            store.upsert_draft_review(*args)

    def test_get_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get_draft_review(PR_ID)

    def test_delete_removes_draft(self, store):
        store.upsert_draft_review(PR_ID, "{}", "preview")
        store.delete_draft_review(PR_ID)

        with pytest.raises(NotFoundError):
            store.get_draft_review(PR_ID)

    def test_delete_is_idempotent(self, store):
        store.delete_draft_review(PR_ID)  # must not raise
        store.upsert_draft_review(PR_ID, "{}", "preview")
        store.delete_draft_review(PR_ID)
        store.delete_draft_review(PR_ID)


# ---------------------------------------------------------------------------
# SQLiteStore specifics
# ---------------------------------------------------------------------------


class TestSQLiteStore:
    def test_second_upsert_keeps_one_row(self, tmp_path):
        db_path = str(tmp_path / "prq.db")
        store = SQLiteStore(db_path=db_path)
        store.upsert_draft_review(PR_ID, '{"v":1}', "first")
        store.upsert_draft_review(PR_ID, '{"v":2}', "second")
        store.close()

        conn = sqlite3.connect(db_path)
        count = conn.execute("SELECT COUNT(*) FROM draft_reviews WHERE pr_id = ?", (PR_ID,)).fetchone()[0]
        conn.close()
        assert count == 1

    def test_falls_back_to_newest_draft_by_pr_id(self, tmp_path):
        """Rows whose id differs from the PR key are still found through pr_id."""
        db_path = str(tmp_path / "prq.db")
        store = SQLiteStore(db_path=db_path)
        store.close()

        conn = sqlite3.connect(db_path)
        conn.executemany(
            "INSERT INTO draft_reviews (id, pr_id, created_at, payload_json, rendered_preview) VALUES (?, ?, ?, ?, ?)",
            [
                ("legacy-1", PR_ID, "2024-01-01T00:00:00+00:00", '{"v":1}', "old"),
                ("legacy-2", PR_ID, "2024-02-01T00:00:00+00:00", '{"v":2}', "new"),
            ],
        )
        conn.commit()
        conn.close()

        store = SQLiteStore(db_path=db_path)
        draft = store.get_draft_review(PR_ID)
        assert draft.id == "legacy-2"
        assert draft.rendered_preview == "new"

        store.delete_draft_review(PR_ID)
        with pytest.raises(NotFoundError):
            store.get_draft_review(PR_ID)
        store.close()

    def test_persists_across_connections(self, tmp_path):
        """Data written by one SQLiteStore instance must be readable by another."""
        db_path = str(tmp_path / "prq.db")
        store_a = SQLiteStore(db_path=db_path)
        store_a.upsert_pr(PR_ID, "acme/app", 1, "headsha1")
        store_a.upsert_draft_review(PR_ID, "{}", "preview")
        store_a.close()

        store_b = SQLiteStore(db_path=db_path)
        assert store_b.get_pr(PR_ID).last_seen_head_sha == "headsha1"
        assert store_b.get_draft_review(PR_ID).rendered_preview == "preview"
        store_b.close()

    def test_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "prq.db"
        store = SQLiteStore(db_path=str(db_path))
        store.close()
        assert db_path.exists()

    def test_in_memory_database(self):
        store = SQLiteStore(db_path=":memory:")
        store.upsert_pr(PR_ID, "acme/app", 1, "sha")
        assert store.get_pr(PR_ID).number == 1
        store.close()
