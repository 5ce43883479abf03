"""SQLiteStore: the default local store for draft reviews and PR state.

Two prq invocations touching the same database serialize on SQLite's file
lock; the busy timeout makes the second one wait instead of failing. Every
method below runs in exactly one transaction.

Schema:
  prs            one row per PR reference, mutated in place, never deleted.
  draft_reviews  at most one row per PR reference. pr_id is kept unique by
                 upsert semantics (id == pr_id), not by a constraint.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from prq_store.base import BaseStore, NotFoundError, utc_now
from prq_store.models import DraftReview, PRState

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "~/.prq/prq.db"

# Seconds a writer waits on a locked database before giving up.
_BUSY_TIMEOUT = 30.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS prs (
    id                      TEXT PRIMARY KEY,
    repo                    TEXT NOT NULL,
    number                  INTEGER NOT NULL,
    last_seen_head_sha      TEXT NOT NULL,
    last_reviewed_head_sha  TEXT,
    last_reviewed_at        TEXT,
    last_submitted_at       TEXT,
    snoozed_until           TEXT,
    notes                   TEXT
);
CREATE TABLE IF NOT EXISTS draft_reviews (
    id                TEXT PRIMARY KEY,
    pr_id             TEXT NOT NULL,
    created_at        TEXT NOT NULL,
    payload_json      TEXT NOT NULL,
    rendered_preview  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_draft_reviews_pr ON draft_reviews (pr_id, created_at);
"""

_DRAFT_COLUMNS = "id, pr_id, created_at, payload_json, rendered_preview"


class SQLiteStore(BaseStore):
    """Stores drafts and PR state in a local SQLite database file.

    The database path defaults to ``~/.prq/prq.db``; configure it with
    ``db_path`` in .prq.yml. The parent directory is created on first use.
    ``:memory:`` is accepted for throwaway databases.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        if db_path != ":memory:":
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            db_path = str(path)
        self._conn = sqlite3.connect(db_path, timeout=_BUSY_TIMEOUT)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        logger.debug("Opened SQLite store at %s", db_path)

    # ------------------------------------------------------------------ #
    # PR state                                                             #
    # ------------------------------------------------------------------ #

    def upsert_pr(self, pr_id: str, repo: str, number: int, head_sha: str) -> None:
        self._require(pr_id=pr_id)
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO prs (id, repo, number, last_seen_head_sha)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    repo = excluded.repo,
                    number = excluded.number,
                    last_seen_head_sha = excluded.last_seen_head_sha
                """,
                (pr_id, repo, number, head_sha),
            )

    def get_pr(self, pr_id: str) -> PRState:
        row = self._conn.execute("SELECT * FROM prs WHERE id = ?", (pr_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"no PR state for {pr_id}")
        return self._row_to_pr(row)

    def mark_reviewed(self, pr_id: str, head_sha: str) -> None:
        self._require(pr_id=pr_id, head_sha=head_sha)
        with self._conn:
            cursor = self._conn.execute(
                "UPDATE prs SET last_reviewed_head_sha = ?, last_reviewed_at = ? WHERE id = ?",
                (head_sha, utc_now(), pr_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"no PR state for {pr_id}")

    def mark_submitted(self, pr_id: str) -> None:
        self._require(pr_id=pr_id)
        with self._conn:
            cursor = self._conn.execute(
                "UPDATE prs SET last_submitted_at = ? WHERE id = ?",
                (utc_now(), pr_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"no PR state for {pr_id}")

    # ------------------------------------------------------------------ #
    # Draft reviews                                                        #
    # ------------------------------------------------------------------ #

    def upsert_draft_review(self, pr_id: str, payload_json: str, rendered_preview: str) -> None:
        self._require(pr_id=pr_id, payload_json=payload_json, rendered_preview=rendered_preview)
        with self._conn:
            self._conn.execute(
                f"""
                INSERT INTO draft_reviews ({_DRAFT_COLUMNS})
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    pr_id = excluded.pr_id,
                    created_at = excluded.created_at,
                    payload_json = excluded.payload_json,
                    rendered_preview = excluded.rendered_preview
                """,
                (pr_id, pr_id, utc_now(), payload_json, rendered_preview),
            )

    def get_draft_review(self, pr_id: str) -> DraftReview:
        row = self._conn.execute(
            f"SELECT {_DRAFT_COLUMNS} FROM draft_reviews WHERE id = ?",
            (pr_id,),
        ).fetchone()
        if row is None:
            row = self._conn.execute(
                f"SELECT {_DRAFT_COLUMNS} FROM draft_reviews WHERE pr_id = ? ORDER BY created_at DESC LIMIT 1",
                (pr_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"no draft review for {pr_id}")
        return DraftReview(
            id=row["id"],
            pr_id=row["pr_id"],
            created_at=row["created_at"],
            payload_json=row["payload_json"],
            rendered_preview=row["rendered_preview"],
        )

    def delete_draft_review(self, pr_id: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM draft_reviews WHERE id = ? OR pr_id = ?", (pr_id, pr_id))

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_pr(row: sqlite3.Row) -> PRState:
        return PRState(
            id=row["id"],
            repo=row["repo"],
            number=row["number"],
            last_seen_head_sha=row["last_seen_head_sha"],
            last_reviewed_head_sha=row["last_reviewed_head_sha"],
            last_reviewed_at=row["last_reviewed_at"],
            last_submitted_at=row["last_submitted_at"],
            snoozed_until=row["snoozed_until"],
            notes=row["notes"],
        )
