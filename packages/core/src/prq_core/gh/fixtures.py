"""FixtureHost: a BaseHost that answers from files on disk.

Used for mock runs (``fixtures_dir`` in .prq.yml) and end-to-end tests.
The directory holds the same JSON shapes ``gh`` prints:

  pr_view.json   pr_diff.txt   compare.json   threads.json   queue.json

Posted reviews are kept on the instance in ``posted`` instead of being sent
anywhere.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from prq_core.errors import UpstreamError
from prq_core.gh.host import (
    BaseHost,
    Comparison,
    ComparisonFile,
    PRFile,
    PRView,
    QueueItem,
    ReviewResponse,
    ReviewThread,
    ThreadComment,
)

logger = logging.getLogger(__name__)


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class FixtureHost(BaseHost):
    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.posted: list[dict] = []

    def _read(self, name: str) -> str:
        path = self.root / name
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise UpstreamError(f"no fixture {name} in {self.root}") from None

    def _read_json(self, name: str):
        try:
            return json.loads(self._read(name))
        except json.JSONDecodeError as e:
            raise UpstreamError(f"invalid fixture {name}: {e}") from e

    def fetch_pr_view(self, repo: str, number: int) -> PRView:
        d = self._read_json("pr_view.json")
        repository = d.get("repository") or d.get("headRepository") or {}
        return PRView(
            number=d.get("number", number),
            title=d.get("title", ""),
            body=d.get("body", ""),
            base_ref_oid=d.get("baseRefOid", ""),
            head_ref_oid=d.get("headRefOid", ""),
            repository=repository.get("nameWithOwner") or repo,
            url=d.get("url", ""),
            author=(d.get("author") or {}).get("login", ""),
            files=[
                PRFile(path=f.get("path", ""), additions=f.get("additions", 0), deletions=f.get("deletions", 0))
                for f in d.get("files") or []
            ],
        )

    def fetch_diff(self, repo: str, number: int) -> str:
        return self._read("pr_diff.txt")

    def create_review(self, repo: str, number: int, body: str, event: str, comments: list[dict]) -> ReviewResponse:
        self.posted.append({"repo": repo, "number": number, "body": body, "event": event, "comments": comments})
        logger.debug("Recorded fixture review #%d for %s#%d", len(self.posted), repo, number)
        return ReviewResponse(id=len(self.posted), html_url="")

    def compare_commits(self, repo: str, base: str, head: str) -> Comparison:
        d = self._read_json("compare.json")
        return Comparison(
            total_commits=d.get("total_commits", 0),
            files=[
                ComparisonFile(
                    filename=f.get("filename", ""),
                    status=f.get("status", ""),
                    additions=f.get("additions", 0),
                    deletions=f.get("deletions", 0),
                )
                for f in d.get("files") or []
            ],
        )

    def review_threads(self, repo: str, number: int) -> list[ReviewThread]:
        if not (self.root / "threads.json").exists():
            return []
        return [
            ReviewThread(
                path=t.get("path", ""),
                line=t.get("line"),
                is_resolved=t.get("is_resolved", False),
                is_outdated=t.get("is_outdated", False),
                comments=[
                    ThreadComment(author=c.get("author", ""), body=c.get("body", ""), created_at=c.get("created_at", ""))
                    for c in t.get("comments") or []
                ],
            )
            for t in self._read_json("threads.json")
        ]

    def search_review_requests(self, query: str, limit: int) -> list[QueueItem]:
        items = [
            QueueItem(
                repo=(d.get("repository") or {}).get("nameWithOwner", ""),
                number=d.get("number", 0),
                title=d.get("title", ""),
                url=d.get("url", ""),
                author=(d.get("author") or {}).get("login", ""),
                created_at=_parse_time(d.get("createdAt")),
                updated_at=_parse_time(d.get("updatedAt")),
                labels=[label.get("name", "") for label in d.get("labels") or []],
            )
            for d in self._read_json("queue.json")
        ]
        return items[:limit]
