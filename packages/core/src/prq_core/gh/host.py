"""Code-host capability interface and its GitHub implementation.

Everything prq needs from the code host goes through BaseHost, so the core
pipeline never knows whether it is talking to GitHub or to a directory of
fixtures. GitHubHost is a thin PyGithub adapter: it converts PyGithub objects
into the plain dataclasses below and PyGithub/requests failures into
UpstreamError / OperationCancelled.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

import requests
from github import Auth, Github, GithubException

from prq_core.errors import InputError, OperationCancelled, UpstreamError
from prq_core.gh.pull_request import parse_pr_ref

logger = logging.getLogger(__name__)

_QUEUE_BASE_QUERY = "is:pr is:open review-requested:@me"


@dataclass
class PRFile:
    path: str
    additions: int = 0
    deletions: int = 0


@dataclass
class PRView:
    """The subset of a pull request the review pipeline reads."""

    number: int
    title: str
    body: str
    base_ref_oid: str
    head_ref_oid: str
    repository: str  # owner/repo
    url: str = ""
    author: str = ""
    files: list[PRFile] = field(default_factory=list)


@dataclass
class ReviewResponse:
    id: int = 0
    html_url: str = ""


@dataclass
class ComparisonFile:
    filename: str
    status: str
    additions: int = 0
    deletions: int = 0


@dataclass
class Comparison:
    total_commits: int
    files: list[ComparisonFile] = field(default_factory=list)


@dataclass
class ThreadComment:
    author: str
    body: str
    created_at: str


@dataclass
class ReviewThread:
    path: str
    line: int | None
    is_resolved: bool = False
    is_outdated: bool = False
    comments: list[ThreadComment] = field(default_factory=list)


@dataclass
class QueueItem:
    repo: str
    number: int
    title: str
    url: str
    author: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    labels: list[str] = field(default_factory=list)


class BaseHost(ABC):
    """Read and write operations against pull requests on a code host."""

    @abstractmethod
    def fetch_pr_view(self, repo: str, number: int) -> PRView: ...

    @abstractmethod
    def fetch_diff(self, repo: str, number: int) -> str:
        """Return the whole PR as one unified diff with ``diff --git`` headers."""

    @abstractmethod
    def create_review(self, repo: str, number: int, body: str, event: str, comments: list[dict]) -> ReviewResponse:
        """Post a review. ``comments`` are ``{"path", "position", "body"}`` dicts."""

    @abstractmethod
    def compare_commits(self, repo: str, base: str, head: str) -> Comparison: ...

    @abstractmethod
    def review_threads(self, repo: str, number: int) -> list[ReviewThread]: ...

    @abstractmethod
    def search_review_requests(self, query: str, limit: int) -> list[QueueItem]: ...


@contextmanager
def _upstream(what: str):
    """Translate PyGithub and transport failures for one logical call."""
    try:
        yield
    except GithubException as e:
        raise UpstreamError(f"GitHub {what} failed ({e.status}): {e.data}") from e
    except requests.exceptions.Timeout as e:
        raise OperationCancelled(f"GitHub {what} timed out: {e}") from e
    except requests.exceptions.RequestException as e:
        raise UpstreamError(f"GitHub {what} failed: {e}") from e


def _file_diff_header(f) -> str:
    old = f.previous_filename or f.filename
    lines = [f"diff --git a/{old} b/{f.filename}"]
    lines.append("--- /dev/null" if f.status == "added" else f"--- a/{old}")
    lines.append("+++ /dev/null" if f.status == "removed" else f"+++ b/{f.filename}")
    return "\n".join(lines)


class GitHubHost(BaseHost):
    """BaseHost backed by the GitHub REST API via PyGithub.

    ``timeout`` bounds every HTTP request; PyGithub's own retry loop is turned
    off so a failed call surfaces immediately to the operator.
    """

    def __init__(self, token: str, timeout: float = 120):
        self._gh = Github(auth=Auth.Token(token), timeout=max(1, round(timeout)), retry=None)

    def _pull(self, repo: str, number: int):
        return self._gh.get_repo(repo).get_pull(number)

    def fetch_pr_view(self, repo: str, number: int) -> PRView:
        with _upstream(f"view of {repo}#{number}"):
            pr = self._pull(repo, number)
            return PRView(
                number=pr.number,
                title=pr.title or "",
                body=pr.body or "",
                base_ref_oid=pr.base.sha,
                head_ref_oid=pr.head.sha,
                repository=pr.base.repo.full_name,
                url=pr.html_url or "",
                author=pr.user.login if pr.user else "",
                files=[PRFile(path=f.filename, additions=f.additions, deletions=f.deletions) for f in pr.get_files()],
            )

    def fetch_diff(self, repo: str, number: int) -> str:
        """Rebuild a unified diff from the per-file patches GitHub returns.

        Files without a patch (binary, or too large for the API) contribute
        only their header, so they parse but never map a position.
        """
        with _upstream(f"diff of {repo}#{number}"):
            sections = []
            for f in self._pull(repo, number).get_files():
                section = _file_diff_header(f)
                if f.patch:
                    section += "\n" + f.patch.rstrip("\n")
                else:
                    logger.debug("No patch for %s (binary or oversized)", f.filename)
                sections.append(section)
        return "\n".join(sections) + "\n" if sections else ""

    def create_review(self, repo: str, number: int, body: str, event: str, comments: list[dict]) -> ReviewResponse:
        with _upstream(f"create review on {repo}#{number}"):
            review = self._pull(repo, number).create_review(body=body, event=event, comments=comments)
        return ReviewResponse(id=review.id or 0, html_url=review.html_url or "")

    def compare_commits(self, repo: str, base: str, head: str) -> Comparison:
        with _upstream(f"compare {base[:7]}...{head[:7]} in {repo}"):
            comparison = self._gh.get_repo(repo).compare(base, head)
            return Comparison(
                total_commits=comparison.total_commits,
                files=[
                    ComparisonFile(filename=f.filename, status=f.status, additions=f.additions, deletions=f.deletions)
                    for f in comparison.files
                ],
            )

    def review_threads(self, repo: str, number: int) -> list[ReviewThread]:
        """Group the PR's review comments into threads by their root comment.

        The REST API does not expose resolution state, so every thread comes
        back unresolved; a comment whose line no longer exists in the diff
        marks its thread outdated.
        """
        threads: dict[int, ReviewThread] = {}
        with _upstream(f"review comments of {repo}#{number}"):
            for c in self._pull(repo, number).get_review_comments():
                root = c.in_reply_to_id or c.id
                thread = threads.get(root)
                if thread is None:
                    thread = threads[root] = ReviewThread(path=c.path or "", line=c.line, is_outdated=c.line is None)
                thread.comments.append(
                    ThreadComment(
                        author=c.user.login if c.user else "",
                        body=c.body or "",
                        created_at=c.created_at.isoformat() if c.created_at else "",
                    )
                )
        return list(threads.values())

    def search_review_requests(self, query: str, limit: int) -> list[QueueItem]:
        full_query = f"{_QUEUE_BASE_QUERY} {query}".strip()
        items: list[QueueItem] = []
        with _upstream("search for review requests"):
            for issue in self._gh.search_issues(full_query, sort="created", order="asc"):
                if len(items) >= limit:
                    break
                try:
                    repo, number = parse_pr_ref(issue.html_url)
                except InputError:
                    logger.debug("Skipping search result with unexpected URL %s", issue.html_url)
                    continue
                items.append(
                    QueueItem(
                        repo=repo,
                        number=number,
                        title=issue.title or "",
                        url=issue.html_url,
                        author=issue.user.login if issue.user else "",
                        created_at=issue.created_at,
                        updated_at=issue.updated_at,
                        labels=[label.name for label in issue.labels],
                    )
                )
        return items
