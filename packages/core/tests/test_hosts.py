"""Tests for the code-host adapters."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests
from github import GithubException

from prq_core.errors import OperationCancelled, UpstreamError
from prq_core.gh.fixtures import FixtureHost
from prq_core.gh.host import GitHubHost


def _file(filename, patch="@@ -1 +1 @@\n-a\n+b", status="modified", previous=None, additions=1, deletions=1):
    f = MagicMock()
    f.filename = filename
    f.patch = patch
    f.status = status
    f.previous_filename = previous
    f.additions = additions
    f.deletions = deletions
    return f


@pytest.fixture
def gh(mocker):
    """Patched PyGithub client; yields (host, mock_pull, mock_repo)."""
    github_cls = mocker.patch("prq_core.gh.host.Github")
    mock_repo = MagicMock()
    mock_pull = MagicMock()
    github_cls.return_value.get_repo.return_value = mock_repo
    mock_repo.get_pull.return_value = mock_pull
    host = GitHubHost(token="tok", timeout=30)
    return host, mock_pull, mock_repo, github_cls.return_value


class TestGitHubHost:
    def test_client_timeout_and_no_retry(self, mocker):
        github_cls = mocker.patch("prq_core.gh.host.Github")
        GitHubHost(token="tok", timeout=45)
        kwargs = github_cls.call_args.kwargs
        assert kwargs["timeout"] == 45
        assert kwargs["retry"] is None

    @pytest.mark.parametrize("configured,expected", [(0.5, 1), (45.6, 46), (30, 30)])
    def test_fractional_timeout_is_rounded(self, mocker, configured, expected):
        github_cls = mocker.patch("prq_core.gh.host.Github")
        GitHubHost(token="tok", timeout=configured)
        assert github_cls.call_args.kwargs["timeout"] == expected

    def test_fetch_pr_view(self, gh):
        host, pull, _, _ = gh
        pull.number = 7
        pull.title = "Add retries"
        pull.body = None
        pull.base.sha = "base1"
        pull.head.sha = "head1"
        pull.base.repo.full_name = "octo/widgets"
        pull.html_url = "https://github.com/octo/widgets/pull/7"
        pull.user.login = "alice"
        pull.get_files.return_value = [_file("a.py", additions=3, deletions=0)]

        view = host.fetch_pr_view("octo/widgets", 7)

        assert view.head_ref_oid == "head1"
        assert view.base_ref_oid == "base1"
        assert view.body == ""
        assert view.repository == "octo/widgets"
        assert view.author == "alice"
        assert [(f.path, f.additions, f.deletions) for f in view.files] == [("a.py", 3, 0)]

    def test_fetch_diff_synthesizes_headers(self, gh):
        host, pull, _, _ = gh
        pull.get_files.return_value = [
            _file("a.py"),
            _file("new.py", patch="@@ -0,0 +1 @@\n+x", status="added"),
            _file("logo.png", patch=None),
            _file("b.py", previous="old_b.py", status="renamed"),
        ]

        diff_text = host.fetch_diff("octo/widgets", 7)

        assert diff_text.startswith("diff --git a/a.py b/a.py\n--- a/a.py\n+++ b/a.py\n@@ -1 +1 @@\n")
        assert "diff --git a/new.py b/new.py\n--- /dev/null\n+++ b/new.py\n@@ -0,0 +1 @@\n+x\n" in diff_text
        assert "diff --git a/logo.png b/logo.png\n--- a/logo.png\n+++ b/logo.png\ndiff --git" in diff_text
        assert "diff --git a/old_b.py b/b.py\n--- a/old_b.py\n+++ b/b.py\n" in diff_text
        assert diff_text.endswith("\n")

    def test_fetch_diff_empty_pr(self, gh):
        host, pull, _, _ = gh
        pull.get_files.return_value = []
        assert host.fetch_diff("octo/widgets", 7) == ""

    def test_create_review(self, gh):
        host, pull, _, _ = gh
        pull.create_review.return_value = MagicMock(id=99, html_url="https://github.com/octo/widgets/pull/7#r99")
        comments = [{"path": "a.py", "position": 2, "body": "x"}]

        response = host.create_review("octo/widgets", 7, "Body", "COMMENT", comments)

        pull.create_review.assert_called_once_with(body="Body", event="COMMENT", comments=comments)
        assert response.id == 99
        assert response.html_url.endswith("#r99")

    def test_github_error_becomes_upstream_error(self, gh):
        host, pull, _, _ = gh
        pull.create_review.side_effect = GithubException(422, {"message": "Unprocessable"}, None)
        with pytest.raises(UpstreamError, match="create review on octo/widgets#7"):
            host.create_review("octo/widgets", 7, "Body", "COMMENT", [])

    def test_timeout_becomes_cancelled(self, gh):
        host, pull, _, _ = gh
        pull.get_files.side_effect = requests.exceptions.ReadTimeout("read timed out")
        with pytest.raises(OperationCancelled):
            host.fetch_diff("octo/widgets", 7)

    def test_connection_error_becomes_upstream_error(self, gh):
        host, pull, _, _ = gh
        pull.get_files.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(UpstreamError):
            host.fetch_diff("octo/widgets", 7)

    def test_compare_commits(self, gh):
        host, _, repo, _ = gh
        repo.compare.return_value = MagicMock(total_commits=2, files=[_file("a.py", additions=4, deletions=1)])

        comparison = host.compare_commits("octo/widgets", "aaa", "bbb")

        repo.compare.assert_called_once_with("aaa", "bbb")
        assert comparison.total_commits == 2
        assert comparison.files[0].filename == "a.py"
        assert comparison.files[0].additions == 4

    def test_review_threads_grouped_by_root(self, gh):
        host, pull, _, _ = gh
        created = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        def comment(id_, reply_to, line, author, body):
            c = MagicMock(id=id_, in_reply_to_id=reply_to, path="a.py", line=line, body=body, created_at=created)
            c.user.login = author
            return c

        pull.get_review_comments.return_value = [
            comment(1, None, 10, "alice", "why?"),
            comment(2, 1, 10, "bob", "because"),
            comment(3, None, None, "alice", "old code"),
        ]

        threads = host.review_threads("octo/widgets", 7)

        assert len(threads) == 2
        assert [c.author for c in threads[0].comments] == ["alice", "bob"]
        assert threads[0].line == 10
        assert not threads[0].is_outdated
        assert threads[1].is_outdated
        assert not any(t.is_resolved for t in threads)

    def test_search_review_requests(self, gh):
        host, _, _, client = gh

        def issue(url, title):
            i = MagicMock(html_url=url, title=title, created_at=None, updated_at=None, labels=[])
            i.user.login = "carol"
            return i

        client.search_issues.return_value = [
            issue("https://github.com/octo/widgets/pull/1", "one"),
            issue("https://github.com/octo/widgets/issues/2", "not a PR url"),
            issue("https://github.com/octo/gadgets/pull/3", "three"),
            issue("https://github.com/octo/gadgets/pull/4", "four"),
        ]

        items = host.search_review_requests("repo:octo/widgets", 2)

        client.search_issues.assert_called_once_with(
            "is:pr is:open review-requested:@me repo:octo/widgets", sort="created", order="asc"
        )
        assert [(i.repo, i.number) for i in items] == [("octo/widgets", 1), ("octo/gadgets", 3)]
        assert items[0].author == "carol"


class TestFixtureHost:
    @pytest.fixture
    def root(self, tmp_path):
        (tmp_path / "pr_view.json").write_text(
            json.dumps(
                {
                    "number": 7,
                    "title": "Add retries",
                    "body": "desc",
                    "url": "https://github.com/octo/widgets/pull/7",
                    "baseRefOid": "base1",
                    "headRefOid": "head1",
                    "author": {"login": "alice"},
                    "headRepository": {"nameWithOwner": "octo/widgets"},
                    "files": [{"path": "a.py", "additions": 2, "deletions": 1}],
                }
            )
        )
        (tmp_path / "pr_diff.txt").write_text("diff --git a/a.py b/a.py\n@@ -1 +1 @@\n-a\n+b\n")
        (tmp_path / "compare.json").write_text(
            json.dumps({"total_commits": 3, "files": [{"filename": "a.py", "status": "modified", "additions": 1}]})
        )
        (tmp_path / "queue.json").write_text(
            json.dumps(
                [
                    {
                        "number": n,
                        "title": f"PR {n}",
                        "repository": {"nameWithOwner": "octo/widgets"},
                        "createdAt": "2026-01-0%dT00:00:00Z" % n,
                        "labels": [{"name": "bug"}],
                    }
                    for n in (1, 2, 3)
                ]
            )
        )
        return tmp_path

    def test_pr_view(self, root):
        view = FixtureHost(root).fetch_pr_view("octo/widgets", 7)
        assert view.repository == "octo/widgets"
        assert view.head_ref_oid == "head1"
        assert view.author == "alice"
        assert view.files[0].path == "a.py"

    def test_diff(self, root):
        assert FixtureHost(root).fetch_diff("octo/widgets", 7).startswith("diff --git a/a.py")

    def test_records_posted_reviews(self, root):
        host = FixtureHost(root)
        response = host.create_review("octo/widgets", 7, "Body", "APPROVE", [])
        assert response.id == 1
        assert host.posted == [{"repo": "octo/widgets", "number": 7, "body": "Body", "event": "APPROVE", "comments": []}]

    def test_compare(self, root):
        comparison = FixtureHost(root).compare_commits("octo/widgets", "a", "b")
        assert comparison.total_commits == 3
        assert comparison.files[0].status == "modified"

    def test_threads_optional(self, root):
        assert FixtureHost(root).review_threads("octo/widgets", 7) == []

    def test_queue_respects_limit(self, root):
        items = FixtureHost(root).search_review_requests("", 2)
        assert [i.number for i in items] == [1, 2]
        assert items[0].labels == ["bug"]
        assert items[0].created_at == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_missing_fixture(self, tmp_path):
        with pytest.raises(UpstreamError, match="pr_view.json"):
            FixtureHost(tmp_path).fetch_pr_view("octo/widgets", 7)
