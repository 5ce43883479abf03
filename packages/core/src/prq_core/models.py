"""Review plan and draft payload models.

The JSON field names match the review plan schema shipped in
``prq_core/schemas/review_plan.schema.json`` and the payload stored in
``draft_reviews.payload_json``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


def _as_int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class Issue:
    """A single AI-reported finding. File and line numbers are approximate."""

    severity: str
    category: str
    file: str
    start_line: int
    end_line: int
    message: str
    suggestion_patch: str = ""
    confidence: float | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Issue:
        confidence = d.get("confidence")
        return cls(
            severity=d.get("severity", "") or "",
            category=d.get("category", "") or "",
            file=d.get("file", "") or "",
            start_line=_as_int(d.get("start_line")),
            end_line=_as_int(d.get("end_line")),
            message=d.get("message", "") or "",
            suggestion_patch=d.get("suggestion_patch", "") or "",
            confidence=float(confidence) if confidence is not None else None,
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        if not self.suggestion_patch:
            d.pop("suggestion_patch")
        if self.confidence is None:
            d.pop("confidence")
        return d


@dataclass
class ReviewPlan:
    """Structured review produced by the AI provider."""

    summary: str = ""
    risk_level: str = ""
    decision: str = ""
    key_changes: list[str] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)
    questions: list[str] = field(default_factory=list)
    praise: list[str] = field(default_factory=list)
    draft_review_body: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> ReviewPlan:
        return cls(
            summary=d.get("summary", "") or "",
            risk_level=d.get("risk_level", "") or "",
            decision=d.get("decision", "") or "",
            key_changes=list(d.get("key_changes") or []),
            issues=[Issue.from_dict(i) for i in d.get("issues") or []],
            questions=list(d.get("questions") or []),
            praise=list(d.get("praise") or []),
            draft_review_body=d.get("draft_review_body", "") or "",
        )

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "risk_level": self.risk_level,
            "decision": self.decision,
            "key_changes": list(self.key_changes),
            "issues": [i.to_dict() for i in self.issues],
            "questions": list(self.questions),
            "praise": list(self.praise),
            "draft_review_body": self.draft_review_body,
        }


@dataclass
class DraftReviewPayload:
    """What `prq draft` saves and `prq submit` posts.

    ``head_sha`` is the commit the plan was generated against; submit compares
    it with the PR's current head to detect drift.
    """

    repo: str
    number: int
    base_sha: str
    head_sha: str
    plan: ReviewPlan

    @classmethod
    def from_dict(cls, d: dict) -> DraftReviewPayload:
        return cls(
            repo=d.get("repo", "") or "",
            number=_as_int(d.get("number")),
            base_sha=d.get("base_sha", "") or "",
            head_sha=d.get("head_sha", "") or "",
            plan=ReviewPlan.from_dict(d.get("plan") or {}),
        )

    def to_dict(self) -> dict:
        return {
            "repo": self.repo,
            "number": self.number,
            "base_sha": self.base_sha,
            "head_sha": self.head_sha,
            "plan": self.plan.to_dict(),
        }


@dataclass
class IssuePosition:
    """Where an issue landed in the diff.

    ``mapped`` is False when no diff position matched; ``path`` then holds
    the issue's own file string for display and line/position are 0.
    """

    issue: Issue
    path: str
    line: int
    position: int
    mapped: bool
