"""Resolve AI-reported issues to inline-comment positions."""

from __future__ import annotations

import logging

from prq_core.diff.positions import PositionMap
from prq_core.models import Issue, IssuePosition

logger = logging.getLogger(__name__)

_SIDE_PREFIXES = ("a/", "b/")


def map_issues_to_positions(position_map: PositionMap, issues: list[Issue]) -> list[IssuePosition]:
    """Return one IssuePosition per issue, in input order. Never drops an issue."""
    return [position_for_issue(position_map, issue) for issue in issues]


def _candidate_paths(file: str) -> list[str]:
    candidates = [file]
    if file.startswith("./"):
        candidates.append(file[2:])
    if file.startswith(_SIDE_PREFIXES):
        candidates.append(file[2:])
    return candidates


def position_for_issue(position_map: PositionMap, issue: Issue) -> IssuePosition:
    """Find the diff position for one issue.

    Each candidate path is tried with the start line first, then the end line
    of the reported range. The first hit wins. Both lookups use new-file
    numbering, so a range whose start no longer exists can still land on its end.
    """
    file = issue.file.strip()
    if not file:
        return IssuePosition(issue=issue, path="", line=0, position=0, mapped=False)

    for candidate in _candidate_paths(file):
        if issue.start_line > 0:
            position, found = position_map.position_for_new_line(candidate, issue.start_line)
            if found:
                return IssuePosition(issue=issue, path=candidate, line=issue.start_line, position=position, mapped=True)
        if issue.end_line > 0 and issue.end_line != issue.start_line:
            position, found = position_map.position_for_new_line(candidate, issue.end_line)
            if found:
                return IssuePosition(issue=issue, path=candidate, line=issue.end_line, position=position, mapped=True)

    logger.debug("Could not map issue at %s:%d-%d to a diff position", file, issue.start_line, issue.end_line)
    return IssuePosition(issue=issue, path=file, line=0, position=0, mapped=False)
