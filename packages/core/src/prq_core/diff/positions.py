"""
Map file line numbers to review-comment diff positions.

GitHub addresses inline review comments by a per-file "position": a counter
over the lines of that file's diff, not a source line number. Here every
hunk header consumes one position and so does every body line after it
(context, addition, deletion, or "\\ No newline" marker), and the counter
keeps running across hunks of the same file. Metadata lines before the first
hunk (``diff --git``, ``index``, ``---``, ``+++``) are not counted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from prq_core.diff.unified import FileDiff
from prq_core.errors import DiffParseError

_HUNK_RE = re.compile(r"^@@ -([0-9]+)(?:,([0-9]+))? \+([0-9]+)(?:,([0-9]+))? @@")


@dataclass
class PositionMap:
    """Per-file line → position lookups for both sides of the diff."""

    new_line_to_position: dict[str, dict[int, int]] = field(default_factory=dict)
    old_line_to_position: dict[str, dict[int, int]] = field(default_factory=dict)

    def position_for_new_line(self, path: str, line: int) -> tuple[int, bool]:
        """Return ``(position, True)`` or ``(0, False)`` when the line is not in the diff."""
        return _lookup(self.new_line_to_position, path, line)

    def position_for_old_line(self, path: str, line: int) -> tuple[int, bool]:
        return _lookup(self.old_line_to_position, path, line)


def _lookup(table: dict[str, dict[int, int]], path: str, line: int) -> tuple[int, bool]:
    file_map = table.get(path)
    if file_map is None or line not in file_map:
        return 0, False
    return file_map[line], True


def build_position_map(files: list[FileDiff]) -> PositionMap:
    pm = PositionMap()
    for file in files:
        try:
            new_map, old_map = _build_file_maps(file.text)
        except DiffParseError as e:
            raise DiffParseError(f"build position map for {file.path!r}: {e}") from e
        if new_map:
            pm.new_line_to_position[file.path] = new_map
        if old_map:
            pm.old_line_to_position[file.path] = old_map
    return pm


def _build_file_maps(file_diff: str) -> tuple[dict[int, int], dict[int, int]]:
    new_map: dict[int, int] = {}
    old_map: dict[int, int] = {}
    position = 0
    old_line = 0
    new_line = 0
    in_hunk = False

    for line in file_diff.split("\n"):
        if not line:
            continue

        match = _HUNK_RE.match(line)
        if match:
            try:
                old_line = int(match.group(1))
                new_line = int(match.group(3))
            except ValueError:
                raise DiffParseError(f"invalid hunk header: {line!r}") from None
            in_hunk = True
            position += 1
            continue

        if not in_hunk:
            continue

        position += 1
        prefix = line[0]
        if prefix == " ":
            old_map[old_line] = position
            new_map[new_line] = position
            old_line += 1
            new_line += 1
        elif prefix == "+":
            new_map[new_line] = position
            new_line += 1
        elif prefix == "-":
            old_map[old_line] = position
            old_line += 1
        # "\ No newline at end of file" and unknown prefixes hold a position but map nothing.

    return new_map, old_map
