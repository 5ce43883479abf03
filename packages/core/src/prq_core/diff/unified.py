"""Split a PR's unified diff into per-file segments and prompt-sized chunks."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_FILE_HEADER = "diff --git "


@dataclass
class FileDiff:
    """One file's slice of a unified diff, header line included."""

    path: str
    text: str


def parse_unified(diff_text: str) -> list[FileDiff]:
    """Segment ``diff_text`` at every ``diff --git`` header.

    Lines before the first header are dropped. Every other line, hunk headers
    included, is kept verbatim with its newline in the current segment. A
    header too short to carry a path yields a segment with an empty path;
    callers that need a path skip those.
    """
    files: list[FileDiff] = []
    current: FileDiff | None = None

    for line in diff_text.split("\n"):
        if line.startswith(_FILE_HEADER):
            if current is not None:
                files.append(current)
            current = FileDiff(path=_parse_path(line), text=line + "\n")
            continue
        if current is None:
            continue
        current.text += line + "\n"

    if current is not None:
        files.append(current)
    return files


def _parse_path(header: str) -> str:
    # diff --git a/<old> b/<new>
    parts = header.split(" ")
    if len(parts) < 4:
        return ""
    path = parts[3]
    return path[2:] if path.startswith("b/") else path


def _is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any ignore pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - Directory names/prefixes: "vendor/", "testdata" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def build_chunks(files: list[FileDiff], ignore_globs: list[str], max_files: int, max_chunk_chars: int) -> list[str]:
    """Render file diffs as ``File: <path>`` chunks for the review prompt.

    At most ``max_files`` files are included; a file longer than
    ``max_chunk_chars`` is split into several consecutive chunks.
    """
    if max_files <= 0:
        raise ValueError("max_files must be > 0")
    if max_chunk_chars <= 0:
        raise ValueError("max_chunk_chars must be > 0")

    chunks: list[str] = []
    count = 0
    for file in files:
        if count >= max_files:
            logger.warning("Diff has more than %d files; the rest are left out of the prompt", max_files)
            break
        if not file.path:
            continue
        if _is_excluded(file.path, ignore_globs):
            logger.debug("Ignoring %s (matches diff_ignore)", file.path)
            continue
        for start in range(0, len(file.text), max_chunk_chars):
            chunks.append(f"File: {file.path}\n{file.text[start : start + max_chunk_chars]}")
        count += 1
    return chunks
