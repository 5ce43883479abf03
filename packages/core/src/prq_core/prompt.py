"""Review prompt template loading and rendering.

The template uses ``{PLACEHOLDER}`` markers that are substituted in a single
pass: other braces in the template are left alone, and a marker that shows up
inside substituted text (a diff, a PR description) is never expanded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from prq_core.errors import PrqError
from prq_core.providers.schema import BUILTIN_SCHEMA_PATH

_PLACEHOLDER_RE = re.compile(
    r"\{(?:USER_RULES|REPO_RULES|REPO|PR_NUMBER|TITLE|DESCRIPTION|BASE_SHA|HEAD_SHA"
    r"|CI_SUMMARY|TEST_RESULTS|FILE_LIST_WITH_STATS|DIFF_CHUNKS)\}"
)

BUILTIN_PROMPTS_DIR = Path(__file__).parent / "prompts"
_BUILTIN_TEMPLATE = BUILTIN_PROMPTS_DIR / "code-reviewer.txt"


@dataclass
class PromptSnapshot:
    repo: str
    pr_number: int
    title: str = ""
    description: str = ""
    base_sha: str = ""
    head_sha: str = ""
    ci_summary: str = ""
    test_results: str = ""
    file_list_stats: str = ""
    diff_chunks: str = ""


def load_template(path: Optional[str] = None) -> str:
    """Load the prompt template from ``path``, or the built-in one."""
    if path:
        p = Path(path)
        if not p.exists():
            raise PrqError(f"prompt template not found: {path}")
        return p.read_text(encoding="utf-8")
    return _BUILTIN_TEMPLATE.read_text(encoding="utf-8")


def default_schema_path(config: Optional[dict] = None) -> Path:
    custom = (config or {}).get("schema_path")
    return Path(custom) if custom else BUILTIN_SCHEMA_PATH


def render_rules(rules: list[str]) -> str:
    if not rules:
        return "None"
    return "\n".join(f"- {rule}" for rule in rules).strip()


def render(template: str, user_rules: list[str], repo_rules: list[str], snapshot: PromptSnapshot) -> str:
    replacements = {
        "{USER_RULES}": render_rules(user_rules),
        "{REPO_RULES}": render_rules(repo_rules),
        "{REPO}": snapshot.repo,
        "{PR_NUMBER}": str(snapshot.pr_number),
        "{TITLE}": snapshot.title,
        "{DESCRIPTION}": snapshot.description,
        "{BASE_SHA}": snapshot.base_sha,
        "{HEAD_SHA}": snapshot.head_sha,
        "{CI_SUMMARY}": snapshot.ci_summary,
        "{TEST_RESULTS}": snapshot.test_results,
        "{FILE_LIST_WITH_STATS}": snapshot.file_list_stats,
        "{DIFF_CHUNKS}": snapshot.diff_chunks,
    }
    return _PLACEHOLDER_RE.sub(lambda m: replacements[m.group(0)], template)
