"""Tests for prompt template loading and rendering."""

import json

import pytest

from prq_core.errors import PrqError
from prq_core.prompt import PromptSnapshot, default_schema_path, load_template, render, render_rules

PLACEHOLDERS = (
    "{USER_RULES}",
    "{REPO_RULES}",
    "{REPO}",
    "{PR_NUMBER}",
    "{TITLE}",
    "{DESCRIPTION}",
    "{BASE_SHA}",
    "{HEAD_SHA}",
    "{CI_SUMMARY}",
    "{TEST_RESULTS}",
    "{FILE_LIST_WITH_STATS}",
    "{DIFF_CHUNKS}",
)


def _snapshot(**overrides):
    values = dict(
        repo="octo/widgets",
        pr_number=42,
        title="Add retries",
        description="Retries flaky calls.",
        base_sha="base123",
        head_sha="head456",
        ci_summary="Not fetched",
        test_results="Not run",
        file_list_stats="src/a.py (+3/-1)",
        diff_chunks="File: src/a.py\n+retry()",
    )
    values.update(overrides)
    return PromptSnapshot(**values)


class TestRenderRules:
    def test_empty_is_none(self):
        assert render_rules([]) == "None"

    def test_bulleted(self):
        assert render_rules(["one", "two"]) == "- one\n- two"


class TestRender:
    def test_replaces_every_placeholder(self):
        template = " | ".join(PLACEHOLDERS)
        out = render(template, ["be kind"], [], _snapshot())
        assert out == (
            "- be kind | None | octo/widgets | 42 | Add retries | Retries flaky calls. | base123 | head456"
            " | Not fetched | Not run | src/a.py (+3/-1) | File: src/a.py\n+retry()"
        )

    def test_replaces_repeated_placeholders(self):
        assert render("{REPO} and {REPO}", [], [], _snapshot()) == "octo/widgets and octo/widgets"

    def test_other_braces_are_left_alone(self):
        out = render("{REPO} {unknown} {}", [], [], _snapshot())
        assert out == "octo/widgets {unknown} {}"

    def test_markers_inside_values_are_not_expanded(self):
        out = render("{TITLE}: {DIFF_CHUNKS}", [], [], _snapshot(diff_chunks="+ print('{HEAD_SHA}')"))
        assert out == "Add retries: + print('{HEAD_SHA}')"


class TestBuiltins:
    def test_builtin_template_has_all_placeholders(self):
        template = load_template()
        for marker in PLACEHOLDERS:
            assert marker in template

    def test_custom_template(self, tmp_path):
        path = tmp_path / "prompt.txt"
        path.write_text("Review {REPO}")
        assert load_template(str(path)) == "Review {REPO}"

    def test_missing_custom_template_raises(self, tmp_path):
        with pytest.raises(PrqError, match="prompt template not found"):
            load_template(str(tmp_path / "missing.txt"))

    def test_builtin_schema_is_valid_json(self):
        schema = json.loads(default_schema_path().read_text())
        assert "issues" in schema["required"]

    def test_schema_path_override(self, tmp_path):
        custom = tmp_path / "schema.json"
        assert default_schema_path({"schema_path": str(custom)}) == custom
