"""Base provider implementing the Template Method pattern.

All providers share the same generation algorithm:
    run_review() → load_schema() + _build_system_prompt()
                 → _call_api()   ← only this differs per provider
                 → _parse() → validate_plan()

Subclasses implement two things only:
  - __init__: validate and store the SDK client (or command)
  - _call_api: make one raw call and return the text response

Parsing and schema validation live here so every provider enforces the same
contract: output that is not a schema-valid review plan is a hard error.
There is no retry loop; a failed call is reported to the operator, who can
simply run the command again.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

from prq_core.errors import PrqError, SchemaValidationError, UpstreamError
from prq_core.models import ReviewPlan
from prq_core.providers.schema import load_schema, validate_plan

logger = logging.getLogger(__name__)

_MAX_TOKENS = 8192

_OPEN_FENCE_RE = re.compile(r"^```(?:json)?\s*")
_CLOSE_FENCE_RE = re.compile(r"\s*```$")


class BaseProvider(ABC):
    MAX_TOKENS: int = _MAX_TOKENS

    def run_review(self, prompt_text: str, schema_path: str | Path) -> tuple[ReviewPlan, str]:
        """Generate a review plan for ``prompt_text``.

        Returns the parsed plan and the raw JSON text it was parsed from.
        Raises SchemaValidationError when the output is not a valid plan,
        OperationCancelled on timeout, UpstreamError on any other failure.
        """
        schema = load_schema(schema_path)
        system = self._build_system_prompt(schema)
        try:
            raw = self._call_api(system, prompt_text, schema)
        except PrqError:
            raise
        except Exception as e:
            raise UpstreamError(f"{self.__class__.__name__} review generation failed: {e}") from e

        cleaned, data = self._parse(raw, schema_path)
        validate_plan(data, schema, schema_path)
        return ReviewPlan.from_dict(data), cleaned

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str, schema: dict) -> str:
        """Make a single call and return the raw text response.

        Should raise OperationCancelled when the call times out; anything
        else it raises is wrapped in UpstreamError by run_review.
        """

    def _build_system_prompt(self, schema: dict) -> str:
        return f"""You are a careful senior code reviewer preparing a pull request review for a human reviewer.
Report only real, actionable issues and anchor each one to a file and new-file line range from the diff.

Respond with **only** a JSON object that validates against this JSON Schema:

{json.dumps(schema, indent=2)}

Do not return any text outside the JSON object."""

    def _parse(self, raw: str, schema_path: str | Path) -> tuple[str, object]:
        """Strip an outer ```json fence and decode the provider's text response."""
        cleaned = _OPEN_FENCE_RE.sub("", (raw or "").strip())
        cleaned = _CLOSE_FENCE_RE.sub("", cleaned.strip())
        try:
            return cleaned, json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.debug("%s: unparseable response: %s", self.__class__.__name__, cleaned[:200])
            raise SchemaValidationError(
                f"{self.__class__.__name__} output is not valid JSON (schema {schema_path}): {e}"
            ) from e
