"""JSON Schema loading and validation for provider output."""

from __future__ import annotations

import json
from pathlib import Path

from jsonschema import validators
from jsonschema.exceptions import best_match

from prq_core.errors import PrqError, SchemaValidationError

BUILTIN_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "review_plan.schema.json"


def load_schema(schema_path: str | Path) -> dict:
    path = Path(schema_path)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise PrqError(f"review plan schema not found: {path}") from None
    except json.JSONDecodeError as e:
        raise PrqError(f"review plan schema {path} is not valid JSON: {e}") from e


def validate_plan(data, schema: dict, schema_path: str | Path) -> None:
    """Raise SchemaValidationError unless ``data`` satisfies ``schema``."""
    validator_cls = validators.validator_for(schema)
    error = best_match(validator_cls(schema).iter_errors(data))
    if error is not None:
        location = "/".join(str(p) for p in error.absolute_path) or "<root>"
        raise SchemaValidationError(
            f"provider output failed schema validation against {schema_path}: {error.message} (at {location})"
        )
