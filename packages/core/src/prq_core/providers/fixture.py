from __future__ import annotations

from pathlib import Path

from prq_core.errors import UpstreamError
from prq_core.providers.base import BaseProvider


class FixtureProvider(BaseProvider):
    """Returns a canned review plan from a JSON file. Used in fixture mode and tests.

    The file still goes through the shared parse and schema validation, so a
    broken fixture fails exactly like a broken model response would.
    """

    def __init__(self, fixture_path: str | Path):
        self.fixture_path = Path(fixture_path)

    def _call_api(self, system_prompt: str, user_prompt: str, schema: dict) -> str:
        try:
            return self.fixture_path.read_text(encoding="utf-8")
        except OSError as e:
            raise UpstreamError(f"failed to read provider fixture {self.fixture_path}: {e}") from e
