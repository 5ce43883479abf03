"""Provider that shells out to the ``claude`` command-line tool.

The CLI enforces the schema itself (``--json-schema``) and wraps its answer:

    {"type": "result", "is_error": false, "structured_output": {...}}

Only ``structured_output`` is handed back to BaseProvider, which validates
it again against the same schema.
"""

from __future__ import annotations

import json
import logging
import subprocess

from prq_core.errors import OperationCancelled, UpstreamError
from prq_core.providers.base import BaseProvider

logger = logging.getLogger(__name__)


class ClaudeCLIProvider(BaseProvider):
    def __init__(self, command: str = "claude", args: list[str] | None = None, timeout: float = 120):
        self.command = command or "claude"
        self.args = list(args or [])
        self.timeout = timeout

    def _call_api(self, system_prompt: str, user_prompt: str, schema: dict) -> str:
        argv = [
            self.command,
            *self.args,
            "-p",
            "--output-format",
            "json",
            "--json-schema",
            json.dumps(schema, separators=(",", ":")),
            "--append-system-prompt",
            system_prompt,
            user_prompt,
        ]
        logger.debug("Running %s (prompt %d chars)", self.command, len(user_prompt))
        try:
            result = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise UpstreamError(f"provider command {self.command!r} not found in PATH") from None
        except subprocess.TimeoutExpired as e:
            raise OperationCancelled(f"{self.command} did not finish within {self.timeout}s") from e

        if result.returncode != 0:
            raise UpstreamError(f"{self.command} exited with status {result.returncode}\n{result.stderr.strip()}")
        return self._extract_structured_output(result.stdout)

    def _extract_structured_output(self, stdout: str) -> str:
        try:
            wrapper = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise UpstreamError(f"failed to parse {self.command} response wrapper: {e}") from e
        if not isinstance(wrapper, dict):
            raise UpstreamError(f"unexpected {self.command} response: {stdout[:200]}")
        if wrapper.get("is_error"):
            raise UpstreamError(f"{self.command} returned an error response: {stdout[:500]}")
        structured = wrapper.get("structured_output")
        if structured is None:
            raise UpstreamError(f"{self.command} response missing structured_output field")
        return json.dumps(structured)
