from __future__ import annotations

try:
    from openai import APITimeoutError as _APITimeoutError
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]
    _APITimeoutError = None  # type: ignore[assignment,misc]

from prq_core.errors import OperationCancelled
from prq_core.providers.base import BaseProvider


class OpenAIProvider(BaseProvider):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None, timeout: float = 120):
        if _OpenAI is None:
            raise ImportError("OpenAIProvider needs the openai package: pip install 'prq[openai]'")
        self.model = model or self.MODEL
        self.client = _OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str, schema: dict) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except _APITimeoutError as e:
            raise OperationCancelled(f"OpenAI review generation timed out: {e}") from e
        return response.choices[0].message.content or ""
