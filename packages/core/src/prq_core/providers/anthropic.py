from __future__ import annotations

from prq_core.errors import OperationCancelled
from prq_core.providers.base import BaseProvider


class AnthropicProvider(BaseProvider):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None, timeout: float = 120):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError("AnthropicProvider needs the anthropic package: pip install 'prq[anthropic]'")
        self.model = model or self.MODEL
        # SDK retries are disabled; failures surface to the operator.
        self.client = Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str, schema: dict) -> str:
        # optional dependency, checked in __init__
        from anthropic import APITimeoutError
        from anthropic.types import TextBlock

        try:
            response = self.client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except APITimeoutError as e:
            raise OperationCancelled(f"Anthropic review generation timed out: {e}") from e
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
