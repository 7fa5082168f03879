from __future__ import annotations

from anthropic import Anthropic
from anthropic.types import TextBlock

from articlecheck_core.providers.base import BaseAnalyzer


class AnthropicAnalyzer(BaseAnalyzer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.7

    def __init__(self, api_key: str, guidelines: str, timeout: float = 120, **kwargs):
        super().__init__(guidelines, **kwargs)
        # max_retries=0: one attempt per webhook, redelivery is the sender's job.
        self.client = Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.messages.create(
            model=self.MODEL,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks)
