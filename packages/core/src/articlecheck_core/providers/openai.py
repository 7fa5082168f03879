from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from articlecheck_core.providers.base import BaseAnalyzer


class OpenAIAnalyzer(BaseAnalyzer):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.5

    def __init__(self, api_key: str, guidelines: str, timeout: float = 120, **kwargs):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. "
                "Install it with: pip install 'articlecheck[openai]'"
            )
        super().__init__(guidelines, **kwargs)
        self.client = _OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return response.choices[0].message.content
