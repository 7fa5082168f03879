"""Base analyzer implementing the Template Method pattern.

All providers share the same analysis algorithm:
    analyze() → _build_system_prompt() + _build_user_prompt()
              → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

There is no retry loop: a failed call surfaces as UpstreamFailure and the
pipeline substitutes a placeholder in the report.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from articlecheck_core.errors import UpstreamFailure

logger = logging.getLogger(__name__)

_MAX_TOKENS = 1000
_MAX_CONTENT_CHARS = 100_000


class BaseAnalyzer(ABC):
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, guidelines: str, max_content_chars: int = _MAX_CONTENT_CHARS):
        self.guidelines = guidelines
        self.max_content_chars = max_content_chars

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def analyze(self, content: str) -> str:
        """Return the model's free-form review of ``content``.

        Returns an empty string when the model produced no text; raises
        UpstreamFailure when the API call fails.
        """
        system = self._build_system_prompt(self.guidelines)
        user = self._build_user_prompt(content)
        try:
            raw = self._call_api(system, user)
        except Exception as e:
            logger.error("%s API failed: %s", self.__class__.__name__, e)
            raise UpstreamFailure(f"{self.__class__.__name__} API error: {e}") from e
        return (raw or "").strip()

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                 #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response."""

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_system_prompt(self, guidelines: str) -> str:
        return f"""You review articles submitted to a wiki through pull requests.

{guidelines}

Rules:
- Base every remark on the article text provided.
- Be concise and actionable.
- Format the answer as GitHub-flavored markdown suitable for a PR comment."""

    def _build_user_prompt(self, content: str) -> str:
        if len(content) > self.max_content_chars:
            content = content[: self.max_content_chars] + "\n... [content truncated]"
        return f"""Please analyze the following article content.

## Article content
{content}

Provide your analysis in a clear, structured format."""
