"""Claim extraction and concurrent reference lookup."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from articlecheck_core.models import FactCheckResult, Reference

if TYPE_CHECKING:
    from articlecheck_core.search.brave import BraveSearchClient

logger = logging.getLogger(__name__)

MAX_CLAIMS = 3
MAX_REFERENCES = 5
_MIN_CLAIM_CHARS = 20
_MIN_CLAIM_WORDS = 5


def extract_claims(text: str, limit: int = MAX_CLAIMS) -> list[str]:
    """Return the first ``limit`` substantial sentences of ``text``.

    Sentences are split on every period, so abbreviations and decimals
    produce fragments; short fragments are filtered out by the length and
    word-count thresholds. Order is positional, not ranked.
    """
    claims = []
    for sentence in text.split("."):
        sentence = sentence.strip()
        if len(sentence) >= _MIN_CLAIM_CHARS and len(sentence.split(" ")) >= _MIN_CLAIM_WORDS:
            claims.append(sentence)
            if len(claims) == limit:
                break
    return claims


class FactChecker:
    def __init__(self, search_client: BraveSearchClient):
        self.search_client = search_client

    async def _resolve(self, claim: str) -> FactCheckResult | None:
        try:
            hits = await asyncio.to_thread(self.search_client.search, claim)
        except Exception as e:
            logger.warning("Search failed for claim %r; dropping it: %s", claim[:60], e)
            return None
        return FactCheckResult(claim=claim, references=[Reference(h.title, h.url) for h in hits[:MAX_REFERENCES]])

    async def check(self, text: str) -> list[FactCheckResult]:
        """Look up references for each extracted claim concurrently.

        Results keep claim order. Claims whose query failed or returned no
        usable hits are dropped.
        """
        claims = extract_claims(text)
        if not claims:
            return []
        results = await asyncio.gather(*(self._resolve(claim) for claim in claims))
        return [r for r in results if r is not None and r.references]
