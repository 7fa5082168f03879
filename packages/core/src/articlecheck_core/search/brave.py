"""Brave Search API client used to find references for claims."""

from __future__ import annotations

import logging

import requests

from articlecheck_core.errors import UpstreamFailure, UpstreamTimeoutError
from articlecheck_core.models import SearchHit

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"

# Brave returns up to `count` web results; the mixed ordering interleaves
# news and FAQ results among them.
_RESULT_COUNT = 20
MAX_HITS = 5
_MIN_NEWS_DESCRIPTION = 5


def clean_description(text: str) -> str:
    """Strip Brave's highlight markup and decode the one entity it emits."""
    return text.replace("<strong>", "").replace("</strong>", "").replace("&#x27;", "'")


def rank_results(payload: dict, limit: int = MAX_HITS) -> list[SearchHit]:
    """Merge web, news and FAQ results following Brave's mixed ordering.

    ``mixed.main`` lists result categories in relevance order; each entry
    consumes the next unused result of that category. Entries without a
    usable description are skipped but still consume their slot.
    """
    ordering = (payload.get("mixed") or {}).get("main") or []
    web = (payload.get("web") or {}).get("results") or []
    news = (payload.get("news") or {}).get("results") or []
    faq = (payload.get("faq") or {}).get("results") or []
    cursors = {"web": 0, "news": 0, "faq": 0}

    hits: list[SearchHit] = []
    seen_urls: set[str] = set()

    for item in ordering:
        if len(hits) >= limit:
            break
        kind = item.get("type")
        hit = None

        if kind == "web" and cursors["web"] < len(web):
            result = web[cursors["web"]]
            cursors["web"] += 1
            description = clean_description(result.get("description") or "").strip()
            if description:
                hit = SearchHit(result.get("title", ""), result.get("url", ""), description)

        elif kind == "news" and cursors["news"] < len(news):
            result = news[cursors["news"]]
            cursors["news"] += 1
            description = result.get("description") or ""
            if len(description) >= _MIN_NEWS_DESCRIPTION:
                hostname = (result.get("meta_url") or {}).get("hostname", "")
                title = f"{result.get('title', '')} ({result.get('age', '')} - {hostname})"
                hit = SearchHit(title, result.get("url", ""), clean_description(description))

        elif kind == "faq" and cursors["faq"] < len(faq):
            result = faq[cursors["faq"]]
            cursors["faq"] += 1
            question, answer = result.get("question"), result.get("answer")
            if question and answer:
                hit = SearchHit(result.get("title", ""), result.get("url", ""), f"Q: {question}\nA: {answer}")

        if hit is not None and hit.url and hit.url not in seen_urls:
            seen_urls.add(hit.url)
            hits.append(hit)

    return hits


class BraveSearchClient:
    def __init__(self, api_key: str, timeout: float = 15, session: requests.Session | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "X-Subscription-Token": self.api_key}

    def query(self, text: str) -> dict:
        """Run one search and return the raw JSON payload."""
        try:
            response = self.session.get(
                _SEARCH_URL,
                params={"q": text, "count": _RESULT_COUNT},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise UpstreamTimeoutError("Brave search timed out")
        except requests.RequestException as e:
            raise UpstreamFailure(f"Brave search failed: {e}")

        if not response.ok:
            logger.error("Brave search failed (%d): %s", response.status_code, response.text[:200])
            raise UpstreamFailure(f"Brave search failed: {response.reason}")
        return response.json()

    def search(self, text: str) -> list[SearchHit]:
        return rank_results(self.query(text))
