"""Tests for claim extraction and the fact checker."""

import asyncio
import threading

from articlecheck_core.errors import UpstreamFailure
from articlecheck_core.factcheck import FactChecker, extract_claims
from articlecheck_core.models import FactCheckResult, Reference, SearchHit

LONG_1 = "The first block was mined on the third of January in 2009"
LONG_2 = "Reentrancy attacks drained millions from the contract in one afternoon"
LONG_3 = "Flash loans let an attacker borrow large sums without any collateral"
LONG_4 = "Oracle manipulation remains one of the most common causes of losses"


def _hit(n):
    return SearchHit(title=f"Title {n}", url=f"https://example.com/{n}", description="desc")


class FakeSearch:
    def __init__(self, hits_by_query=None, fail_on=()):
        self.hits_by_query = hits_by_query or {}
        self.fail_on = set(fail_on)
        self.queries = []
        self._lock = threading.Lock()

    def search(self, text):
        with self._lock:
            self.queries.append(text)
        if text in self.fail_on:
            raise UpstreamFailure("Brave search failed: Too Many Requests")
        return self.hits_by_query.get(text, [_hit(1)])


class TestExtractClaims:
    def test_short_sentence_dropped(self):
        text = "Short. This is a longer and more substantial claim that should be included."
        assert extract_claims(text) == ["This is a longer and more substantial claim that should be included"]

    def test_needs_five_words(self):
        assert extract_claims("Supercalifragilisticexpialidocious words here.") == []

    def test_needs_twenty_characters(self):
        assert extract_claims("a b c d e f g h.") == []

    def test_at_most_three_in_original_order(self):
        text = ". ".join([LONG_1, LONG_2, LONG_3, LONG_4]) + "."
        assert extract_claims(text) == [LONG_1, LONG_2, LONG_3]

    def test_decimals_split_sentences(self):
        # The heuristic splits on every period, so "3.5" breaks the sentence.
        text = "The protocol lost 3.5 million dollars worth of tokens in the exploit."
        assert extract_claims(text) == ["5 million dollars worth of tokens in the exploit"]

    def test_empty_text(self):
        assert extract_claims("") == []


class TestFactChecker:
    def test_results_follow_claim_order(self):
        text = ". ".join([LONG_1, LONG_2, LONG_3]) + "."
        search = FakeSearch({LONG_1: [_hit(1)], LONG_2: [_hit(2)], LONG_3: [_hit(3)]})
        results = asyncio.run(FactChecker(search).check(text))
        assert [r.claim for r in results] == [LONG_1, LONG_2, LONG_3]
        assert results[1].references == [Reference("Title 2", "https://example.com/2")]

    def test_one_query_per_claim(self):
        text = ". ".join([LONG_1, LONG_2, LONG_3, LONG_4]) + "."
        search = FakeSearch()
        asyncio.run(FactChecker(search).check(text))
        assert sorted(search.queries) == sorted([LONG_1, LONG_2, LONG_3])

    def test_claim_without_hits_dropped(self):
        text = f"{LONG_1}. {LONG_2}."
        search = FakeSearch({LONG_1: [], LONG_2: [_hit(2)]})
        results = asyncio.run(FactChecker(search).check(text))
        assert results == [FactCheckResult(LONG_2, [Reference("Title 2", "https://example.com/2")])]

    def test_failed_query_drops_only_that_claim(self):
        text = f"{LONG_1}. {LONG_2}."
        search = FakeSearch(fail_on=[LONG_1])
        results = asyncio.run(FactChecker(search).check(text))
        assert [r.claim for r in results] == [LONG_2]

    def test_references_capped_at_five(self):
        search = FakeSearch({LONG_1: [_hit(n) for n in range(8)]})
        results = asyncio.run(FactChecker(search).check(LONG_1))
        assert len(results[0].references) == 5

    def test_no_claims_no_queries(self):
        search = FakeSearch()
        assert asyncio.run(FactChecker(search).check("Too short. Also short.")) == []
        assert search.queries == []

    def test_never_returns_empty_reference_sets(self):
        text = ". ".join([LONG_1, LONG_2, LONG_3]) + "."
        search = FakeSearch({LONG_1: [], LONG_2: [], LONG_3: []})
        assert asyncio.run(FactChecker(search).check(text)) == []
