"""Value objects passed between the pipeline stages.

None of these outlive a single webhook invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PullRequestRef:
    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class SearchHit:
    """One ranked search result with a cleaned-up description."""

    title: str
    url: str
    description: str


@dataclass(frozen=True)
class Reference:
    title: str
    url: str


@dataclass
class FactCheckResult:
    """A claim and the references found for it.

    The fact checker never returns a result whose references list is empty.
    """

    claim: str
    references: list[Reference] = field(default_factory=list)
