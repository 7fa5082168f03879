"""Article check orchestration for one webhook invocation.

Stage flow:
    RECEIVED → VALIDATED                (HTTP layer, validator)
    → ACKNOWLEDGED                      (detached "processing" comment)
    → CONTENT_FETCHED                   (bounded by content_fetch_timeout)
    → ANALYZED                          (analysis ∥ fact-check)
    → COMPOSED → PUBLISHED → DONE
Any failure after VALIDATED moves to FAILED: an error comment is posted on a
best-effort basis and the caller receives a 500 with ``{"error": reason}``.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Union

from articlecheck_core.config import load_guidelines
from articlecheck_core.errors import UpstreamTimeoutError
from articlecheck_core.events import PullRequestCommentEvent
from articlecheck_core.factcheck import FactChecker
from articlecheck_core.gh.pull_request import GitHubService, extract_pr_reference
from articlecheck_core.providers.anthropic import AnthropicAnalyzer
from articlecheck_core.providers.openai import OpenAIAnalyzer
from articlecheck_core.report import ACKNOWLEDGEMENT, compose_error, compose_report
from articlecheck_core.search.brave import BraveSearchClient
from articlecheck_core.utils.background import spawn_detached

if TYPE_CHECKING:
    from articlecheck_core.events import WebhookEvent
    from articlecheck_core.models import FactCheckResult, PullRequestRef
    from articlecheck_core.providers.base import BaseAnalyzer

logger = logging.getLogger(__name__)


class Stage(enum.Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    IGNORED = "ignored"
    ACKNOWLEDGED = "acknowledged"
    CONTENT_FETCHED = "content_fetched"
    ANALYZED = "analyzed"
    COMPOSED = "composed"
    PUBLISHED = "published"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineOutcome:
    """What the HTTP layer should answer. A dict body is sent as JSON."""

    status_code: int
    body: Union[str, dict]
    stage: Stage


@dataclass
class ArticleReport:
    analysis: str | None
    results: list[FactCheckResult] | None
    body: str


def _get_analyzer(config: dict) -> BaseAnalyzer:
    model = config["model"]
    guidelines = load_guidelines(config)
    kwargs = {
        "guidelines": guidelines,
        "timeout": config.get("analysis_timeout", 120),
        "max_content_chars": config.get("max_content_chars", 100_000),
    }
    if model == "anthropic":
        return AnthropicAnalyzer(api_key=config["anthropic_api_key"], **kwargs)
    if model == "openai":
        return OpenAIAnalyzer(api_key=config["openai_api_key"], **kwargs)
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def build_pipeline(config: dict) -> ArticleCheckPipeline:
    """Wire real collaborators from a loaded config."""
    return ArticleCheckPipeline(
        github=GitHubService(config["github_token"], extensions=config.get("document_extensions")),
        analyzer=_get_analyzer(config),
        fact_checker=FactChecker(
            BraveSearchClient(config["brave_search_api_key"], timeout=config.get("search_timeout", 15))
        ),
        trigger=config.get("trigger", "/articlecheck"),
        content_timeout=config.get("content_fetch_timeout", 30),
        analysis_timeout=config.get("analysis_timeout", 120),
    )


class ArticleCheckPipeline:
    def __init__(
        self,
        github: GitHubService,
        analyzer: BaseAnalyzer,
        fact_checker: FactChecker,
        trigger: str = "/articlecheck",
        content_timeout: float = 30,
        analysis_timeout: float = 120,
    ):
        self.github = github
        self.analyzer = analyzer
        self.fact_checker = fact_checker
        self.trigger = trigger
        self.content_timeout = content_timeout
        self.analysis_timeout = analysis_timeout
        self.stage = Stage.VALIDATED

    def _advance(self, stage: Stage) -> None:
        logger.debug("Pipeline stage %s → %s", self.stage.value, stage.value)
        self.stage = stage

    def is_triggered(self, event: WebhookEvent) -> bool:
        return isinstance(event, PullRequestCommentEvent) and self.trigger in event.comment_body

    # ------------------------------------------------------------------ #
    # Steps                                                                #
    # ------------------------------------------------------------------ #

    async def _post(self, ref: PullRequestRef, issue_number: int, body: str) -> None:
        await asyncio.to_thread(self.github.post_comment, ref, issue_number, body)

    async def fetch_content(self, ref: PullRequestRef) -> str:
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.github.fetch_content, ref), self.content_timeout)
        except asyncio.TimeoutError:
            logger.error("Content fetch for %s#%d exceeded %ss", ref.full_name, ref.number, self.content_timeout)
            raise UpstreamTimeoutError("Timeout")

    async def _analyze(self, content: str) -> str | None:
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.analyzer.analyze, content), self.analysis_timeout)
        except asyncio.TimeoutError:
            logger.error("Analysis exceeded %ss; using placeholder", self.analysis_timeout)
        except Exception as e:
            logger.error("Analysis failed; using placeholder: %s", e)
        return None

    async def _fact_check(self, content: str) -> list[FactCheckResult] | None:
        try:
            return await self.fact_checker.check(content)
        except Exception as e:
            logger.error("Fact check failed; using placeholder: %s", e)
            return None

    async def build_report(self, ref: PullRequestRef, started_at: datetime) -> ArticleReport:
        """Fetch the PR's documents and produce the report body.

        Analysis and fact-checking run concurrently and each degrades to a
        placeholder on failure. Only the content fetch can raise.
        """
        content = await self.fetch_content(ref)
        self._advance(Stage.CONTENT_FETCHED)

        analysis, results = await asyncio.gather(self._analyze(content), self._fact_check(content))
        self._advance(Stage.ANALYZED)

        body = compose_report(analysis, results, started_at)
        self._advance(Stage.COMPOSED)
        return ArticleReport(analysis=analysis, results=results, body=body)

    async def _acknowledge(self, ref: PullRequestRef, issue_number: int) -> None:
        await self._post(ref, issue_number, ACKNOWLEDGEMENT)

    async def _report_failure(self, ref: PullRequestRef, issue_number: int, reason: str) -> None:
        try:
            await self._post(ref, issue_number, compose_error(reason))
        except Exception as e:
            logger.warning("Could not post error comment on %s#%d: %s", ref.full_name, issue_number, e)

    # ------------------------------------------------------------------ #
    # Entry point                                                          #
    # ------------------------------------------------------------------ #

    async def handle(self, event: WebhookEvent) -> PipelineOutcome:
        """Run the article check for one validated webhook event.

        A triggered comment without a PR URL is answered with 400. Raises
        MalformedPayloadError when a present PR URL cannot be parsed; every
        later failure is turned into a FAILED outcome.
        """
        if not self.is_triggered(event):
            self._advance(Stage.IGNORED)
            return PipelineOutcome(200, "Event processed", self.stage)

        if not event.pull_request_url:
            logger.warning("Triggered comment on issue #%d carries no PR URL", event.issue_number)
            self._advance(Stage.FAILED)
            return PipelineOutcome(400, "Invalid PR URL", self.stage)

        ref = extract_pr_reference(event.pull_request_url)
        issue_number = event.issue_number
        started_at = event.comment_created_at or datetime.now(timezone.utc)
        logger.info("Article check requested on %s#%d", ref.full_name, issue_number)
        clock = time.monotonic()

        spawn_detached(self._acknowledge(ref, issue_number), name=f"ack-{ref.full_name}#{issue_number}")
        self._advance(Stage.ACKNOWLEDGED)

        try:
            report = await self.build_report(ref, started_at)
            await self._post(ref, issue_number, report.body)
            self._advance(Stage.PUBLISHED)
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.error(
                "Article check failed on %s#%d at stage %s: %s",
                ref.full_name,
                issue_number,
                self.stage.value,
                reason,
            )
            self._advance(Stage.FAILED)
            await self._report_failure(ref, issue_number, reason)
            return PipelineOutcome(500, {"error": reason}, self.stage)

        self._advance(Stage.DONE)
        logger.info(
            "Article check completed on %s#%d in %.1fs", ref.full_name, issue_number, time.monotonic() - clock
        )
        return PipelineOutcome(200, "Article check completed", self.stage)
