"""Markdown bodies for the comments posted back to the pull request."""

from __future__ import annotations

from datetime import datetime, timezone

from articlecheck_core.models import FactCheckResult

ACKNOWLEDGEMENT = "⏳ Processing article check request..."
ANALYSIS_PLACEHOLDER = "*Error: Could not generate analysis*"
FACT_CHECK_PLACEHOLDER = "*Error: Could not complete fact checking*"
NO_CLAIMS_PLACEHOLDER = "*No claims to fact check*"


def format_elapsed(elapsed_seconds: float) -> str:
    elapsed_seconds = max(elapsed_seconds, 0.0)
    if elapsed_seconds < 1:
        return f"{int(elapsed_seconds * 1000)}ms"
    if elapsed_seconds < 60:
        return f"{elapsed_seconds:.1f}s"
    return f"{elapsed_seconds / 60:.1f} min"


def _render_results(results: list[FactCheckResult] | None) -> str:
    if results is None:
        return FACT_CHECK_PLACEHOLDER
    if not results:
        return NO_CLAIMS_PLACEHOLDER
    blocks = []
    for result in results:
        links = "\n".join(f"- [{ref.title}]({ref.url})" for ref in result.references)
        blocks.append(f"**Claim:** {result.claim}\n**References:**\n{links}\n")
    return "\n".join(blocks)


def compose_report(
    analysis: str | None,
    results: list[FactCheckResult] | None,
    started_at: datetime,
    now: datetime | None = None,
) -> str:
    """Build the final report comment.

    ``analysis`` of None or "" and ``results`` of None mean the step failed
    and are rendered as placeholders. ``started_at`` is normally the trigger
    comment's creation time, so the duration includes webhook delivery.
    """
    now = now or datetime.now(timezone.utc)
    elapsed = format_elapsed((now - started_at).total_seconds())
    lines = [
        "## Article Check Results\n",
        "### AI Analysis",
        f"{analysis or ANALYSIS_PLACEHOLDER}\n",
        "### Fact Checking Results",
        f"{_render_results(results)}\n",
        "---",
        "*This check was performed automatically by the Article Checker bot.*",
        f"*Processing time: {elapsed}*",
    ]
    return "\n".join(lines)


def compose_error(reason: str) -> str:
    return (
        "❌ Error checking article:\n"
        f"```\n{reason}\n```\n"
        "Please try again later or contact support if the issue persists."
    )
