"""check command: run an article check on one PR without a webhook."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.markdown import Markdown

from articlecheck_core.models import PullRequestRef

console = Console()


def _parse_repo(repo: str) -> tuple[str, str]:
    owner, sep, name = repo.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise click.BadParameter("Expected owner/name.", param_hint="--repo")
    return owner, name


@click.command("check")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the report instead of posting it to GitHub.",
)
@click.pass_context
def check_cmd(ctx, repo: str, pr_number: int, model: str | None, shadow: bool):
    """Analyze and fact-check the documents changed in a pull request.

    Uses the same analysis and fact-checking path as the webhook, without
    signature checks or rate limiting.
    """
    from articlecheck_core.config import missing_secrets
    from articlecheck_core.pipeline import build_pipeline

    config = dict(ctx.obj["config"])
    if model:
        config["model"] = model

    # The webhook secret is only needed by the server.
    missing = [name for name in missing_secrets(config) if name != "GITHUB_WEBHOOK_SECRET"]
    if missing:
        raise click.UsageError(f"Missing environment variables: {', '.join(missing)}")

    owner, name = _parse_repo(repo)
    ref = PullRequestRef(owner=owner, repo=name, number=pr_number)
    pipeline = build_pipeline(config)

    console.print(f"Checking [bold]{ref.full_name}#{ref.number}[/bold]...")
    try:
        report = asyncio.run(pipeline.build_report(ref, datetime.now(timezone.utc)))
    except Exception as e:
        raise click.ClickException(str(e))

    if shadow:
        console.print(Markdown(report.body))
        console.print("[bold]Shadow check complete. Report not posted.[/bold]")
        return

    try:
        pipeline.github.post_comment(ref, ref.number, report.body)
    except Exception as e:
        raise click.ClickException(f"Could not post report: {e}")
    claims = len(report.results or [])
    console.print(f"[green]Report posted to {ref.full_name}#{ref.number} ({claims} claim(s) with references).[/green]")
