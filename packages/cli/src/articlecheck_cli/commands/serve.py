"""serve command: run the webhook receiver under uvicorn."""

from __future__ import annotations

import click
import uvicorn
from rich.console import Console

console = Console()


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to listen on.")
@click.pass_context
def serve_cmd(ctx, host: str, port: int):
    """Listen for GitHub issue_comment webhooks on POST /.

    \b
    Required environment variables:
      GITHUB_TOKEN           Token used to read PR files and post comments
      GITHUB_WEBHOOK_SECRET  Secret configured on the GitHub webhook
      BRAVE_SEARCH_API_KEY   Brave Search subscription token
      ANTHROPIC_API_KEY      Required when model is anthropic
      OPENAI_API_KEY         Required when model is openai
    """
    from articlecheck_core.config import missing_secrets
    from articlecheck_server.app import create_app

    config = ctx.obj["config"]
    missing = missing_secrets(config)
    if missing:
        # The server still starts and answers 500, which surfaces the problem
        # in GitHub's delivery log as well.
        console.print(f"[yellow]Missing environment variables: {', '.join(missing)}[/yellow]")

    app = create_app(config)
    console.print(f"[green]Listening for webhooks on http://{host}:{port}/ (trigger: {config['trigger']})[/green]")
    uvicorn.run(app, host=host, port=port, log_config=None)
