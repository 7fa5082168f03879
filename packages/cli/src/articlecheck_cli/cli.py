"""CLI entry point for articlecheck.

Commands:
  serve  run the webhook receiver
  check  run an article check on one pull request from the terminal
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from articlecheck_cli.commands.check import check_cmd
from articlecheck_cli.commands.serve import serve_cmd

console = Console()


@click.group()
@click.version_option(
    version=importlib.metadata.version("articlecheck"),
    prog_name="articlecheck",
)
@click.option(
    "--config",
    "config_path",
    default=".articlecheck.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="ARTICLECHECK_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Fact-check articles in GitHub pull requests with AI and web search."""
    from articlecheck_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


main.add_command(serve_cmd)
main.add_command(check_cmd)
