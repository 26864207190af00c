"""Main CLI entry point for Peqy Action.

This module provides the Typer application invoked by the action step.
Inputs come from the runner environment (``INPUT_*``); options given on
the command line override them.

Usage:
    peqy-action run
    peqy-action run --api-url http://localhost:3000 --max-retries 1
    peqy-action version
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from peqy_action import __version__
from peqy_action.action import run_action
from peqy_action.config import LoggingConfig
from peqy_action.logging import setup_logging
from peqy_action.workflow import WorkflowCommands

app = typer.Typer(
    name="peqy-action",
    help="Peqy Action: trigger Peqy code reviews for pull requests",
    no_args_is_help=True,
)

console = Console(stderr=True)


@app.command()
def run(
    api_url: Annotated[
        Optional[str],
        typer.Option("--api-url", help="Override the api-url input"),
    ] = None,
    timeout: Annotated[
        Optional[int],
        typer.Option("--timeout", help="Override the timeout input (milliseconds)"),
    ] = None,
    max_retries: Annotated[
        Optional[int],
        typer.Option("--max-retries", help="Override the max-retries input"),
    ] = None,
    fail_on_error: Annotated[
        Optional[bool],
        typer.Option("--fail-on-error/--no-fail-on-error", help="Override the fail-on-error input"),
    ] = None,
    event_path: Annotated[
        Optional[Path],
        typer.Option("--event-path", help="Event payload file (defaults to GITHUB_EVENT_PATH)"),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    ] = None,
    log_format: Annotated[
        Optional[str],
        typer.Option("--log-format", help="Log format (console or json)"),
    ] = None,
) -> None:
    """Trigger a Peqy review for the pull request in the current workflow run.

    Args:
        api_url: Review-trigger endpoint override
        timeout: Per-attempt timeout override in milliseconds
        max_retries: Total attempts override
        fail_on_error: Fail-policy override
        event_path: Event payload file override
        log_level: Log level override
        log_format: Log format override
    """
    logging_overrides = {"level": log_level, "format": log_format}
    try:
        logging_config = LoggingConfig(
            **{k: v for k, v in logging_overrides.items() if v is not None}
        )
    except ValidationError as e:
        console.print(f"[red]Invalid logging configuration:[/red] {e}")
        raise typer.Exit(code=2)
    setup_logging(logging_config)

    commands = WorkflowCommands.from_environ()
    overrides = {
        "api_url": api_url,
        "timeout": timeout,
        "max_retries": max_retries,
        "fail_on_error": fail_on_error,
    }

    exit_code = asyncio.run(
        run_action(commands, dict(os.environ), overrides=overrides, event_path=event_path)
    )
    raise typer.Exit(code=exit_code)


@app.command()
def version() -> None:
    """Print the Peqy Action version."""
    typer.echo(f"peqy-action {__version__}")


if __name__ == "__main__":
    app()
