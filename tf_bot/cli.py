"""tf-bot CLI: run the terraform lifecycle from a GitHub Actions step."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from tf_bot.github.event_context import EventContext
from tf_bot.orchestration.apply_policy import should_apply
from tf_bot.orchestration.issue_resolver import resolve_issue_number
from tf_bot.orchestration.reporting import format_comment
from tf_bot.orchestration.runner import run_from_env
from tf_bot.shared.actions import error_annotation, is_debug
from tf_bot.shared.settings import RunConfiguration, TerraformNotFoundError

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = typer.Typer(add_completion=False, help="tf-bot: terraform plan/apply with PR comments")


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        force=True,
    )


@app.command()
def run(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    """Run init, validate, refresh, plan and (when allowed) apply."""
    configure_logging(debug or is_debug())
    try:
        result = run_from_env()
    except TerraformNotFoundError as exc:
        error_annotation(str(exc))
        raise typer.Exit(code=1) from exc

    for message in result.errors:
        error_annotation(message)
    if result.comment_failed:
        error_annotation("Failed to add terraform output as a comment")
    if result.failed:
        raise typer.Exit(code=1)


@app.command("resolve-issue")
def resolve_issue() -> None:
    """Print the pull request or issue number this run correlates with."""
    number = resolve_issue_number(EventContext.from_env())
    typer.echo("none" if number is None else str(number))


@app.command("should-apply")
def should_apply_command() -> None:
    """Print whether the apply stage is allowed for the current event."""
    config = RunConfiguration.from_env()
    verdict = should_apply(
        EventContext.from_env(),
        config.apply_on_default_branch_only,
        config.apply_on_pull_request,
    )
    typer.echo("true" if verdict else "false")


@app.command("format-comment")
def format_comment_command(
    file: Path = typer.Option(..., "--file", exists=True, dir_okay=False),
    prefix: str = typer.Option("", "--prefix"),
) -> None:
    """Format a captured log file as a comment body."""
    ctx = EventContext.from_env()
    body = file.read_text(encoding="utf-8")
    typer.echo(
        format_comment(
            prefix,
            body,
            ctx.repo_owner,
            ctx.repo_name,
            ctx.run_id,
            server_url=ctx.server_url,
        ),
        nl=False,
    )


if __name__ == "__main__":
    app()
