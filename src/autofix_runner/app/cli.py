from __future__ import annotations

import json

import typer
from pydantic import ValidationError

from .. import __version__
from .config import LOG_LEVELS, AppConfig
from .container import Container
from .cli_formatter import (
    format_cache_status,
    format_config,
    format_repository_list,
    format_summary_report,
    mask_secrets,
)
from ..core.domain.credentials import resolve_credentials
from ..core.domain.exceptions import SetupError
from ..shared.to_jsonable import to_jsonable

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _load_config() -> AppConfig:
    """Load config from environment variables, exiting with code 2 when invalid."""
    try:
        return AppConfig()
    except ValidationError as e:
        typer.echo(f"Configuration error:\n{e}", err=True)
        raise typer.Exit(code=2)


def _start(config: AppConfig) -> Container:
    container = Container()
    container.config.from_pydantic(config)
    container.init_resources()
    return container


def _dump(data: object) -> None:
    typer.echo(json.dumps(to_jsonable(data), ensure_ascii=False, indent=2))


@app.command()
def run(
    repos: list[str] | None = typer.Argument(None, help="Repository names to process (default: all discovered)"),
    threads: int | None = typer.Option(None, "--threads", "-t", min=1, help="Worker threads"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Lint and autocorrect locally without pushing or opening artifacts"),
    force: bool = typer.Option(False, "--force", help="Ignore cached results and reprocess every repository"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Neither read nor write the processing cache"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level", case_sensitive=False),
    json_output: bool = typer.Option(False, "--json", help="Output summary as JSON"),
):
    """Lint every selected repository and open pull requests and issues."""
    config = _load_config()

    processing = {}
    if threads is not None:
        processing["thread_count"] = threads
    if dry_run:
        processing["dry_run"] = True

    cache = {}
    if force:
        cache["force_refresh"] = True
    if no_cache:
        cache["enabled"] = False

    update = {}
    if processing:
        update["processing"] = config.processing.model_copy(update=processing)
    if cache:
        update["cache"] = config.cache.model_copy(update=cache)
    if log_level is not None:
        level = log_level.upper()
        if level not in LOG_LEVELS:
            typer.echo(f"Error: --log-level must be one of {', '.join(LOG_LEVELS)}", err=True)
            raise typer.Exit(code=2)
        update["logging"] = config.logging.model_copy(update={"level": level})
    if update:
        config = config.model_copy(update=update)

    container = _start(config)
    try:
        summary = container.run_uc().execute(repos or None)
    except SetupError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        # Always shutdown resources to close file handles
        container.shutdown_resources()

    if json_output:
        _dump(summary)
    else:
        typer.echo(format_summary_report(summary))

    raise typer.Exit(code=summary.exit_code)


@app.command(name="list")
def list_command(
    repos: list[str] | None = typer.Argument(None, help="Restrict to these repository names"),
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
):
    """List the repositories a run would process."""
    config = _load_config()
    container = _start(config)
    try:
        selected = container.list_uc().execute(repos or None)
    except SetupError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        container.shutdown_resources()

    if json_output:
        _dump({"count": len(selected), "repositories": selected})
    else:
        typer.echo(format_repository_list(selected))


@app.command()
def status(
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
):
    """Show cache entries and statistics."""
    config = _load_config()
    container = _start(config)
    try:
        cache_status = container.cache_status_uc().execute()
    finally:
        container.shutdown_resources()

    if json_output:
        _dump(cache_status)
    else:
        typer.echo(format_cache_status(cache_status))


@app.command(name="clear-cache")
def clear_cache_command(
    repo: str | None = typer.Argument(None, help="owner/name entry to drop (default: everything)"),
):
    """Clear the processing cache."""
    config = _load_config()
    container = _start(config)
    try:
        container.clear_cache_uc().execute(repo)
    finally:
        container.shutdown_resources()

    if repo:
        typer.echo(f"Cleared cache entry for {repo}.")
    else:
        typer.echo("Cleared cache.")


@app.command(name="config")
def config_command(
    validate: bool = typer.Option(False, "--validate", help="Also check credentials and the target organization"),
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
):
    """Show the effective configuration with secrets masked."""
    config = _load_config()

    if validate:
        github = config.github
        try:
            credentials = resolve_credentials(
                token=github.token,
                app_id=github.app_id,
                installation_id=github.installation_id,
                private_key=github.private_key,
            )
        except SetupError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=2)
        if not github.owner:
            typer.echo("Error: organization required via AUTOFIX_RUNNER_GITHUB__OWNER", err=True)
            raise typer.Exit(code=2)
        typer.echo(f"Configuration is valid (auth: {credentials.auth_type}).")
        return

    data = mask_secrets(to_jsonable(config))
    if json_output:
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
    else:
        typer.echo(format_config(data))


@app.command()
def version():
    """Print the installed version."""
    typer.echo(__version__)


if __name__ == "__main__":
    app()
