"""Main entry point for the lincli application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from lincli.core.command_handler import CommandHandler
from lincli.core.services.export_service import ExportService
from lincli.core.services.pagination_service import MAX_PAGE_SIZE, PaginationService
from lincli.core.services.resolver_service import ResolverService

# --- Domain Layer ---
from lincli.domain.models.cache import CacheOptions
from lincli.domain.models.errors import ApiError, ErrorKind
from lincli.domain.models.pagination import PaginationOptions

# --- Infrastructure Layer ---
from lincli.infrastructure.api.graphql_client import GraphQLClient
from lincli.infrastructure.cache.file_cache import FileCache
from lincli.infrastructure.cli.display import ConsoleDisplay
from lincli.infrastructure.config.settings import AppConfig, ConfigurationError, load_configuration
from lincli.infrastructure.monitoring.logger_setup import setup_logging
from lincli.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

AUTH_MARKERS = ("unauthorized", "api key", "authentication")


class OutputFormat(str, Enum):
    table = "table"
    json = "json"


# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    config: AppConfig,
    output_format: str = OutputFormat.table.value,
    cache_ttl: Optional[int] = None,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    logger.debug(f"Initializing application dependencies for profile '{config.profile}'")
    dependencies: Dict[str, Any] = {"config": config, "output": output_format}

    dependencies['ui'] = ConsoleDisplay()
    dependencies['cache'] = FileCache(config.cache_dir, config.cache_ttl_seconds)
    dependencies['api_retry_service'] = ApiRetryService(retry_config=config.retry)
    dependencies['transport'] = GraphQLClient(
        api_key=config.api_key,
        retry_service=dependencies['api_retry_service'],
        api_url=config.api_url,
        timeout_seconds=config.timeout_seconds,
    )

    dependencies['pagination_service'] = PaginationService(dependencies['transport'])
    dependencies['resolver_service'] = ResolverService(
        transport=dependencies['transport'],
        pagination=dependencies['pagination_service'],
        cache=dependencies['cache'],
    )
    dependencies['export_service'] = ExportService(dependencies['pagination_service'])

    dependencies['command_handler'] = CommandHandler(
        resolver=dependencies['resolver_service'],
        pagination=dependencies['pagination_service'],
        export_service=dependencies['export_service'],
        cache=dependencies['cache'],
        cache_dir=config.cache_dir,
        ui=dependencies['ui'],
        cache_options=CacheOptions(ttl_seconds=cache_ttl, no_cache=config.no_cache),
        output_format=output_format,
    )
    logger.debug("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="lincli",
    help="lincli: resilient command-line access to the Linear GraphQL API.",
    add_completion=False,
    no_args_is_help=True,
)
cache_app = typer.Typer(help="Inspect and clear the local cache.", no_args_is_help=True)
resolve_app = typer.Typer(help="Resolve names, keys and emails to IDs.", no_args_is_help=True)
list_app = typer.Typer(help="List workspace entities.", no_args_is_help=True)
export_app = typer.Typer(help="Export data as CSV.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")
app.add_typer(resolve_app, name="resolve")
app.add_typer(list_app, name="list")
app.add_typer(export_app, name="export")


# --- Error Reporting ---

def exit_code_for(error: BaseException) -> int:
    """Exit code for a terminal error; foreign errors are categorized by message."""
    if isinstance(error, ApiError):
        return error.exit_code
    msg = str(error).lower()
    if "not found" in msg:
        return ErrorKind.NOT_FOUND.value
    if any(marker in msg for marker in AUTH_MARKERS):
        return ErrorKind.AUTH.value
    return ErrorKind.GENERAL.value


def report_error(dependencies: Dict[str, Any], error: BaseException) -> int:
    """Prints a single terminal error on stderr and returns the exit code."""
    code = exit_code_for(error)
    message = error.message if isinstance(error, ApiError) else str(error)
    if dependencies.get('output') == OutputFormat.json.value:
        typer.echo(json.dumps({"error": True, "message": message, "code": code}), err=True)
    else:
        dependencies['ui'].display_error(message)
    return code


# --- Helper for Running Async Commands ---
def run_async(ctx: typer.Context, coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs a handler coroutine to completion, then closes the HTTP client.

    Errors become a message on stderr and the matching exit code.
    """
    dependencies: Dict[str, Any] = ctx.obj

    async def runner() -> Any:
        try:
            return await coro
        finally:
            await dependencies['transport'].aclose()

    try:
        return asyncio.run(runner())
    except Exception as e:
        logger.debug(f"Command failed: {e!r}", exc_info=True)
        raise typer.Exit(code=report_error(dependencies, e)) from e


def handler_of(ctx: typer.Context) -> CommandHandler:
    return ctx.obj['command_handler']


def pagination_options(
    limit: Optional[int],
    all_: bool,
    after: Optional[str] = None,
    before: Optional[str] = None,
    page_size: Optional[int] = None,
) -> PaginationOptions:
    if after is not None and before is not None:
        raise typer.BadParameter("--after and --before cannot be used together.")
    return PaginationOptions(limit=limit, after=after, before=before, page_size=page_size, all=all_)


# --- Shared Options ---

LimitOption = Annotated[Optional[int], typer.Option("--limit", "-n", min=1, help="Maximum number of items to return.")]
AllOption = Annotated[bool, typer.Option("--all", help="Fetch every page.")]
AfterOption = Annotated[Optional[str], typer.Option("--after", help="Start after this cursor.")]
BeforeOption = Annotated[Optional[str], typer.Option("--before", help="Page backwards from this cursor.")]
PageSizeOption = Annotated[
    Optional[int], typer.Option("--page-size", min=1, max=MAX_PAGE_SIZE, help="Items per request.")
]


# --- CLI Commands: cache ---

@cache_app.command("status")
def cache_status(ctx: typer.Context):
    """Show validity, age and size of each cache file."""
    run_async(ctx, handler_of(ctx).handle_cache_status())


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    cache_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Only clear one type (teams, users, statuses, labels, projects, views)."),
    ] = None,
):
    """Delete cached data."""
    run_async(ctx, handler_of(ctx).handle_cache_clear(cache_type))


@cache_app.command("path")
def cache_path(ctx: typer.Context):
    """Print the cache directory of the active profile."""
    run_async(ctx, handler_of(ctx).handle_cache_path())


# --- CLI Commands: resolve ---

def _resolve(ctx: typer.Context, entity: str, inputs: List[str]) -> None:
    handler = handler_of(ctx)
    if len(inputs) == 1:
        run_async(ctx, handler.handle_resolve(entity, inputs[0]))
    else:
        concurrency = ctx.obj['config'].concurrency
        run_async(ctx, handler.handle_resolve_many(entity, inputs, concurrency))


InputsArgument = Annotated[List[str], typer.Argument(help="One or more names, keys, emails or IDs.")]


@resolve_app.command("team")
def resolve_team(ctx: typer.Context, inputs: InputsArgument):
    """Resolve a team key or name to its ID."""
    _resolve(ctx, "team", inputs)


@resolve_app.command("user")
def resolve_user(ctx: typer.Context, inputs: InputsArgument):
    """Resolve a user name or email (or "me") to its ID."""
    _resolve(ctx, "user", inputs)


@resolve_app.command("label")
def resolve_label(ctx: typer.Context, inputs: InputsArgument):
    """Resolve a label name to its ID."""
    _resolve(ctx, "label", inputs)


@resolve_app.command("project")
def resolve_project(ctx: typer.Context, inputs: InputsArgument):
    """Resolve a project name or slug to its ID."""
    _resolve(ctx, "project", inputs)


@resolve_app.command("state")
def resolve_state(
    ctx: typer.Context,
    state: Annotated[str, typer.Argument(help="Workflow state name, e.g. 'In Progress'.")],
    team: Annotated[str, typer.Option("--team", help="Team key, name or ID owning the state.")],
):
    """Resolve a workflow state name within a team to its ID."""
    run_async(ctx, handler_of(ctx).handle_resolve_state(team, state))


# --- CLI Commands: list ---

def _list(ctx: typer.Context, entity: str, options: PaginationOptions) -> None:
    run_async(ctx, handler_of(ctx).handle_list(entity, options))


@list_app.command("teams")
def list_teams(
    ctx: typer.Context, limit: LimitOption = None, all_: AllOption = False,
    after: AfterOption = None, before: BeforeOption = None, page_size: PageSizeOption = None,
):
    """List teams. --all also refreshes the teams cache."""
    _list(ctx, "team", pagination_options(limit, all_, after, before, page_size))


@list_app.command("users")
def list_users(
    ctx: typer.Context, limit: LimitOption = None, all_: AllOption = False,
    after: AfterOption = None, before: BeforeOption = None, page_size: PageSizeOption = None,
):
    """List users. --all also refreshes the users cache."""
    _list(ctx, "user", pagination_options(limit, all_, after, before, page_size))


@list_app.command("labels")
def list_labels(
    ctx: typer.Context, limit: LimitOption = None, all_: AllOption = False,
    after: AfterOption = None, before: BeforeOption = None, page_size: PageSizeOption = None,
):
    """List issue labels. --all also refreshes the labels cache."""
    _list(ctx, "label", pagination_options(limit, all_, after, before, page_size))


@list_app.command("projects")
def list_projects(
    ctx: typer.Context, limit: LimitOption = None, all_: AllOption = False,
    after: AfterOption = None, before: BeforeOption = None, page_size: PageSizeOption = None,
):
    """List projects. --all also refreshes the projects cache."""
    _list(ctx, "project", pagination_options(limit, all_, after, before, page_size))


# --- CLI Commands: export ---

@export_app.command("issues")
def export_issues(
    ctx: typer.Context,
    team: Annotated[Optional[str], typer.Option("--team", help="Only export this team's issues.")] = None,
    file: Annotated[
        Optional[Path], typer.Option("--file", "-f", dir_okay=False, help="Write CSV here instead of stdout.")
    ] = None,
    limit: LimitOption = None,
    all_: AllOption = False,
    page_size: PageSizeOption = None,
):
    """Stream issues to CSV, one page at a time."""
    options = pagination_options(limit, all_, page_size=page_size)
    run_async(ctx, handler_of(ctx).handle_export_issues(options, team, file))


@app.callback()
def main_callback(
    ctx: typer.Context,
    profile: Annotated[Optional[str], typer.Option("--profile", help="Configuration profile to use.")] = None,
    retry: Annotated[
        Optional[int], typer.Option("--retry", min=0, help="Maximum retries for transient API failures.")
    ] = None,
    no_cache: Annotated[bool, typer.Option("--no-cache", help="Bypass the local cache.")] = False,
    cache_ttl: Annotated[
        Optional[int], typer.Option("--cache-ttl", min=0, help="Cache TTL in seconds for this run.")
    ] = None,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format.")] = OutputFormat.table,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR.")] = None,
):
    """Loads configuration, sets up logging and wires dependencies for the subcommand."""
    overrides = {
        "profile": profile,
        "max_retries": retry,
        "no_cache": True if no_cache else None,
        "cache_ttl": cache_ttl,
        "log_level": log_level,
    }
    try:
        config = load_configuration(overrides)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=ErrorKind.GENERAL.value) from e

    setup_logging(log_level=config.log_level_value, log_format=config.log_format, log_file=config.log_file)
    ctx.obj = create_dependencies(config, output.value, cache_ttl)
    if config.no_cache and cache_ttl is not None:
        ctx.obj['ui'].display_warning("--cache-ttl is ignored when the cache is disabled.")


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
