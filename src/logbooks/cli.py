"""CLI interface for Logbooks"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import click

from logbooks.application.entry_service import add_entry, list_entries
from logbooks.application.store_initializer import StoreSession, locate_store
from logbooks.domain.config import LogbookConfig
from logbooks.domain.errors import LogbooksError
from logbooks.domain.models.entry import Entry, EntryType, validate_entry_input, validate_list_options
from logbooks.domain.models.paths import StoreOptions
from logbooks.infrastructure.config.config_manager import ConfigLoader, load_config, write_default_config
from logbooks.infrastructure.environment import AUTHOR_ENV, Environment
from logbooks.infrastructure.paths import PROJECT_DIR_NAME, init_store_dir

logger = logging.getLogger(__name__)

ENTRY_TYPES = [t.value for t in EntryType]


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _error_message(action: str, error: LogbooksError) -> str:
    message = f"Error {action}: {error.message}"
    if error.is_db:
        message += " (The operation was automatically retried but still failed)"
    return message


def _load_settings(env: Environment) -> LogbookConfig:
    """Loaded configuration, or schema defaults when no config file exists"""
    loaded = load_config(env.cwd, ConfigLoader.for_environment(env))
    return loaded.config if loaded else LogbookConfig()


def format_entry(entry: Entry) -> str:
    """Render an entry as ``[iso time] author [type]`` followed by its body"""
    date = datetime.fromtimestamp(entry.ts / 1000, tz=timezone.utc).isoformat()
    return f"[{date}] {entry.author_id} [{entry.type.value}]\n{entry.md}"


def format_entries(entries: List[Entry]) -> str:
    if not entries:
        return "No entries found."
    return "\n\n---\n\n".join(format_entry(e) for e in entries)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--global", "use_global", is_flag=True, help="Use the per-user logbook")
@click.option(
    "--path",
    "store_path",
    type=click.Path(file_okay=False, path_type=Path),
    help="Logbook directory to use",
)
@click.pass_context
def cli(ctx, verbose: bool, use_global: bool, store_path: Optional[Path]):
    """Logbooks - timestamped markdown records"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    env = ctx.obj.get("env") or Environment.from_process()
    options = StoreOptions(global_=use_global, path=store_path)
    session = StoreSession(options, env)
    ctx.call_on_close(session.close)
    ctx.obj.update(env=env, options=options, session=session, verbose=verbose)


@cli.command()
@click.pass_context
def init(ctx):
    """Initialize a logbook in the current directory"""
    env: Environment = ctx.obj["env"]
    options: StoreOptions = ctx.obj["options"]
    verbose = ctx.obj["verbose"]

    if options.path or options.global_:
        root = locate_store(options, env).paths.root
    else:
        root = env.cwd / PROJECT_DIR_NAME

    click.echo(f"Initializing Logbook in {root}...")
    try:
        config_path = write_default_config(root)
    except FileExistsError as e:
        click.echo(f"! {e}. Aborting.", err=True)
        return
    except OSError as e:
        _die(f"Failed to initialize Logbook: {e}", verbose=verbose, exc=e)

    init_store_dir(root)
    click.echo("Logbook initialized successfully.")
    click.echo(f"- Created config file: {config_path}")
    click.echo(f"- Created .gitignore: {root / '.gitignore'}")


@cli.command()
@click.pass_context
def where(ctx):
    """Show where the logbook lives"""
    try:
        paths = locate_store(ctx.obj["options"], ctx.obj["env"]).paths
    except LogbooksError as e:
        _die(_error_message("resolving paths", e), verbose=ctx.obj["verbose"], exc=e)

    click.echo(f"Root:           {paths.root}")
    click.echo(f"Database:       {paths.database}")
    click.echo(f"Project config: {paths.project_config_path}")
    click.echo(f"Global config:  {paths.global_config_path}")


@cli.command()
@click.argument("markdown")
@click.option("--author", "-a", envvar=AUTHOR_ENV, help="Author ID")
@click.option("--timestamp", "-t", type=int, help="Timestamp (unix millis)")
@click.option("--type", "entry_type", type=click.Choice(ENTRY_TYPES), help="Entry type")
@click.pass_context
def add(ctx, markdown: str, author: Optional[str], timestamp: Optional[int], entry_type: Optional[str]):
    """Add an entry

    MARKDOWN: Entry content in Markdown
    """
    verbose = ctx.obj["verbose"]
    session: StoreSession = ctx.obj["session"]

    try:
        settings = _load_settings(ctx.obj["env"])
        author_id = author or settings.author.default_id
        if not author_id:
            raise click.UsageError(
                f"Author ID is required. Set --author or {AUTHOR_ENV} environment variable."
            )
        entry = validate_entry_input(
            {
                "author_id": author_id,
                "md": markdown,
                "ts": timestamp,
                "type": entry_type or settings.entries.default_type,
            }
        )
        entry_id = add_entry(
            session.get(),
            entry,
            author_type=settings.author.default_type or "user",
        )
    except LogbooksError as e:
        _die(_error_message("adding entry", e), verbose=verbose, exc=e)

    click.echo(f"Entry added successfully with ID: {entry_id}")


@cli.command(name="list")
@click.option("--limit", "-n", type=int, help="Number of entries to show")
@click.option("--author", "-a", help="Filter by author ID")
@click.option("--after", type=int, help="Show entries after timestamp (unix millis)")
@click.option("--before", type=int, help="Show entries before timestamp (unix millis)")
@click.option("--type", "entry_type", type=click.Choice(ENTRY_TYPES), help="Filter by entry type")
@click.pass_context
def list_command(
    ctx,
    limit: Optional[int],
    author: Optional[str],
    after: Optional[int],
    before: Optional[int],
    entry_type: Optional[str],
):
    """List recent entries"""
    verbose = ctx.obj["verbose"]
    session: StoreSession = ctx.obj["session"]

    try:
        settings = _load_settings(ctx.obj["env"])
        options = validate_list_options(
            {
                "author_id": author,
                "after": after,
                "before": before,
                "limit": limit if limit is not None else settings.cli.list_limit,
                "type": entry_type,
            }
        )
        entries = list_entries(session.get(), options)
    except LogbooksError as e:
        _die(_error_message("listing entries", e), verbose=verbose, exc=e)

    click.echo(format_entries(entries))


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
