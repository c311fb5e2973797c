"""CLI for comparing database schemas and generating sync DDL.

Usage:
    schema-sync compare staging production
    schema-sync compare staging production --ignore sessions,cache --output
    schema-sync compare snapshots/prod.json production --migration --summary
    schema-sync snapshot production snapshots/prod.json
    schema-sync profiles

Commands:
    compare   - Compare SOURCE against TARGET and print the SQL that syncs TARGET
    snapshot  - Save a profile's schema as a JSON snapshot
    profiles  - List available profiles

SOURCE and TARGET are profile names from schema-sync.toml or paths to JSON
snapshots.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from alembic.util import CommandError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from schema_sync.config.loader import load_config, resolve_ignore_tables
from schema_sync.config.models import SchemaSyncConfig
from schema_sync.errors import SchemaSyncError
from schema_sync.factory import load_schema, load_schemas
from schema_sync.output.writer import render_script, write_migration, write_sql_file
from schema_sync.schema.comparator import compare
from schema_sync.schema.models import SchemaDiff
from schema_sync.schema.snapshot import save_snapshot
from schema_sync.schema.synthesizer import synthesize

logger = logging.getLogger(__name__)

# SQL goes to stdout; status lines and logs go to stderr.
console = Console()
status_console = Console(stderr=True)

# Errors reported at the command boundary instead of a traceback
COMMAND_ERRORS = (SchemaSyncError, FileNotFoundError, ValueError, SQLAlchemyError, OSError)


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=status_console, show_path=False)],
    )


def _load_config(args: argparse.Namespace) -> SchemaSyncConfig:
    """Load the config file, falling back to defaults when none exists.

    An explicitly passed ``--config`` path must exist.
    """
    config_path = Path(args.config) if getattr(args, "config", None) else None
    try:
        return load_config(config_path)
    except FileNotFoundError:
        if config_path is not None:
            raise
        logger.debug("No config file found, using defaults")
        return SchemaSyncConfig()


def _diff_table(diff: SchemaDiff) -> Table:
    """Build a rich table summarizing a diff."""
    table = Table(title="Schema Differences", show_header=True, header_style="bold")
    table.add_column("Table", style="dim")
    table.add_column("Change")

    for name in sorted(diff.missing_tables):
        table.add_row(name, "[bold green]NEW TABLE[/bold green]")
    for name in diff.extra_tables:
        table.add_row(name, "[bold red]DROP TABLE[/bold red]")
    for name in sorted(diff.table_differences):
        table.add_row(name, f"[yellow]{diff.table_differences[name].summary()}[/yellow]")

    return table


def _display_url(url: str) -> str:
    """Connection URL with the password hidden."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_compare(args: argparse.Namespace) -> int:
    """Async implementation for compare command.

    Args:
        args: Parsed arguments with source, target, ignore, output,
            migration and summary.

    Returns:
        0 on success (including "already in sync"), 1 on failure.
    """
    try:
        config = _load_config(args)
        ignore_tables = resolve_ignore_tables(config.sync.ignore_tables, args.ignore)

        status_console.print(
            f"Comparing [bold]{args.source}[/bold] -> [bold cyan]{args.target}[/bold cyan]",
            style="dim",
        )
        source, target = await load_schemas(args.source, args.target, config, ignore_tables)

        diff = compare(source, target, ignore_tables=ignore_tables)
        statements = synthesize(diff, engine=config.sync.engine)
    except COMMAND_ERRORS as e:
        status_console.print(f"[bold red]x[/bold red] {escape(str(e))}")
        return 1

    if not statements:
        status_console.print("[bold green]v[/bold green] Schemas are already in sync.")
        return 0

    if args.summary:
        status_console.print(_diff_table(diff))

    console.print(render_script(statements), markup=False, highlight=False, soft_wrap=True)

    try:
        if args.output:
            path = write_sql_file(
                statements, args.source, args.target, config.sync.output_path
            )
            status_console.print(f"SQL written to [cyan]{path}[/cyan]")

        if args.migration:
            path = write_migration(
                statements, config.sync.migrations_path, down_revision=args.down_revision
            )
            status_console.print(f"Migration written to [cyan]{path}[/cyan]")
    except (OSError, CommandError) as e:
        status_console.print(f"[bold red]x[/bold red] Failed to write output: {escape(str(e))}")
        return 1

    return 0


async def _async_snapshot(args: argparse.Namespace) -> int:
    """Async implementation for snapshot command.

    Args:
        args: Parsed arguments with profile, path and ignore.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        ignore_tables = resolve_ignore_tables(config.sync.ignore_tables, args.ignore)
        schema = await load_schema(args.profile, config, ignore_tables)
        path = save_snapshot(schema, args.path)
    except COMMAND_ERRORS as e:
        status_console.print(f"[bold red]x[/bold red] {escape(str(e))}")
        return 1

    status_console.print(
        f"[bold green]v[/bold green] Saved {len(schema.tables)} tables to [cyan]{path}[/cyan]"
    )
    return 0


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_compare(args: argparse.Namespace) -> int:
    """Compare two schemas and print the sync script.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_compare(args))


def cmd_snapshot(args: argparse.Namespace) -> int:
    """Save a schema snapshot.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_snapshot(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from the config file.

    Reads only the local TOML config -- no database calls.

    Returns:
        0 on success, 1 if the config file is not found.
    """
    try:
        config = load_config(Path(args.config) if args.config else None)
    except FileNotFoundError as e:
        status_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    if not config.profiles:
        status_console.print("[yellow]No profiles configured.[/yellow]")
        return 0

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("Profile", style="bold cyan")
    table.add_column("URL")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(name, _display_url(profile.url), profile.description)

    console.print(table)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="schema-sync",
        description="Compare two database schemas and generate SQL to synchronise them",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to schema-sync.toml (default: $SCHEMA_SYNC_CONFIG or ./schema-sync.toml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # compare command
    p_compare = subparsers.add_parser(
        "compare",
        help="Generate SQL that makes TARGET match SOURCE",
    )
    p_compare.add_argument("source", help="Source profile name or snapshot path")
    p_compare.add_argument("target", help="Target profile name or snapshot path")
    p_compare.add_argument(
        "--ignore",
        default=None,
        help="Comma-separated list of tables to ignore (added to [sync] ignore_tables)",
    )
    p_compare.add_argument(
        "--output",
        action="store_true",
        help="Write the SQL to a timestamped file under [sync] output_path",
    )
    p_compare.add_argument(
        "--migration",
        action="store_true",
        help="Write an Alembic migration under [sync] migrations_path",
    )
    p_compare.add_argument(
        "--down-revision",
        default=None,
        help="Parent revision of the migration (default: current head of migrations_path)",
    )
    p_compare.add_argument(
        "--summary",
        action="store_true",
        help="Show a table of per-table changes",
    )
    p_compare.set_defaults(func=cmd_compare)

    # snapshot command
    p_snapshot = subparsers.add_parser(
        "snapshot",
        help="Save a profile's schema as a JSON snapshot",
    )
    p_snapshot.add_argument("profile", help="Profile name to introspect")
    p_snapshot.add_argument("path", help="Snapshot file to write")
    p_snapshot.add_argument(
        "--ignore",
        default=None,
        help="Comma-separated list of tables to leave out",
    )
    p_snapshot.set_defaults(func=cmd_snapshot)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
