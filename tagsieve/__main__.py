"""Entry point for tagsieve CLI."""

import logging
from pathlib import Path
from typing import Optional

import rich_click as click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tagsieve.core.config import (
    Config,
    ConfigError,
    ConfigLoader,
    resolve_database_path,
    resolve_filters_path,
)
from tagsieve.core.filter import Filter
from tagsieve.core.loader import FilterLoader, RuleFileError
from tagsieve.core.plugin import PluginManager
from tagsieve.core.runner import DryRunMatch, FilterRunner, FilterRunStats
from tagsieve.errors import TagsieveError

click.rich_click.TEXT_MARKUP = "rich"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _get_plugin_manager() -> PluginManager:
    """Create and configure the plugin manager.

    Discovers plugins via entry points (including the built-in notmuch
    backend registered in pyproject.toml).
    """
    manager = PluginManager()
    manager.discover()
    return manager


def _configure_logging(config: Config, verbose: int) -> None:
    """Set up logging from the config, raised by each -v flag."""
    level = config.logging.numeric_level
    if verbose == 1:
        level = min(level, logging.INFO)
    elif verbose >= 2:
        level = logging.DEBUG

    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("tagsieve").setLevel(level)


def _print_error(console: Console, error: Exception) -> None:
    # Paths in messages must stay on one line.
    console.print(f"[red]Error:[/red] {escape(str(error))}", highlight=False, soft_wrap=True)


def _print_plugins(console: Console, manager: PluginManager) -> None:
    plugins = manager.list_plugins()
    if not plugins:
        console.print("[yellow]No plugins found.[/yellow]")
        return

    table = Table(title="Available Plugins")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Version", style="green")
    table.add_column("Description")

    for name in sorted(plugins):
        info = manager.get_plugin_info(name)
        if info:
            table.add_row(escape(info["name"]), escape(info["version"]), escape(info["description"]))

    console.print(table)


def _print_filters(console: Console, filters: list[Filter]) -> None:
    table = Table(title=f"{len(filters)} filter(s) compiled")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Rules", justify="right")
    table.add_column("Description")

    for filt in filters:
        table.add_row(escape(filt.name()), str(len(filt.rules)), escape(filt.desc or ""))

    console.print(table)


def _print_dry_run(console: Console, matches: list[DryRunMatch]) -> None:
    if not matches:
        console.print("No messages matched.")
        return

    table = Table(title="Dry run")
    table.add_column("Message", style="cyan")
    table.add_column("Filters")

    for match in matches:
        table.add_row(escape(match.message_id), escape(", ".join(match.filters)))

    console.print(table)


def _print_stats(console: Console, stats: FilterRunStats) -> None:
    console.print(
        f"Filtered {stats.messages} message(s): "
        f"{stats.matched} matched, {stats.failed} failed"
    )
    for name, count in sorted(stats.per_filter.items()):
        console.print(f"  {name}: {count}", markup=False)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-c",
    "--config",
    "notmuch_config",
    type=click.Path(path_type=Path),
    help="notmuch config file. (default: $NOTMUCH_CONFIG or ~/.notmuch-config)"
)
@click.option(
    "-f",
    "--filters",
    type=click.Path(path_type=Path),
    help="Rule file. (default: <database>/.notmuch/hooks/tagsieve-rules.json)"
)
@click.option(
    "-t",
    "--tag",
    type=str,
    help="Tag selecting the messages to filter. (default: new)"
)
@click.option(
    "--settings",
    type=click.Path(path_type=Path),
    help="Additional tagsieve TOML config, merged over discovered ones."
)
@click.option(
    "--backend",
    type=str,
    help="Store backend plugin. (default: notmuch)"
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show which filters match without changing anything."
)
@click.option(
    "--check",
    is_flag=True,
    help="Load and compile the rule file, list the filters and exit."
)
@click.option(
    "--keep-going",
    is_flag=True,
    help="Log failing messages and continue instead of aborting."
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase log verbosity (-v info, -vv debug)."
)
@click.option(
    "--list-plugins",
    is_flag=True,
    help="List all available plugins and exit."
)
@click.option("--version", is_flag=True, help="Show version and exit.")
@click.pass_context
def cli(
    ctx: click.Context,
    notmuch_config: Optional[Path],
    filters: Optional[Path],
    tag: Optional[str],
    settings: Optional[Path],
    backend: Optional[str],
    dry_run: bool,
    check: bool,
    keep_going: bool,
    verbose: int,
    list_plugins: bool,
    version: bool,
) -> None:
    """tagsieve - notmuch mail filtering by regex rules.

    Runs every filter of the rule file against the messages carrying the
    query tag and applies the operations of the filters that match.
    """
    console = Console()
    err_console = Console(stderr=True)

    if version:
        from tagsieve import __version__
        click.echo(f"tagsieve {__version__}")
        return

    manager = _get_plugin_manager()

    if list_plugins:
        _print_plugins(console, manager)
        return

    try:
        config = ConfigLoader().load_merged(extra=settings)
    except (ConfigError, FileNotFoundError) as e:
        _print_error(err_console, e)
        ctx.exit(1)

    _configure_logging(config, verbose)

    if tag:
        config.filtering.query_tag = tag
    if keep_going:
        config.filtering.isolate_errors = True
    if backend:
        config.store.backend = backend

    database: Optional[Path] = None
    try:
        # A rule check needs no database once the rule file is known.
        if not check or (filters is None and not config.general.filters):
            database = resolve_database_path(config, notmuch_config)
        filters_path = filters or resolve_filters_path(config, database)
        loaded = FilterLoader().load(filters_path)
    except (ConfigError, RuleFileError, FileNotFoundError) as e:
        _print_error(err_console, e)
        ctx.exit(1)

    if check:
        _print_filters(console, loaded)
        return

    try:
        store = manager.open_store(config.store.backend, database, writable=not dry_run)
    except TagsieveError as e:
        _print_error(err_console, e)
        ctx.exit(1)

    try:
        runner = FilterRunner.from_config(loaded, store, config.filtering, plugin_manager=manager)
        if dry_run:
            _print_dry_run(console, runner.dry_run())
        else:
            _print_stats(console, runner.run())
    except TagsieveError as e:
        _print_error(err_console, e)
        ctx.exit(1)
    finally:
        store.close()


if __name__ == "__main__":
    cli()
