"""
Command-line interface for Time Block Calendar Sync.
"""

import logging
import shlex
from configparser import ConfigParser
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from timeblock_sync.models import DEFAULT_CONFIG
from timeblock_sync.models import DEFAULT_SOURCE_COMMAND
from timeblock_sync.models import DEFAULT_SOURCE_TIMEOUT
from timeblock_sync.models import DEFAULT_WINDOW_DAYS
from timeblock_sync.models import CalendarSyncError
from timeblock_sync.models import SyncConfig
from timeblock_sync.sync import CalendarSynchronizer

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Sync time blocks from your task manager into an EDS calendar.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser()
    parser.read(config_path)
    if "timeblock-sync" not in parser:
        return {}
    return dict(parser["timeblock-sync"])


def _int_setting(config_file: dict[str, str], key: str, default: int) -> int:
    raw = config_file.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        console.print(f"[bold red]Error:[/] Config value [cyan]{key}[/] must be an integer: {raw!r}")
        raise typer.Exit(1) from None


def _build_config(
    calendar: str | None,
    command: str | None,
    window_days: int | None,
    dry_run: bool,
) -> SyncConfig:
    config_file = _load_config_file(state.config_path)
    calendar_id = calendar or config_file.get("calendar_id")

    if not calendar_id:
        console.print(
            "[bold red]Error:[/] A calendar ID must be provided via "
            "[cyan]--calendar[/] or [cyan]calendar_id[/] in the config file. "
            "Run [cyan]timeblock-sync calendars[/] to list them."
        )
        raise typer.Exit(1)

    raw_command = command or config_file.get("source_command")
    source_command = shlex.split(raw_command) if raw_command else list(DEFAULT_SOURCE_COMMAND)

    if window_days is None:
        window_days = _int_setting(config_file, "window_days", DEFAULT_WINDOW_DAYS)

    return SyncConfig(
        calendar_id=calendar_id,
        source_command=source_command,
        source_timeout=_int_setting(config_file, "source_timeout", DEFAULT_SOURCE_TIMEOUT),
        window_days=window_days,
        dry_run=dry_run,
        verbose=state.verbose,
    )


def _run_sync(cfg: SyncConfig) -> None:
    """Core sync runner: display panel, run, show results."""
    from timeblock_sync.eds_client import get_calendar_display_info
    from timeblock_sync.eds_client import open_registry
    from timeblock_sync.preflight import run_preflight_checks

    if not run_preflight_checks(cfg, console):
        raise typer.Exit(1)

    try:
        name, account = get_calendar_display_info(open_registry(), cfg.calendar_id)
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None

    # -- Info panel ----------------------------------------------------------
    info = Text()
    info.append("  Calendar:  ", style="bold")
    info.append(name + (f" ({account})" if account else "") + "\n")
    info.append(f"             {cfg.calendar_id}\n", style="dim")
    info.append("  Source:    ", style="bold")
    info.append(f"{shlex.join(cfg.source_command)}\n")
    info.append("  Window:    ", style="bold")
    info.append(f"next {cfg.window_days} days")
    if cfg.dry_run:
        info.append("\n  Mode:      ")
        info.append("DRY RUN", style="bold magenta")

    console.print(Panel(info, title="[bold]Time Block Sync[/bold]"))

    # -- Run -----------------------------------------------------------------
    try:
        stats = CalendarSynchronizer(cfg).run()
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print_exception()
        console.print(f"[bold red]Unexpected error:[/] {e}")
        raise typer.Exit(1) from e

    # -- Results table -------------------------------------------------------
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    results.add_row("Added", str(stats.added))
    results.add_row("Modified", str(stats.modified))
    results.add_row("Deleted", str(stats.deleted))
    results.add_row("Skipped", str(stats.skipped))
    error_val = Text(str(stats.errors))
    if stats.errors == 0:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    results.add_row("Errors", error_val)

    console.print(Panel(results, title="[bold]Results[/bold]", expand=False))


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

_CALENDAR_OPT = Annotated[
    str | None,
    typer.Option("--calendar", "--calendar-identifier", "-k", help="Target calendar EDS UID (overrides config)"),
]
_COMMAND_OPT = Annotated[
    str | None,
    typer.Option("--command", help="Task source command line (overrides config)"),
]
_WINDOW_OPT = Annotated[
    int | None,
    typer.Option("--window-days", min=1, help="Days ahead to reconcile (default: 30)"),
]
_DRY_RUN = Annotated[bool, typer.Option("--dry-run", "-n", help="Preview changes without applying")]


@app.command()
def sync(
    calendar: _CALENDAR_OPT = None,
    command: _COMMAND_OPT = None,
    window_days: _WINDOW_OPT = None,
    dry_run: _DRY_RUN = False,
) -> None:
    """Sync time blocks to the target calendar.

    Creates events for new time blocks, updates moved or renamed ones, and
    removes [bold]future[/bold] events whose todo is gone.  Past events are
    never deleted.
    """
    _run_sync(_build_config(calendar, command, window_days, dry_run))


@app.command()
def calendars() -> None:
    """List all available EDS calendars."""
    from timeblock_sync.debug import list_calendars as _list_calendars
    from timeblock_sync.eds_client import list_calendar_sources
    from timeblock_sync.eds_client import open_registry

    try:
        registry = open_registry()
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None

    entries = list_calendar_sources(registry)
    if not entries:
        console.print("[yellow]No calendars found in Evolution Data Server.[/]")
        return
    _list_calendars(entries, console)


app.command("list-calendars", hidden=True)(calendars)


@app.command()
def inspect(
    calendar: _CALENDAR_OPT = None,
    window_days: _WINDOW_OPT = None,
) -> None:
    """Show the time block events currently in the calendar window."""
    from datetime import datetime
    from datetime import timezone

    from timeblock_sync.debug import render_index
    from timeblock_sync.eds_client import EDSCalendarClient
    from timeblock_sync.eds_client import open_registry
    from timeblock_sync.sync.index import build_event_index

    cfg = _build_config(calendar, None, window_days, dry_run=True)
    logger = logging.getLogger(__name__)

    try:
        client = EDSCalendarClient(open_registry(), cfg.calendar_id)
        client.connect()
        index = build_event_index(
            client, datetime.now(timezone.utc), logger, window_days=cfg.window_days
        )
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None

    render_index(index, console)
    console.print(f"\n[bold]Matched {len(index)} event(s)[/bold]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
