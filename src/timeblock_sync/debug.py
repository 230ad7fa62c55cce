"""
Inspection tools for calendars and managed time block events.

Importable functions:
  list_calendars(entries, console): render a Rich table of all calendars
  render_index(index, console): render managed events keyed by entry id
"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from timeblock_sync.models import CalendarEvent
from timeblock_sync.sync.utils import format_when


def list_calendars(entries, console: Console) -> None:
    """Render (name, account, uid, writable) tuples as a Rich table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Display Name", style="bold")
    table.add_column("Account")
    table.add_column("Mode")
    table.add_column("UID", style="dim")

    for name, account, uid, writable in entries:
        if writable is None:
            mode = Text("Unknown", style="red")
        elif writable:
            mode = Text("Read-write", style="green")
        else:
            mode = Text("Read-only", style="yellow")
        table.add_row(name, account, mode, uid)

    console.print(table)


def render_index(index: dict[str, CalendarEvent], console: Console) -> None:
    """Render the entry id → event map, earliest first."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Title", style="bold")
    table.add_column("Entry ID")
    table.add_column("Event UID", style="dim", overflow="fold")

    for entry_id, event in sorted(index.items(), key=lambda item: item[1].start_date):
        table.add_row(
            format_when(event.start_date),
            format_when(event.end_date),
            event.title or "(untitled)",
            entry_id,
            event.uid or "",
        )

    console.print(table)
