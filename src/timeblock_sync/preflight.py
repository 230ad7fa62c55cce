"""
Preflight checks run before sync to catch common misconfigurations early.
"""

import logging
import shutil

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from timeblock_sync.models import SyncConfig

logger = logging.getLogger(__name__)

# Substrings of EDS connection errors that point at an offline online account.
_OFFLINE_HINTS = (
    "offline",
    "network",
    "transport",
    "unreachable",
    "not connected",
    "no route",
    "authentication failed",
    "connection refused",
    "temporary failure",
)

Issue = tuple[str, str, str]  # (label, detail, hint)


def check_source_command(cfg: SyncConfig) -> Issue | None:
    """Return an issue tuple if the task source executable cannot be found."""
    if not cfg.source_command:
        return ("Task source", "No command configured", "Set source_command in the config file")
    executable = cfg.source_command[0]
    if shutil.which(executable) is None:
        logger.error("Task source command not found: %s", executable)
        return (
            "Task source",
            f"Command not found: {executable}",
            "Install the Shortcuts bridge or set source_command in the config file",
        )
    return None


def _check_calendar(cfg: SyncConfig, registry) -> Issue | None:
    """Check that the target calendar exists, connects and accepts writes."""
    import gi

    gi.require_version("ECal", "2.0")
    from gi.repository import ECal
    from gi.repository import GLib

    source = registry.ref_source(cfg.calendar_id)
    if source is None:
        logger.error("Calendar UID not found in EDS: %s", cfg.calendar_id)
        return ("Calendar", f"UID not found: {cfg.calendar_id}", "Run: timeblock-sync calendars")

    try:
        client = ECal.Client.connect_sync(source, ECal.ClientSourceType.EVENTS, 5, None)
    except GLib.Error as e:
        msg = e.message or str(e)
        logger.error("Cannot connect to calendar (%s): %s", cfg.calendar_id, msg)
        return ("Calendar", f"Connection failed: {msg}", _connection_hint(msg, registry, source))

    if client.is_readonly():
        logger.error("Calendar is read-only: %s", cfg.calendar_id)
        return (
            "Calendar",
            f"Read-only: {cfg.calendar_id}",
            "Choose a writable calendar from: timeblock-sync calendars",
        )
    return None


def _connection_hint(msg: str, registry, source) -> str:
    """Turn a connection error into advice, naming the owning account if known."""
    lowered = msg.lower()
    if not any(hint in lowered for hint in _OFFLINE_HINTS):
        return msg

    account = ""
    parent_uid = source.get_parent()
    if parent_uid:
        parent = registry.ref_source(parent_uid)
        if parent is not None:
            account = parent.get_display_name() or ""

    where = f"Account '{account}'" if account else "Calendar"
    return f"{where} appears offline; check GNOME Online Accounts"


def run_preflight_checks(cfg: SyncConfig, console: Console) -> bool:
    """Return True if sync may proceed; print issues and return False otherwise."""
    import gi

    gi.require_version("EDataServer", "1.2")
    from gi.repository import EDataServer

    issues: list[Issue] = []

    source_issue = check_source_command(cfg)
    if source_issue:
        issues.append(source_issue)

    try:
        registry = EDataServer.SourceRegistry.new_sync(None)
    except Exception as e:
        logger.error("EDS registry unreachable: %s", e)
        issues.append(("EDS registry", str(e), "Is evolution-data-server running?"))
    else:
        calendar_issue = _check_calendar(cfg, registry)
        if calendar_issue:
            issues.append(calendar_issue)

    if issues:
        _print_issues(issues, console)
        return False
    return True


def _print_issues(issues: list[Issue], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))
