"""
Change applier: execute a SyncPlan against the calendar client.
"""

from timeblock_sync.models import CalendarEvent
from timeblock_sync.models import CalendarSyncError
from timeblock_sync.models import SyncConfig
from timeblock_sync.models import SyncStats
from timeblock_sync.models import TimeBlockEntry
from timeblock_sync.sync.reconcile import Create
from timeblock_sync.sync.reconcile import DeleteFuture
from timeblock_sync.sync.reconcile import DeletePast
from timeblock_sync.sync.reconcile import SkipPastOrphan
from timeblock_sync.sync.reconcile import SkipUpToDate
from timeblock_sync.sync.reconcile import SyncPlan
from timeblock_sync.sync.reconcile import Update
from timeblock_sync.sync.utils import format_when
from timeblock_sync.sync.utils import make_entry_link


def _event_from_entry(entry: TimeBlockEntry) -> CalendarEvent:
    return CalendarEvent(
        title=entry.title,
        start_date=entry.start_date,
        end_date=entry.end_date,
        notes=entry.notes or None,
        url=make_entry_link(entry.id),
    )


def _apply_entry_to_event(event: CalendarEvent, entry: TimeBlockEntry):
    """Copy entry fields onto an existing event, clearing notes when the entry has none."""
    event.title = entry.title
    event.start_date = entry.start_date
    event.end_date = entry.end_date
    event.url = make_entry_link(entry.id)
    event.notes = entry.notes or None


def _process_create(config: SyncConfig, stats: SyncStats, logger, entry: TimeBlockEntry, client):
    span = f"{format_when(entry.start_date)} to {format_when(entry.end_date)}"
    if config.dry_run:
        logger.info(f"[DRY RUN] Would CREATE event: '{entry.title}' ({entry.id}) {span}")
        stats.added += 1
        return

    try:
        uid = client.create_event(_event_from_entry(entry))
        stats.added += 1
        logger.info(f"Created event: '{entry.title}' from {span}")
        logger.debug(f"Entry {entry.id} stored as calendar event {uid}")
    except CalendarSyncError as e:
        logger.error(f"Failed to create event for '{entry.title}' ({entry.id}): {e}")
        stats.errors += 1


def _process_update(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    event: CalendarEvent,
    entry: TimeBlockEntry,
    client,
):
    span = f"{format_when(entry.start_date)} to {format_when(entry.end_date)}"
    if config.dry_run:
        logger.info(
            f"[DRY RUN] Would UPDATE event: '{entry.title}' ({entry.id}, calendar: {event.uid})"
        )
        stats.modified += 1
        return

    try:
        _apply_entry_to_event(event, entry)
        client.modify_event(event)
        stats.modified += 1
        logger.info(f"Updated event: '{entry.title}' from {span}")
    except CalendarSyncError as e:
        logger.error(f"Failed to update event for '{entry.title}' ({entry.id}): {e}")
        stats.errors += 1


def _process_delete(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    event: CalendarEvent,
    entry_id: str,
    client,
):
    if config.dry_run:
        logger.info(
            f"[DRY RUN] Would DELETE orphaned event: '{event.title}' ({entry_id}) "
            f"scheduled for {format_when(event.start_date)}"
        )
        stats.deleted += 1
        return

    try:
        client.remove_event(event.uid)
        stats.deleted += 1
        logger.info(f"Removed orphaned event: '{event.title}' ({entry_id})")
    except CalendarSyncError as e:
        logger.error(f"Failed to remove orphaned event '{event.title}' ({entry_id}): {e}")
        stats.errors += 1


def apply_actions(config: SyncConfig, stats: SyncStats, logger, plan: SyncPlan, client):
    """Execute every action in order.  Per-item failures are counted, never raised."""
    stats.errors += len(plan.failures)

    for action in plan.actions:
        if isinstance(action, Create):
            _process_create(config, stats, logger, action.entry, client)
        elif isinstance(action, Update):
            _process_update(config, stats, logger, action.event, action.entry, client)
        elif isinstance(action, DeleteFuture):
            _process_delete(config, stats, logger, action.event, action.entry_id, client)
        elif isinstance(action, SkipUpToDate):
            logger.debug(f"Event '{action.entry.title}' is up to date, skipping")
            stats.skipped += 1
        elif isinstance(action, SkipPastOrphan):
            logger.info(
                f"Skipping past event: '{action.event.title}' ({action.entry_id}) "
                f"scheduled for {format_when(action.event.start_date)}"
            )
            stats.skipped += 1
        elif isinstance(action, DeletePast):
            logger.error(
                f"Refusing to delete past event '{action.event.title}' ({action.entry_id})"
            )
            stats.errors += 1
        else:
            logger.error(f"Unknown action {action!r}")
            stats.errors += 1
