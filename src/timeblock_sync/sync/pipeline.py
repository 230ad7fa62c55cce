"""
Fetch → reconcile → apply pipeline for one sync run.
"""

from datetime import datetime
from datetime import timezone

from timeblock_sync.entries import build_entries
from timeblock_sync.models import CalendarSyncError
from timeblock_sync.models import SyncConfig
from timeblock_sync.models import SyncStats
from timeblock_sync.sync.apply import apply_actions
from timeblock_sync.sync.index import build_event_index
from timeblock_sync.sync.reconcile import reconcile


def run_sync(
    config: SyncConfig,
    stats: SyncStats,
    logger,
    source,
    calendar_client,
    now: datetime | None = None,
):
    """Execute one full sync of time blocks into the calendar.

    Both fetches complete before any decision is made.  Fatal errors
    (source unavailable, malformed payload or timestamp) propagate; per-item
    failures only show up in ``stats.errors``.
    """
    now = now or datetime.now(timezone.utc)

    try:
        logger.info("Fetching time block entries from the task source...")
        records = source.fetch_records()
        entries = build_entries(records)
        if entries:
            logger.info(f"Found {len(entries)} time block entries")
        else:
            logger.info("No time block entries found; checking for orphaned events to clean up")

        logger.info("Loading existing time block events from calendar...")
        index = build_event_index(calendar_client, now, logger, window_days=config.window_days)

        logger.info(f"Syncing {len(entries)} time block entries to calendar...")
        plan = reconcile(entries, index, now, logger)
        apply_actions(config, stats, logger, plan, calendar_client)

    except CalendarSyncError as e:
        logger.error(f"Sync failed: {e}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        raise

    logger.info("Sync completed!")
    return stats
