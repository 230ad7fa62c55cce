"""
Shared pytest fixtures and record/event helpers.
"""

import logging
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from timeblock_sync.models import CalendarEvent
from timeblock_sync.models import SyncConfig
from timeblock_sync.models import SyncStats
from timeblock_sync.sync.utils import make_entry_link

CALENDAR_ID = "timeblocks-calendar-test"

# Fixed "now" for every test: 2025-06-01 08:00 in UTC+2.
NOW = datetime(2025, 6, 1, 6, 0, tzinfo=timezone.utc)
CEST = timezone(timedelta(hours=2))


def make_record(
    record_id: str,
    title: str = "Deep Work",
    reminder: str | None = "2025-06-01T09:00:00+02:00",
    tags: list[str] | None = None,
) -> dict:
    """Return a raw todo record as the Shortcuts bridge emits it."""
    record = {"id": record_id, "title": title, "tags": ["d-1h"] if tags is None else tags}
    if reminder is not None:
        record["reminderDate"] = reminder
    return record


def make_event(
    entry_id: str | None,
    start: datetime,
    minutes: int = 60,
    title: str = "Deep Work",
    uid: str | None = None,
    notes: str | None = None,
) -> CalendarEvent:
    """Return an event linked to ``entry_id`` (unlinked when entry_id is None)."""
    return CalendarEvent(
        title=title,
        start_date=start,
        end_date=start + timedelta(minutes=minutes),
        notes=notes,
        url=make_entry_link(entry_id) if entry_id is not None else None,
        uid=uid or f"uid-{entry_id or 'foreign'}-{start.isoformat()}",
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sync_config():
    return SyncConfig(calendar_id=CALENDAR_ID, dry_run=False, verbose=False)


@pytest.fixture
def dry_run_config():
    return SyncConfig(calendar_id=CALENDAR_ID, dry_run=True)


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")


@pytest.fixture
def sync_stats():
    return SyncStats()
