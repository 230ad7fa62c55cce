"""
Event index: entry id → calendar event over the reconciliation window.
"""

from datetime import datetime
from datetime import timedelta
from typing import TYPE_CHECKING

from timeblock_sync.models import DEFAULT_WINDOW_DAYS
from timeblock_sync.models import CalendarEvent
from timeblock_sync.sync.utils import extract_entry_id

if TYPE_CHECKING:
    from timeblock_sync.eds_client import EDSCalendarClient


def build_event_index(
    client: "EDSCalendarClient",
    now: datetime,
    logger,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> dict[str, CalendarEvent]:
    """Map entry ids to the managed events occurring in ``[now, now + window_days)``.

    Events already in progress at ``now`` are included so a running time
    block still matches its todo; deleting them is left to the reconciler.

    Events without one of our deep links are left out and never touched.
    When two events carry the same id the later one wins; the collision is
    logged because it means an earlier run created a duplicate.
    """
    window_end = now + timedelta(days=window_days)
    index: dict[str, CalendarEvent] = {}

    for event in client.get_events_in_range(now, window_end):
        if event.start_date >= window_end:
            continue

        entry_id = extract_entry_id(event.url)
        if entry_id is None:
            continue

        previous = index.get(entry_id)
        if previous is not None:
            logger.warning(
                f"Duplicate calendar events for entry {entry_id}: "
                f"{previous.uid} and {event.uid}; keeping {event.uid}"
            )
        index[entry_id] = event

    logger.info(f"Found {len(index)} existing time block event(s) in calendar")
    return index
