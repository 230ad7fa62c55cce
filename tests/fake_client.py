"""
In-memory fakes for the calendar and the task source.

FakeCalendarClient is duck-type-compatible with EDSCalendarClient; no EDS
daemon is required.  Events are kept in a plain dict keyed by UID.
"""

import copy
from datetime import datetime

from timeblock_sync.models import CalendarEvent
from timeblock_sync.models import CalendarSyncError


class FakeCalendarClient:
    """In-memory stub that satisfies the EDSCalendarClient duck-type contract."""

    def __init__(self, initial_events: list[CalendarEvent] | None = None):
        # uid → CalendarEvent
        self._events: dict[str, CalendarEvent] = {}
        for event in initial_events or []:
            self._events[event.uid] = copy.copy(event)
        self._next_uid = 1
        self.fail_uids: set[str] = set()
        self.fail_titles: set[str] = set()
        self.creates: list[str] = []
        self.modifies: list[str] = []
        self.removes: list[str] = []

    # ------------------------------------------------------------------ #
    # EDSCalendarClient interface                                           #
    # ------------------------------------------------------------------ #

    def request_access(self) -> bool:
        return True

    def get_events_in_range(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        """Return copies of events overlapping [start, end), like the EDS query."""
        return [
            copy.copy(e)
            for e in self._events.values()
            if e.start_date < end and e.end_date > start
        ]

    def create_event(self, event: CalendarEvent) -> str:
        if event.title in self.fail_titles:
            raise CalendarSyncError(f"Failed to create event {event.title}")
        uid = f"fake-{self._next_uid}"
        self._next_uid += 1
        stored = copy.copy(event)
        stored.uid = uid
        self._events[uid] = stored
        self.creates.append(uid)
        return uid

    def modify_event(self, event: CalendarEvent):
        if event.uid in self.fail_uids or event.uid not in self._events:
            raise CalendarSyncError(f"Failed to modify event {event.uid}")
        self._events[event.uid] = copy.copy(event)
        self.modifies.append(event.uid)

    def remove_event(self, uid: str):
        if uid in self.fail_uids or uid not in self._events:
            raise CalendarSyncError(f"Failed to remove event {uid}")
        del self._events[uid]
        self.removes.append(uid)

    # ------------------------------------------------------------------ #
    # Test helpers                                                          #
    # ------------------------------------------------------------------ #

    @property
    def event_count(self) -> int:
        return len(self._events)

    def get(self, uid: str) -> CalendarEvent | None:
        return self._events.get(uid)

    def events(self) -> list[CalendarEvent]:
        return list(self._events.values())

    def reset_counters(self):
        """Clear the create/modify/remove lists between sync runs."""
        self.creates.clear()
        self.modifies.clear()
        self.removes.clear()


class FakeSource:
    """Task source stub returning a fixed list of records (or raising)."""

    def __init__(self, records: list[dict] | None = None, error: Exception | None = None):
        self.records = list(records or [])
        self.error = error
        self.calls = 0

    def fetch_records(self) -> list[dict]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)
