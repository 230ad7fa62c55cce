"""
Evolution Data Server calendar connectivity wrapper.
"""

import logging
from datetime import datetime
from datetime import timezone
from typing import Optional, Tuple

import gi
gi.require_version('EDataServer', '1.2')
gi.require_version('ECal', '2.0')
gi.require_version('ICalGLib', '3.0')
from gi.repository import EDataServer, ECal, ICalGLib, GLib

from .ical import component_to_event, event_to_component, parse_component
from .models import CalendarEvent, CalendarNotFoundError, CalendarSyncError

_logger = logging.getLogger(__name__)


def open_registry() -> EDataServer.SourceRegistry:
    """Open the EDS source registry."""
    try:
        return EDataServer.SourceRegistry.new_sync(None)
    except GLib.Error as e:
        raise CalendarSyncError(f"Failed to connect to Evolution Data Server: {e.message}")


def list_calendar_sources(registry: EDataServer.SourceRegistry) -> list[Tuple[str, str, str, bool | None]]:
    """
    Describe every calendar source known to EDS.

    Returns:
        List of (display_name, account_name, uid, writable) tuples; writable is
        None when the calendar could not be opened.
    """
    entries = []
    for source in registry.list_sources(EDataServer.SOURCE_EXTENSION_CALENDAR):
        name = source.get_display_name() or "(unnamed)"
        uid = source.get_uid() or ""
        account = ""
        parent = source.get_parent()
        if parent:
            parent_source = registry.ref_source(parent)
            if parent_source:
                account = parent_source.get_display_name() or ""
        try:
            client = ECal.Client.connect_sync(source, ECal.ClientSourceType.EVENTS, 5, None)
            writable = not client.is_readonly()
        except GLib.Error:
            writable = None
        entries.append((name, account, uid, writable))
    return entries


def get_calendar_display_info(registry: EDataServer.SourceRegistry, calendar_uid: str) -> Tuple[str, str]:
    """
    Get human-readable information about a calendar.

    Returns:
        Tuple of (display_name, account_name)
    """
    source = registry.ref_source(calendar_uid)
    if not source:
        return ("Unknown Calendar", "")

    display_name = source.get_display_name() or "Unnamed Calendar"
    account_name = ""
    parent_uid = source.get_parent()
    if parent_uid:
        parent_source = registry.ref_source(parent_uid)
        if parent_source:
            account_name = parent_source.get_display_name() or ""
    return (display_name, account_name)


def _format_query_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


class EDSCalendarClient:
    """Wrapper for Evolution Data Server calendar operations."""

    def __init__(self, registry: EDataServer.SourceRegistry, calendar_uid: str):
        self.registry = registry
        self.calendar_uid = calendar_uid
        self.client: Optional[ECal.Client] = None

    def connect(self, timeout: int = 10):
        """Connect to the specified calendar in EDS."""
        source = self.registry.ref_source(self.calendar_uid)
        if not source:
            raise CalendarNotFoundError(
                f"Calendar with UID '{self.calendar_uid}' not found in EDS"
            )

        try:
            self.client = ECal.Client.connect_sync(
                source,
                ECal.ClientSourceType.EVENTS,
                timeout,
                None
            )
        except GLib.Error as e:
            raise CalendarSyncError(
                f"Failed to connect to calendar {self.calendar_uid}: {e.message}"
            )

    def request_access(self) -> bool:
        """Return True if the calendar accepts writes."""
        if not self.client:
            raise CalendarSyncError("Client not connected")
        return not self.client.is_readonly()

    def _resolve_tzid(self, tzid: str) -> Optional[ICalGLib.Timezone]:
        builtin = ICalGLib.Timezone.get_builtin_timezone(tzid)
        if builtin:
            return builtin
        try:
            result = self.client.get_timezone_sync(tzid, None)
        except GLib.Error:
            return None
        # Some gi versions return (success, zone), others just the zone.
        if isinstance(result, tuple):
            return result[-1]
        return result

    def get_events_in_range(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        """Retrieve events occurring between start and end."""
        if not self.client:
            raise CalendarSyncError("Client not connected")

        sexp = (
            f'(occur-in-time-range? (make-time "{_format_query_time(start)}") '
            f'(make-time "{_format_query_time(end)}"))'
        )
        try:
            _, objects = self.client.get_object_list_sync(sexp, None)
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to fetch events: {e.message}")

        events = []
        for obj in objects:
            event = component_to_event(obj, resolve_tzid=self._resolve_tzid)
            if event is None:
                _logger.debug("Skipping calendar object without DTSTART")
                continue
            events.append(event)
        return events

    def create_event(self, event: CalendarEvent) -> Optional[str]:
        """Create a new event in the calendar and return its UID."""
        if not self.client:
            raise CalendarSyncError("Client not connected")

        component = event_to_component(event)
        try:
            success, out_uid = self.client.create_object_sync(
                component,
                ECal.OperationFlags.NONE,
                None
            )
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to create event: {e.message}")
        if not success:
            raise CalendarSyncError("Failed to create event")

        event.uid = out_uid or component.get_uid()
        return event.uid

    def modify_event(self, event: CalendarEvent):
        """Write changed fields of an existing event back to the calendar."""
        if not self.client:
            raise CalendarSyncError("Client not connected")
        if not event.uid:
            raise CalendarSyncError("Cannot modify an event without a UID")

        component = event_to_component(event, base=self.get_component(event.uid))
        try:
            success = self.client.modify_object_sync(
                component,
                ECal.ObjModType.THIS,
                ECal.OperationFlags.NONE,
                None
            )
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to modify event {event.uid}: {e.message}")
        if not success:
            raise CalendarSyncError(f"Failed to modify event {event.uid}")

    def remove_event(self, uid: str):
        """Remove an event from the calendar."""
        if not self.client:
            raise CalendarSyncError("Client not connected")

        try:
            success = self.client.remove_object_sync(
                uid,
                None,  # rid (recurrence-id)
                ECal.ObjModType.THIS,
                ECal.OperationFlags.NONE,
                None  # cancellable
            )
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to remove event {uid}: {e.message}")
        if not success:
            raise CalendarSyncError(f"Failed to remove event {uid}")

    def get_component(self, uid: str) -> Optional[ICalGLib.Component]:
        """Retrieve a single event component by UID."""
        if not self.client:
            raise CalendarSyncError("Client not connected")

        try:
            success, icalcomp = self.client.get_object_sync(uid, None, None)
            if success and icalcomp:
                return parse_component(icalcomp)
        except GLib.Error as e:
            _logger.debug(f"Could not fetch event {uid}: {e.message}")
        return None
