"""
Conversion between ICalGLib VEVENT components and CalendarEvent snapshots.
"""

import uuid
from datetime import datetime
from datetime import timezone
from typing import Callable

import gi

gi.require_version("ICalGLib", "3.0")
from gi.repository import ICalGLib

from timeblock_sync.models import CalendarEvent

TzResolver = Callable[[str], "ICalGLib.Timezone | None"]


def parse_component(obj) -> ICalGLib.Component:
    """Handle both string and native Component objects from EDS API."""
    if isinstance(obj, str):
        return ICalGLib.Component.new_from_string(obj)
    return obj


def _vevent(comp: ICalGLib.Component) -> ICalGLib.Component | None:
    if comp.isa() == ICalGLib.ComponentKind.VCALENDAR_COMPONENT:
        return comp.get_first_component(ICalGLib.ComponentKind.VEVENT_COMPONENT)
    return comp


def _remove_all_properties(component: ICalGLib.Component, prop_kind: ICalGLib.PropertyKind):
    """Remove all instances of a specific property from a component."""
    prop = component.get_first_property(prop_kind)
    while prop:
        component.remove_property(prop)
        prop = component.get_first_property(prop_kind)


def _tzid_of(comp: ICalGLib.Component, prop_kind: ICalGLib.PropertyKind) -> str | None:
    prop = comp.get_first_property(prop_kind)
    if not prop:
        return None
    param = prop.get_first_parameter(ICalGLib.ParameterKind.TZID_PARAMETER)
    return param.get_tzid() if param else None


def ical_time_to_datetime(
    t: ICalGLib.Time, tzid: str | None = None, resolve_tzid: TzResolver | None = None
) -> datetime:
    """Convert an ICalGLib.Time into a timezone-aware datetime.

    UTC values map directly.  TZID values are resolved through the calendar
    when possible; floating values and unresolved zones use local time.
    """
    fields = (
        t.get_year(),
        t.get_month(),
        t.get_day(),
        0 if t.is_date() else t.get_hour(),
        0 if t.is_date() else t.get_minute(),
        0 if t.is_date() else t.get_second(),
    )
    if t.is_utc():
        return datetime(*fields, tzinfo=timezone.utc)

    zone = t.get_timezone()
    if zone is None and tzid and resolve_tzid is not None:
        zone = resolve_tzid(tzid)
    if zone is not None:
        timestamp = t.as_timet_with_zone(zone)
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    return datetime(*fields).astimezone()


def datetime_to_ical_time(value: datetime) -> ICalGLib.Time:
    """Convert an aware datetime into a UTC ICalGLib.Time (whole seconds)."""
    return ICalGLib.Time.new_from_timet_with_zone(
        int(value.timestamp()), False, ICalGLib.Timezone.get_utc_timezone()
    )


def component_to_event(
    obj, resolve_tzid: TzResolver | None = None
) -> CalendarEvent | None:
    """Build a CalendarEvent from an EDS object; None if it has no VEVENT/DTSTART."""
    comp = _vevent(parse_component(obj))
    if comp is None or comp.get_first_property(ICalGLib.PropertyKind.DTSTART_PROPERTY) is None:
        return None

    start = ical_time_to_datetime(
        comp.get_dtstart(),
        _tzid_of(comp, ICalGLib.PropertyKind.DTSTART_PROPERTY),
        resolve_tzid,
    )
    if comp.get_first_property(ICalGLib.PropertyKind.DTEND_PROPERTY) is not None:
        end = ical_time_to_datetime(
            comp.get_dtend(),
            _tzid_of(comp, ICalGLib.PropertyKind.DTEND_PROPERTY),
            resolve_tzid,
        )
    else:
        end = start

    url_prop = comp.get_first_property(ICalGLib.PropertyKind.URL_PROPERTY)

    return CalendarEvent(
        title=comp.get_summary() or "",
        start_date=start,
        end_date=end,
        notes=comp.get_description() or None,
        url=url_prop.get_url() if url_prop else None,
        uid=comp.get_uid(),
    )


def event_to_component(
    event: CalendarEvent, base: ICalGLib.Component | None = None
) -> ICalGLib.Component:
    """Write ``event`` into ``base`` (or a fresh VEVENT) and return the component.

    Properties we do not manage (alarms, categories, ...) survive on ``base``.
    """
    comp = _vevent(base) if base is not None else None
    if comp is None:
        comp = ICalGLib.Component.new_vevent()
        comp.set_uid(event.uid or str(uuid.uuid4()))

    _remove_all_properties(comp, ICalGLib.PropertyKind.SUMMARY_PROPERTY)
    comp.add_property(ICalGLib.Property.new_summary(event.title))

    _remove_all_properties(comp, ICalGLib.PropertyKind.DTSTART_PROPERTY)
    comp.add_property(ICalGLib.Property.new_dtstart(datetime_to_ical_time(event.start_date)))
    _remove_all_properties(comp, ICalGLib.PropertyKind.DTEND_PROPERTY)
    _remove_all_properties(comp, ICalGLib.PropertyKind.DURATION_PROPERTY)
    comp.add_property(ICalGLib.Property.new_dtend(datetime_to_ical_time(event.end_date)))

    _remove_all_properties(comp, ICalGLib.PropertyKind.URL_PROPERTY)
    if event.url:
        comp.add_property(ICalGLib.Property.new_url(event.url))

    _remove_all_properties(comp, ICalGLib.PropertyKind.DESCRIPTION_PROPERTY)
    if event.notes:
        comp.add_property(ICalGLib.Property.new_description(event.notes))

    return comp
