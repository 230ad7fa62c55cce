"""
Conversion of raw task-source records into validated time block entries.
"""

import logging
import math
import re
from datetime import datetime
from datetime import timedelta
from typing import Any

from timeblock_sync.models import DURATION_TAG_PREFIX
from timeblock_sync.models import MalformedTimestampError
from timeblock_sync.models import TimeBlockEntry

_logger = logging.getLogger(__name__)

# Internet date-time: full date, seconds, and Z or a colon-separated offset.
_REMINDER_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:Z|[+-]\d{2}:\d{2})")


def parse_duration(duration_tag: str) -> timedelta | None:
    """Parse a duration tag such as ``d-1h``, ``d-30m`` or ``d-45``.

    A trailing ``h`` means hours; a trailing ``m`` or no suffix means minutes.
    Combined units (``d-1h30m``) and anything non-numeric return None, which
    callers treat as "no fixed duration" rather than an error.
    """
    value = duration_tag[len(DURATION_TAG_PREFIX) :]

    if value.endswith("h"):
        number, unit_seconds = value[:-1], 3600
    elif value.endswith("m"):
        number, unit_seconds = value[:-1], 60
    else:
        number, unit_seconds = value, 60

    try:
        amount = float(number)
    except ValueError:
        return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return timedelta(seconds=amount * unit_seconds)


def find_duration_tag(tags: list[str]) -> str | None:
    """Return the first tag carrying the duration prefix, if any."""
    return next((tag for tag in tags if tag.startswith(DURATION_TAG_PREFIX)), None)


def parse_reminder_date(value: str) -> datetime | None:
    """Parse an ISO 8601 timestamp with a UTC offset, e.g. ``2025-06-01T09:00:00+02:00``.

    Returns None for anything else, including basic-format, hour-only,
    fractional-second and offset-less values.
    """
    if not _REMINDER_DATE_RE.fullmatch(value):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def build_entry(record: dict[str, Any]) -> TimeBlockEntry | None:
    """Build a TimeBlockEntry from one raw record.

    Returns None for records that are plain todos (missing fields, no
    duration tag).  Raises MalformedTimestampError when reminderDate is
    present but unparseable.
    """
    entry_id = record.get("id", record.get("ID"))
    title = record.get("title")
    tags = record.get("tags")
    reminder = record.get("reminderDate")

    if not isinstance(entry_id, str) or not isinstance(title, str):
        return None
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        return None
    if not isinstance(reminder, str):
        return None

    start_date = parse_reminder_date(reminder)
    if start_date is None:
        raise MalformedTimestampError(reminder, entry_id)

    duration_tag = find_duration_tag(tags)
    if duration_tag is None:
        return None

    duration = parse_duration(duration_tag)
    if duration is None:
        _logger.debug(
            f"Unrecognised duration tag {duration_tag!r} on {entry_id}; using default length"
        )

    return TimeBlockEntry(
        id=entry_id,
        title=title,
        start_date=start_date,
        duration=duration,
        duration_tag=duration_tag,
        tags=tuple(tags),
        notes=None,
    )


def build_entries(records: list[dict[str, Any]]) -> list[TimeBlockEntry]:
    """Convert all records and return the time blocks sorted by start date.

    The sort is stable, so entries sharing a start keep their input order.
    """
    entries = []
    for record in records:
        entry = build_entry(record)
        if entry is not None:
            entries.append(entry)
    entries.sort(key=lambda e: e.start_date)
    _logger.debug(f"Built {len(entries)} time block(s) from {len(records)} record(s)")
    return entries
