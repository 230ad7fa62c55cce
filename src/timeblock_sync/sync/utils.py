"""
Stateless helpers shared by the sync stages.
"""

from datetime import datetime
from urllib.parse import parse_qs
from urllib.parse import quote
from urllib.parse import urlsplit

from timeblock_sync.models import CalendarEvent
from timeblock_sync.models import TimeBlockEntry

# Deep link embedded in the URL property of every event we create:
#   things:///show?id=<entry id>
LINK_SCHEME = "things"
LINK_PATH = "/show"


def make_entry_link(entry_id: str) -> str:
    """Return the deep link that ties a calendar event to its entry."""
    return f"{LINK_SCHEME}://{LINK_PATH}?id={quote(entry_id, safe='')}"


def extract_entry_id(url: str | None) -> str | None:
    """Return the entry id embedded in ``url``, or None if the link is not ours.

    Only ``things:///show?id=...`` links qualify: other schemes, a non-empty
    host or a different path mean the event belongs to someone else.
    """
    if not url:
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.scheme != LINK_SCHEME or parts.netloc or parts.path != LINK_PATH:
        return None
    values = parse_qs(parts.query, keep_blank_values=True).get("id")
    if not values or not values[0]:
        return None
    return values[0]


def needs_update(event: CalendarEvent, entry: TimeBlockEntry) -> bool:
    """Return True if title, start or end differ.  Timestamps compare exactly."""
    return (
        event.title != entry.title
        or event.start_date != entry.start_date
        or event.end_date != entry.end_date
    )


def format_when(value: datetime) -> str:
    """Render a timestamp for log output."""
    return value.strftime("%Y-%m-%d %H:%M")
