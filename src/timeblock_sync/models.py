"""
Pure data models. No EDS or subprocess imports.
"""

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timedelta
from pathlib import Path

DEFAULT_CONFIG = Path.home() / ".config/timeblock-sync.conf"
DEFAULT_SOURCE_COMMAND = ["shortcuts", "run", "Get Things2Calendar Todos"]
DEFAULT_SOURCE_TIMEOUT = 120
DEFAULT_WINDOW_DAYS = 30

# Events without a parseable duration tag still block an hour.
DEFAULT_DURATION = timedelta(hours=1)
DURATION_TAG_PREFIX = "d-"


class CalendarSyncError(Exception):
    """Base exception for time block sync errors."""

    pass


class SourceUnavailableError(CalendarSyncError):
    """The task source command could not be run or exited abnormally."""

    pass


class MalformedPayloadError(CalendarSyncError):
    """The task source returned something other than a list of records."""

    pass


class MalformedTimestampError(CalendarSyncError):
    """A record carries a reminderDate that is present but not parseable."""

    def __init__(self, raw_value: str, record_id: str | None = None):
        self.raw_value = raw_value
        self.record_id = record_id
        where = f" (record {record_id})" if record_id else ""
        super().__init__(f"Invalid reminderDate {raw_value!r}{where}")


class PermissionDeniedError(CalendarSyncError):
    """Write access to the target calendar was refused."""

    pass


class CalendarNotFoundError(CalendarSyncError):
    """No calendar with the requested identifier exists."""

    pass


@dataclass(frozen=True)
class TimeBlockEntry:
    """A scheduled, duration-bounded todo taken from the task source."""

    id: str
    title: str
    start_date: datetime
    duration: timedelta | None
    duration_tag: str
    tags: tuple[str, ...] = ()
    notes: str | None = None

    @property
    def end_date(self) -> datetime:
        return self.start_date + (self.duration if self.duration is not None else DEFAULT_DURATION)


@dataclass
class CalendarEvent:
    """Snapshot of one calendar event, detached from the EDS component."""

    title: str
    start_date: datetime
    end_date: datetime
    notes: str | None = None
    url: str | None = None
    uid: str | None = None


@dataclass
class SyncConfig:
    """Configuration for a time block sync run."""

    calendar_id: str
    source_command: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_COMMAND))
    source_timeout: int = DEFAULT_SOURCE_TIMEOUT
    window_days: int = DEFAULT_WINDOW_DAYS
    dry_run: bool = False
    verbose: bool = False


@dataclass
class SyncStats:
    """Statistics for sync operation."""

    added: int = 0
    modified: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0
