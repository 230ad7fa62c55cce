"""
Reconciler: decide what to do with every entry and every indexed event.

Pure decision logic; nothing here talks to the calendar or the task source.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime

from timeblock_sync.models import CalendarEvent
from timeblock_sync.models import TimeBlockEntry
from timeblock_sync.sync.utils import needs_update

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Create:
    entry: TimeBlockEntry


@dataclass(frozen=True)
class Update:
    event: CalendarEvent
    entry: TimeBlockEntry


@dataclass(frozen=True)
class SkipUpToDate:
    entry: TimeBlockEntry


@dataclass(frozen=True)
class DeletePast:
    """Deleting an orphan that already started.

    ``reconcile`` never emits this; the applier refuses it if handed one.
    """

    event: CalendarEvent
    entry_id: str


@dataclass(frozen=True)
class DeleteFuture:
    event: CalendarEvent
    entry_id: str


@dataclass(frozen=True)
class SkipPastOrphan:
    event: CalendarEvent
    entry_id: str


Action = Create | Update | SkipUpToDate | DeletePast | DeleteFuture | SkipPastOrphan


@dataclass
class SyncPlan:
    """Ordered actions plus the items that could not be decided."""

    actions: list[Action] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)


def _decide_entry(entry: TimeBlockEntry, index: dict[str, CalendarEvent]) -> Action:
    event = index.get(entry.id)
    if event is None:
        return Create(entry)
    if needs_update(event, entry):
        return Update(event, entry)
    return SkipUpToDate(entry)


def _decide_orphan(entry_id: str, event: CalendarEvent, now: datetime) -> Action:
    # Past events are history: never delete them, even when the todo is gone.
    if event.start_date > now:
        return DeleteFuture(event, entry_id)
    return SkipPastOrphan(event, entry_id)


def reconcile(
    entries: list[TimeBlockEntry],
    index: dict[str, CalendarEvent],
    now: datetime,
    logger=None,
) -> SyncPlan:
    """Diff sorted entries against the event index.

    Phase 1 walks the entries in order and yields Create, Update or
    SkipUpToDate.  Phase 2 walks indexed events whose id is not among the
    entries and yields DeleteFuture or SkipPastOrphan.  A failure deciding
    one item is logged and recorded; the remaining items are still decided.
    """
    logger = logger or _logger
    plan = SyncPlan()

    for entry in entries:
        try:
            plan.actions.append(_decide_entry(entry, index))
        except Exception as e:
            logger.error(f"Error processing time block '{entry.title}' ({entry.id}): {e}")
            plan.failures.append((entry.id, str(e)))

    current_ids = {entry.id for entry in entries}
    orphans = {eid: event for eid, event in index.items() if eid not in current_ids}
    if orphans:
        logger.info(f"Found {len(orphans)} orphaned event(s) no longer in the task source")

    for entry_id, event in orphans.items():
        try:
            plan.actions.append(_decide_orphan(entry_id, event, now))
        except Exception as e:
            logger.error(f"Error checking orphaned event '{event.title}' ({entry_id}): {e}")
            plan.failures.append((entry_id, str(e)))

    return plan
