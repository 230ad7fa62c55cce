"""
Tests for the change applier: each action kind against FakeCalendarClient.
"""

from datetime import datetime
from datetime import timedelta

from timeblock_sync.entries import build_entries
from timeblock_sync.sync.apply import apply_actions
from timeblock_sync.sync.reconcile import Create
from timeblock_sync.sync.reconcile import DeleteFuture
from timeblock_sync.sync.reconcile import DeletePast
from timeblock_sync.sync.reconcile import SkipPastOrphan
from timeblock_sync.sync.reconcile import SkipUpToDate
from timeblock_sync.sync.reconcile import SyncPlan
from timeblock_sync.sync.reconcile import Update
from timeblock_sync.sync.utils import extract_entry_id
from tests.conftest import CEST
from tests.conftest import NOW
from tests.conftest import make_event
from tests.conftest import make_record
from tests.fake_client import FakeCalendarClient


def _entry(record_id="t1", **kwargs):
    return build_entries([make_record(record_id, **kwargs)])[0]


class TestCreate:
    def test_creates_linked_event(self, sync_config, sync_stats, sync_logger):
        client = FakeCalendarClient()
        entry = _entry("t1", tags=["d-1h"])

        apply_actions(sync_config, sync_stats, sync_logger, SyncPlan([Create(entry)]), client)

        assert sync_stats.added == 1
        assert sync_stats.errors == 0
        created = client.get(client.creates[0])
        assert created.title == "Deep Work"
        assert created.start_date == datetime(2025, 6, 1, 9, 0, tzinfo=CEST)
        assert created.end_date == datetime(2025, 6, 1, 10, 0, tzinfo=CEST)
        assert extract_entry_id(created.url) == "t1"
        assert created.notes is None

    def test_missing_duration_defaults_to_one_hour(self, sync_config, sync_stats, sync_logger):
        client = FakeCalendarClient()
        entry = _entry("t1", tags=["d-1h30m"])

        apply_actions(sync_config, sync_stats, sync_logger, SyncPlan([Create(entry)]), client)

        created = client.get(client.creates[0])
        assert created.end_date - created.start_date == timedelta(hours=1)

    def test_failed_create_is_counted_and_skipped(self, sync_config, sync_stats, sync_logger):
        client = FakeCalendarClient()
        client.fail_titles.add("Broken")
        plan = SyncPlan(
            [Create(_entry("t1", title="Broken")), Create(_entry("t2", title="Fine"))]
        )

        apply_actions(sync_config, sync_stats, sync_logger, plan, client)

        assert sync_stats.errors == 1
        assert sync_stats.added == 1
        assert client.event_count == 1


class TestUpdate:
    def test_rewrites_fields_and_clears_notes(self, sync_config, sync_stats, sync_logger):
        old = make_event(
            "t1", NOW + timedelta(days=1), title="Old", uid="u1", notes="stale notes"
        )
        client = FakeCalendarClient([old])
        event = client.get_events_in_range(NOW, NOW + timedelta(days=30))[0]
        entry = _entry("t1", title="New", reminder="2025-06-03T10:00:00+02:00", tags=["d-2h"])

        apply_actions(
            sync_config, sync_stats, sync_logger, SyncPlan([Update(event, entry)]), client
        )

        assert sync_stats.modified == 1
        stored = client.get("u1")
        assert stored.title == "New"
        assert stored.start_date == datetime(2025, 6, 3, 10, 0, tzinfo=CEST)
        assert stored.end_date == datetime(2025, 6, 3, 12, 0, tzinfo=CEST)
        assert stored.notes is None
        assert extract_entry_id(stored.url) == "t1"

    def test_failed_update_is_counted(self, sync_config, sync_stats, sync_logger):
        event = make_event("t1", NOW + timedelta(days=1), title="Old", uid="u1")
        client = FakeCalendarClient([event])
        client.fail_uids.add("u1")

        apply_actions(
            sync_config, sync_stats, sync_logger, SyncPlan([Update(event, _entry("t1"))]), client
        )

        assert sync_stats.errors == 1
        assert sync_stats.modified == 0


class TestDelete:
    def test_future_orphan_removed(self, sync_config, sync_stats, sync_logger):
        event = make_event("t9", NOW + timedelta(days=1), uid="u9")
        client = FakeCalendarClient([event])

        apply_actions(
            sync_config, sync_stats, sync_logger, SyncPlan([DeleteFuture(event, "t9")]), client
        )

        assert sync_stats.deleted == 1
        assert client.removes == ["u9"]
        assert client.event_count == 0

    def test_failed_delete_continues(self, sync_config, sync_stats, sync_logger):
        first = make_event("t8", NOW + timedelta(days=1), uid="u8")
        second = make_event("t9", NOW + timedelta(days=2), uid="u9")
        client = FakeCalendarClient([first, second])
        client.fail_uids.add("u8")
        plan = SyncPlan([DeleteFuture(first, "t8"), DeleteFuture(second, "t9")])

        apply_actions(sync_config, sync_stats, sync_logger, plan, client)

        assert sync_stats.errors == 1
        assert sync_stats.deleted == 1
        assert client.removes == ["u9"]

    def test_delete_past_is_refused(self, sync_config, sync_stats, sync_logger):
        event = make_event("t7", NOW - timedelta(days=1), uid="u7")
        client = FakeCalendarClient([event])

        apply_actions(
            sync_config, sync_stats, sync_logger, SyncPlan([DeletePast(event, "t7")]), client
        )

        assert client.removes == []
        assert client.event_count == 1
        assert sync_stats.errors == 1


def test_skips_have_no_side_effects(sync_config, sync_stats, sync_logger):
    past = make_event("t7", NOW - timedelta(days=1), uid="u7")
    client = FakeCalendarClient([past])
    plan = SyncPlan([SkipUpToDate(_entry("t1")), SkipPastOrphan(past, "t7")])

    apply_actions(sync_config, sync_stats, sync_logger, plan, client)

    assert sync_stats.skipped == 2
    assert client.creates == client.modifies == client.removes == []


def test_dry_run_touches_nothing(dry_run_config, sync_stats, sync_logger):
    event = make_event("t9", NOW + timedelta(days=1), uid="u9")
    client = FakeCalendarClient([event])
    plan = SyncPlan(
        [
            Create(_entry("t1")),
            Update(event, _entry("t2", title="Renamed")),
            DeleteFuture(event, "t9"),
        ]
    )

    apply_actions(dry_run_config, sync_stats, sync_logger, plan, client)

    assert (sync_stats.added, sync_stats.modified, sync_stats.deleted) == (1, 1, 1)
    assert client.creates == client.modifies == client.removes == []
    assert client.get("u9").title == "Deep Work"


def test_reconciler_failures_count_as_errors(sync_config, sync_stats, sync_logger):
    plan = SyncPlan(actions=[], failures=[("t1", "boom"), ("t2", "bang")])

    apply_actions(sync_config, sync_stats, sync_logger, plan, FakeCalendarClient())

    assert sync_stats.errors == 2
