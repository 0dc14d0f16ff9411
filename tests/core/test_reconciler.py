import logging

import pytest

from core.reconciler import ChangeReconciler
from models.events import RecordDeleted, RecordInserted, RecordUpdated
from models.query import StandingFilter


@pytest.fixture
def reconciler() -> ChangeReconciler:
    return ChangeReconciler()


def _state(reconciler):
    return {record.id: record for record in reconciler.snapshot()}


# --- Test basic events --- #


def test_insert_appends(reconciler, make_record):
    """Test an insert for a new id appends the record."""
    assert reconciler.apply(RecordInserted(record=make_record("1")))
    assert reconciler.apply(RecordInserted(record=make_record("2")))
    assert [record.id for record in reconciler.snapshot()] == ["1", "2"]
    assert "1" in reconciler
    assert len(reconciler) == 2


def test_insert_for_present_id_equals_update(make_record):
    """Test an insert for a held id behaves exactly like an update."""
    original = make_record("1", current_stock=10)
    changed = make_record("1", minutes=1, current_stock=4)

    via_insert = ChangeReconciler([original])
    via_update = ChangeReconciler([original])
    via_insert.apply(RecordInserted(record=changed))
    via_update.apply(RecordUpdated(record=changed))

    assert via_insert.snapshot() == via_update.snapshot()
    assert via_insert.get("1").current_stock == 4


def test_update_replaces_in_place(make_record):
    """Test an update keeps the record's position."""
    reconciler = ChangeReconciler([make_record("1"), make_record("2"), make_record("3")])
    reconciler.apply(RecordUpdated(record=make_record("2", minutes=1, current_stock=0)))
    assert [record.id for record in reconciler.snapshot()] == ["1", "2", "3"]
    assert reconciler.get("2").current_stock == 0


def test_update_for_unseen_id_inserts(reconciler, make_record, caplog):
    """Test an update for an unknown id self-heals into an insert."""
    with caplog.at_level(logging.INFO):
        assert reconciler.apply(RecordUpdated(record=make_record("9", current_stock=3)))
    assert reconciler.get("9").current_stock == 3
    assert "applied as insert" in caplog.text


def test_delete_removes(make_record):
    """Test a delete removes the record."""
    reconciler = ChangeReconciler([make_record("1"), make_record("2")])
    assert reconciler.apply(RecordDeleted(record_id="1"))
    assert [record.id for record in reconciler.snapshot()] == ["2"]


def test_delete_for_unknown_id_is_noop(make_record):
    """Test deleting a never-seen id leaves the collection unchanged."""
    reconciler = ChangeReconciler([make_record("1")])
    before = reconciler.snapshot()
    assert not reconciler.apply(RecordDeleted(record_id="404"))
    assert reconciler.snapshot() == before


def test_identical_update_reports_no_change(make_record):
    """Test re-applying the held record is not a change."""
    record = make_record("1")
    reconciler = ChangeReconciler([record])
    assert not reconciler.apply(RecordUpdated(record=record))


# --- Test ordering --- #


def test_scenario_insert_then_update(reconciler, make_record):
    """Test insert then update of the same id leaves one record with the latest state."""
    changed = reconciler.apply_batch(
        [
            RecordInserted(record=make_record("9", current_stock=5)),
            RecordUpdated(record=make_record("9", minutes=1, current_stock=0)),
        ]
    )
    assert changed == 2
    assert len(reconciler) == 1
    assert reconciler.get("9").current_stock == 0


def test_independent_ids_commute(make_record):
    """Test events for different ids give the same collection in either order."""
    base = [make_record("1"), make_record("2")]
    events = [
        RecordUpdated(record=make_record("1", minutes=1, current_stock=1)),
        RecordInserted(record=make_record("3", current_stock=3)),
        RecordDeleted(record_id="2"),
    ]
    forward = ChangeReconciler(base)
    backward = ChangeReconciler(base)
    forward.apply_batch(events)
    backward.apply_batch(list(reversed(events)))
    assert _state(forward) == _state(backward)


def test_stale_update_dropped(make_record, caplog):
    """Test an update older than the held record is ignored."""
    reconciler = ChangeReconciler([make_record("9", minutes=10, current_stock=3)])
    with caplog.at_level(logging.DEBUG):
        changed = reconciler.apply(RecordUpdated(record=make_record("9", minutes=5, current_stock=0)))
    assert not changed
    assert reconciler.get("9").current_stock == 3
    assert "Stale UPDATE" in caplog.text


def test_equal_timestamp_incoming_wins(make_record):
    """Test an update with the same timestamp replaces the held record."""
    reconciler = ChangeReconciler([make_record("9", current_stock=3)])
    assert reconciler.apply(RecordUpdated(record=make_record("9", current_stock=7)))
    assert reconciler.get("9").current_stock == 7


# --- Test standing filter --- #


def test_standing_filter_drops_out_of_scope(make_record):
    """Test events outside the standing filter never reach the collection."""
    reconciler = ChangeReconciler(standing_filter=StandingFilter(vendor="acme"))
    assert not reconciler.apply(RecordInserted(record=make_record("1", vendor="Other")))
    assert reconciler.apply(RecordInserted(record=make_record("2", vendor="ACME Ltd")))
    assert [record.id for record in reconciler.snapshot()] == ["2"]


def test_update_leaving_scope_removes_record(make_record):
    """Test a held record updated out of scope is removed."""
    standing = StandingFilter(low_stock_only=True)
    reconciler = ChangeReconciler([make_record("1", current_stock=2, reorder_point=5)], standing)
    assert reconciler.apply(RecordUpdated(record=make_record("1", minutes=1, current_stock=50, reorder_point=5)))
    assert len(reconciler) == 0


def test_reset_projects_through_standing_filter(make_record):
    """Test a full resync replaces the collection and applies the scope."""
    reconciler = ChangeReconciler([make_record("old")], StandingFilter(location="north"))
    reconciler.reset(
        [
            make_record("1", location="North Hall"),
            make_record("2", location="South"),
        ]
    )
    assert [record.id for record in reconciler.snapshot()] == ["1"]


def test_reset_keeps_newer_held_record(make_record):
    """Test a resync copy older than the held record does not replace it."""
    reconciler = ChangeReconciler([make_record("1", minutes=5, current_stock=0), make_record("2")])
    reconciler.reset(
        [
            make_record("1", current_stock=10),
            make_record("2", minutes=1, current_stock=7),
        ]
    )
    state = _state(reconciler)
    assert state["1"].current_stock == 0
    assert state["2"].current_stock == 7


def test_snapshot_is_immutable(make_record):
    """Test consumers get a tuple they cannot use to mutate the collection."""
    reconciler = ChangeReconciler([make_record("1")])
    snapshot = reconciler.snapshot()
    assert isinstance(snapshot, tuple)
    reconciler.apply(RecordDeleted(record_id="1"))
    assert len(snapshot) == 1
