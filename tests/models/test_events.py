import pytest
from pydantic import ValidationError

from models.enums import ChangeKind
from models.events import ChangeEvent, RecordDeleted, RecordInserted, RecordUpdated


def test_record_id_filled_from_record(make_record):
    """Test record_id is taken from the carried record when omitted."""
    event = RecordUpdated(record=make_record("42"))
    assert event.kind == ChangeKind.UPDATE
    assert event.record_id == "42"


def test_insert_defaults_kind(make_record):
    """Test RecordInserted carries the INSERT kind."""
    assert RecordInserted(record=make_record()).kind == ChangeKind.INSERT


def test_delete_needs_only_id():
    """Test delete events are valid with just a record id."""
    event = RecordDeleted(record_id="7")
    assert event.kind == ChangeKind.DELETE
    assert event.record is None


@pytest.mark.parametrize("event_cls", [RecordInserted, RecordUpdated])
def test_upsert_requires_record(event_cls):
    """Test INSERT/UPDATE events without a record are rejected."""
    with pytest.raises(ValidationError, match="requires a record"):
        event_cls(record_id="1")


def test_delete_requires_record_id():
    """Test delete events without an id are rejected."""
    with pytest.raises(ValidationError, match="record_id"):
        RecordDeleted()


def test_mismatched_record_id_rejected(make_record):
    """Test record_id must match the carried record's id."""
    with pytest.raises(ValidationError, match="does not match"):
        RecordUpdated(record_id="other", record=make_record("1"))


def test_generic_event_from_dict():
    """Test a raw payload (as delivered by a feed) validates into a ChangeEvent."""
    event = ChangeEvent.model_validate(
        {"kind": "INSERT", "record": {"id": "5", "sku": "E", "current_stock": 3}}
    )
    assert event.kind == ChangeKind.INSERT
    assert event.record_id == "5"
    assert event.record.current_stock == 3


def test_events_get_unique_ids(make_record):
    """Test every event gets its own event_id."""
    record = make_record()
    assert RecordUpdated(record=record).event_id != RecordUpdated(record=record).event_id
