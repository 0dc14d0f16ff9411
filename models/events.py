"""
Data models for live change events delivered by the subscribe collaborator.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ChangeKind
from .inventory import InventoryRecord


class ChangeEvent(BaseModel):
    """
    Base model for all change events.

    INSERT and UPDATE events carry the full new record; DELETE events only
    need the record id. `record_id` is filled from the record when omitted.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: ChangeKind
    record_id: str = ""
    record: InventoryRecord | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="before")
    @classmethod
    def _fill_record_id(cls, data):
        if isinstance(data, dict) and not data.get("record_id"):
            record = data.get("record")
            if isinstance(record, InventoryRecord):
                data = {**data, "record_id": record.id}
            elif isinstance(record, dict) and record.get("id"):
                data = {**data, "record_id": record["id"]}
        return data

    @model_validator(mode="after")
    def _check_payload(self) -> "ChangeEvent":
        if self.kind in (ChangeKind.INSERT, ChangeKind.UPDATE) and self.record is None:
            raise ValueError(f"{self.kind.value} event requires a record")
        if not self.record_id:
            raise ValueError("change event requires a record_id")
        if self.record is not None and self.record.id != self.record_id:
            raise ValueError(
                f"record_id {self.record_id!r} does not match record.id {self.record.id!r}"
            )
        return self


# Specialized Event Types
class RecordInserted(ChangeEvent):
    """A record appeared in the source collection"""

    kind: ChangeKind = ChangeKind.INSERT


class RecordUpdated(ChangeEvent):
    """A record was replaced by a new full state"""

    kind: ChangeKind = ChangeKind.UPDATE


class RecordDeleted(ChangeEvent):
    """A record was removed from the source collection"""

    kind: ChangeKind = ChangeKind.DELETE
