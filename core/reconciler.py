"""
Change-event reconciler.

Owns the working collection and merges INSERT / UPDATE / DELETE events into
it one at a time, in arrival order:

- INSERT of a held id behaves as UPDATE (idempotent insert).
- UPDATE of an unknown id behaves as INSERT (self-heals a missed insert).
- DELETE of an unknown id is a no-op.
- INSERT/UPDATE carrying a record older (by last_updated) than the held one
  is dropped, so a late live-feed echo cannot undo a newer optimistic write.
- With a standing filter, records outside the scope never enter the
  collection; an update moving a held record out of scope removes it.
- A full resync replaces the collection but keeps held records that are
  newer than their fetched copies.

Consumers only ever see immutable snapshots.
"""

import logging
from collections.abc import Iterable

from models.enums import ChangeKind
from models.events import ChangeEvent
from models.inventory import InventoryRecord
from models.query import StandingFilter

from .filters import matches_standing

logger = logging.getLogger(__name__)


class ChangeReconciler:
    """Working collection plus the reconciliation state machine."""

    def __init__(
        self,
        records: Iterable[InventoryRecord] = (),
        standing_filter: StandingFilter | None = None,
    ):
        self.standing_filter = standing_filter
        # id -> record, insertion ordered
        self._records: dict[str, InventoryRecord] = {}
        self.reset(records)

    # --- read side ---

    def snapshot(self) -> tuple[InventoryRecord, ...]:
        return tuple(self._records.values())

    def get(self, record_id: str) -> InventoryRecord | None:
        return self._records.get(record_id)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    # --- write side ---

    def reset(self, records: Iterable[InventoryRecord]) -> None:
        """
        Replace the whole collection (full resync), projecting through the
        standing filter. A held record newer than its fetched copy is kept,
        so a snapshot taken before a live update cannot roll it back.
        """
        fresh: dict[str, InventoryRecord] = {}
        dropped = kept = 0
        for record in records:
            if not matches_standing(record, self.standing_filter):
                dropped += 1
                continue
            held = self._records.get(record.id)
            if held is not None and held.last_updated > record.last_updated:
                logger.debug(f"Resync copy of {record.id} is older than the held record; keeping held")
                fresh[record.id] = held
                kept += 1
            else:
                fresh[record.id] = record
        self._records = fresh
        logger.info(
            f"Working collection resynchronized: {len(fresh)} records "
            f"({dropped} outside scope, {kept} newer held copies kept)"
        )

    def apply(self, event: ChangeEvent) -> bool:
        """Merge one event. Returns True when the collection changed."""
        if event.kind == ChangeKind.DELETE:
            return self._delete(event.record_id)
        return self._upsert(event.kind, event.record)

    def apply_batch(self, events: Iterable[ChangeEvent]) -> int:
        """Merge events in order. Returns how many of them changed the collection."""
        return sum(1 for event in events if self.apply(event))

    def _delete(self, record_id: str) -> bool:
        if self._records.pop(record_id, None) is None:
            logger.debug(f"Delete for unknown record {record_id} ignored")
            return False
        logger.debug(f"Record {record_id} deleted")
        return True

    def _upsert(self, kind: ChangeKind, record: InventoryRecord) -> bool:
        existing = self._records.get(record.id)

        if not matches_standing(record, self.standing_filter):
            if existing is None:
                logger.debug(f"{kind.value} for {record.id} outside standing filter dropped")
                return False
            del self._records[record.id]
            logger.debug(f"Record {record.id} left the standing filter scope and was removed")
            return True

        if existing is None:
            if kind == ChangeKind.UPDATE:
                logger.info(f"Update for unseen record {record.id} applied as insert")
            self._records[record.id] = record
            return True

        if record.last_updated < existing.last_updated:
            logger.debug(
                f"Stale {kind.value} for {record.id} dropped "
                f"({record.last_updated.isoformat()} < {existing.last_updated.isoformat()})"
            )
            return False
        if record == existing:
            return False
        self._records[record.id] = record
        return True
