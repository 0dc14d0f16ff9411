"""
Module: connectors.in_memory

In-memory inventory backend implementing the fetch, subscribe and mutation
collaborators. Every write is published on its change feed, which makes it a
stand-in for a live database table in tests and local wiring.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable

from core.filters import filter_records
from core.sorting import sort_records
from models.events import ChangeEvent, RecordDeleted, RecordInserted, RecordUpdated
from models.inventory import InventoryRecord
from models.query import FetchResult, FilterConfig, SortConfig
from utils.event_bus import ChangeFeed, Subscription

logger = logging.getLogger(__name__)


class InMemoryInventoryBackend:
    """
    Dummy in-memory inventory store.
    """

    def __init__(
        self,
        records: Iterable[InventoryRecord] = (),
        latency: float = 0.0,
        manufacturing_vendors: Iterable[str] = (),
    ):
        self._records: dict[str, InventoryRecord] = {record.id: record for record in records}
        self._feed: ChangeFeed[ChangeEvent] = ChangeFeed("inventory-changes")
        self.latency = latency
        self.manufacturing_vendors = list(manufacturing_vendors)
        self.fetch_count = 0

    @property
    def records(self) -> list[InventoryRecord]:
        return list(self._records.values())

    # --- fetch collaborator ---

    async def fetch_page(
        self, filters: FilterConfig, sort: SortConfig, page: int, page_size: int
    ) -> FetchResult:
        """Filter, sort and slice the table the way a server-side query would."""
        self.fetch_count += 1
        await asyncio.sleep(self.latency)
        matched = sort_records(filter_records(self._records.values(), filters, self.manufacturing_vendors), sort)
        start = (max(1, page) - 1) * page_size
        return FetchResult(items=matched[start : start + page_size], total=len(matched))

    # --- subscribe collaborator ---

    def subscribe(self, on_event: Callable[[ChangeEvent], None]) -> Subscription:
        return self._feed.subscribe(on_event)

    @property
    def subscriber_count(self) -> int:
        return len(self._feed)

    # --- mutation collaborator ---

    async def update_stock(self, record_id: str, new_stock: int) -> InventoryRecord:
        await asyncio.sleep(self.latency)
        return self._write(self._require(record_id).with_changes(current_stock=new_stock))

    async def update_cost(self, record_id: str, new_cost: float) -> InventoryRecord:
        await asyncio.sleep(self.latency)
        return self._write(self._require(record_id).with_changes(cost=new_cost))

    # --- direct table edits (published as live events) ---

    def insert(self, record: InventoryRecord) -> InventoryRecord:
        self._records[record.id] = record
        self._feed.publish(RecordInserted(record=record))
        return record

    def update(self, record: InventoryRecord) -> InventoryRecord:
        self._require(record.id)
        return self._write(record)

    def delete(self, record_id: str) -> None:
        self._require(record_id)
        del self._records[record_id]
        self._feed.publish(RecordDeleted(record_id=record_id))

    def _require(self, record_id: str) -> InventoryRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise KeyError(f"Unknown inventory record: {record_id}") from None

    def _write(self, record: InventoryRecord) -> InventoryRecord:
        self._records[record.id] = record
        logger.debug(f"Record {record.id} written (stock={record.current_stock}, cost={record.cost})")
        self._feed.publish(RecordUpdated(record=record))
        return record
