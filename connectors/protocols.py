"""
Module: connectors.protocols

Interfaces of the external collaborators the inventory view depends on.
Transport, persistence and authorization live behind these.
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from models.events import ChangeEvent
from models.inventory import InventoryRecord
from models.query import FetchResult, FilterConfig, SortConfig
from utils.event_bus import Subscription


@runtime_checkable
class InventoryFetcher(Protocol):
    async def fetch_page(
        self, filters: FilterConfig, sort: SortConfig, page: int, page_size: int
    ) -> FetchResult:
        """Return one page of records and the total matching count. May raise."""
        ...


@runtime_checkable
class ChangeSubscriber(Protocol):
    def subscribe(self, on_event: Callable[[ChangeEvent], None]) -> Subscription:
        """Deliver change events in arrival order until the handle is unsubscribed."""
        ...


@runtime_checkable
class InventoryMutator(Protocol):
    async def update_stock(self, record_id: str, new_stock: int) -> InventoryRecord: ...

    async def update_cost(self, record_id: str, new_cost: float) -> InventoryRecord: ...
