"""
Module: core.session

Session-scoped store for the inventory live view.

`InventoryViewSession` is the single owner of the working collection (through
its ChangeReconciler) and the alert buffer (through its AlertMonitor). The
presentation layer drives it through the query operations and reads the
current page, alerts and diagnostics back; nothing else mutates its state.

Data flow:
    fetch collaborator --(resync)--> reconciler --+
    subscribe collaborator --(batched events)-----+--> filter -> sort -> paginate -> view
    mutation collaborator --(optimistic update)---+        \
                                                            +-> alert scan
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from config.config import AlertConfig, ViewConfig
from connectors.protocols import ChangeSubscriber, InventoryFetcher, InventoryMutator
from models.alerts import CriticalAlert
from models.enums import ConnectionStatus, SortDirection
from models.events import ChangeEvent, RecordUpdated
from models.inventory import InventoryRecord
from models.query import FilterConfig, Page, SortConfig, StandingFilter
from utils.event_bus import Subscription

from . import facets
from .accessors import normalize_vendors
from .alerts import AlertMonitor
from .exceptions import FetchError, MutationError
from .facets import ViewSummary
from .filters import active_filter_count, evaluate
from .pagination import paginate
from .presets import get_preset, preset_counts
from .query_controller import Query, QueryController
from .reconciler import ChangeReconciler
from .sorting import sort_records, toggle_sort

logger = logging.getLogger(__name__)


class InventoryViewSession:
    """
    Live, filtered, sorted and paginated view over an inventory collection.

    Query changes (filters, sort, page, page size) are evaluated locally and
    immediately; filter, sort and search changes also resynchronize the
    working set from the fetch collaborator. Search edits are debounced.
    Live change events arriving in the same loop tick are reconciled as one
    batch followed by a single re-evaluation and alert scan.
    """

    def __init__(
        self,
        fetcher: InventoryFetcher,
        subscriber: ChangeSubscriber | None = None,
        mutator: InventoryMutator | None = None,
        view_config: ViewConfig | None = None,
        alert_config: AlertConfig | None = None,
        standing_filter: StandingFilter | None = None,
    ):
        self.view_config = view_config or ViewConfig()
        self._fetcher = fetcher
        self._subscriber = subscriber
        self._mutator = mutator

        self._reconciler = ChangeReconciler(standing_filter=standing_filter)
        self._alerts = AlertMonitor(alert_config)
        self._manufacturing_vendors = normalize_vendors(self.view_config.manufacturing_vendors)

        self._filter_config = FilterConfig()
        self._sort_config = SortConfig(
            field=self.view_config.default_sort_field,
            direction=SortDirection(self.view_config.default_sort_direction),
        )
        self._page = 1
        self._page_size = max(1, self.view_config.default_page_size)
        self._active_preset: str | None = None
        self._pending_search: str | None = None
        self._filtered: list[InventoryRecord] = []
        self._view = Page(page_size=self._page_size)

        self.error: Exception | None = None
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.last_update: datetime | None = None
        self.evaluations = 0

        self._subscription: Subscription | None = None
        self._pending_events: list[ChangeEvent] = []
        self._flush_handle: asyncio.Handle | None = None
        # Events applied while a resync fetch is in flight, replayed over its result
        self._replay: list[ChangeEvent] | None = None

        self._queries = QueryController(
            self._fetch_working_set,
            self._on_fetch_result,
            self._on_fetch_error,
            debounce_seconds=self.view_config.debounce_seconds,
            on_issue=self._on_query_issued,
        )
        self._evaluate()
        logger.info(
            f"Inventory view session created (page size {self._page_size}, "
            f"sort {self._sort_config.field} {self._sort_config.direction.value})"
        )

    # --- read side ---

    @property
    def view(self) -> Page:
        return self._view

    @property
    def items(self) -> tuple[InventoryRecord, ...]:
        return self._view.items

    @property
    def records(self) -> tuple[InventoryRecord, ...]:
        """Snapshot of the whole working collection."""
        return self._reconciler.snapshot()

    @property
    def filtered_records(self) -> tuple[InventoryRecord, ...]:
        """Every record passing the current filters, in sort order."""
        return tuple(self._filtered)

    @property
    def filter_config(self) -> FilterConfig:
        return self._filter_config

    @property
    def sort_config(self) -> SortConfig:
        return self._sort_config

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def active_preset(self) -> str | None:
        return self._active_preset

    @property
    def active_filter_count(self) -> int:
        return active_filter_count(self._filter_config)

    @property
    def is_filtered(self) -> bool:
        return self.active_filter_count > 0

    @property
    def is_loading(self) -> bool:
        return self._queries.is_loading

    @property
    def is_connected(self) -> bool:
        return self.connection_status == ConnectionStatus.CONNECTED

    @property
    def generation(self) -> int:
        return self._queries.generation

    @property
    def alerts(self) -> tuple[CriticalAlert, ...]:
        return self._alerts.alerts

    @property
    def unacknowledged_alert_count(self) -> int:
        return self._alerts.unacknowledged_count

    # --- query operations ---

    def set_filter_config(self, config: FilterConfig) -> asyncio.Task | None:
        """Replace the filter config wholesale. Discards a pending search edit."""
        self._pending_search = None
        self._apply_filters(config)
        return self._request_fetch()

    def update_filter(self, **changes: Any) -> asyncio.Task | None:
        """Merge `changes` into the current filter config."""
        self._adopt_pending_search()
        return self.set_filter_config(self._filter_config.with_updates(**changes))

    def clear_filters(self) -> asyncio.Task | None:
        return self.set_filter_config(FilterConfig())

    def apply_preset(self, preset_id: str) -> asyncio.Task | None:
        """Merge a quick-filter preset into the current config. Raises KeyError for unknown ids."""
        preset = get_preset(preset_id)
        self._adopt_pending_search()
        self._apply_filters(preset.apply_to(self._filter_config))
        self._active_preset = preset.id
        return self._request_fetch()

    def set_sort_config(self, config: SortConfig) -> asyncio.Task | None:
        self._adopt_pending_search()
        self._sort_config = config
        self._page = 1
        self._evaluate()
        return self._request_fetch()

    def toggle_sort(self, field: str) -> asyncio.Task | None:
        return self.set_sort_config(toggle_sort(self._sort_config, field))

    def set_search_term(self, term: str) -> asyncio.Task | None:
        """
        Debounced search edit. Each call restarts the quiet window; the term
        is adopted (page reset to 1) when the window elapses and the fetch
        is issued. Without a running loop the term is adopted immediately.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._pending_search = None
            self._apply_filters(self._filter_config.with_updates(search=term))
            return None
        self._pending_search = term
        query = Query(self._filter_config.with_updates(search=term), self._sort_config)
        return self._queries.submit(query, debounce=True)

    def set_page_size(self, page_size: int) -> Page:
        self._page_size = max(1, page_size)
        self._page = 1
        self._evaluate()
        return self._view

    def go_to_page(self, page: int) -> Page:
        """Move to `page`, clamped into the available range."""
        self._page = page
        self._evaluate()
        return self._view

    def next_page(self) -> Page:
        return self.go_to_page(self._page + 1)

    def previous_page(self) -> Page:
        return self.go_to_page(self._page - 1)

    # --- resync ---

    def refresh(self) -> asyncio.Task | None:
        """Resynchronize the whole working set from the fetch collaborator."""
        self._adopt_pending_search()
        return self._request_fetch()

    async def load(self) -> None:
        """Resynchronize and wait for the outcome."""
        self.refresh()
        await self._queries.wait_idle()

    async def wait_idle(self) -> None:
        await self._queries.wait_idle()

    # --- live events ---

    def connect(self, resync: bool = True) -> bool:
        """Subscribe to live change events; optionally resync to cover the gap."""
        if self._subscriber is None:
            logger.warning("No change subscriber configured; live updates disabled")
            return False
        if self._subscription is not None and self._subscription.active:
            return True

        self.connection_status = ConnectionStatus.CONNECTING
        try:
            self._subscription = self._subscriber.subscribe(self.on_event)
        except Exception as e:
            self.connection_status = ConnectionStatus.ERROR
            self.error = e
            logger.error(f"Subscribing to live changes failed: {type(e).__name__}: {e}")
            return False

        self.connection_status = ConnectionStatus.CONNECTED
        logger.info("Connected to live inventory changes")
        if resync:
            self.refresh()
        return True

    def disconnect(self) -> None:
        """Unsubscribe. Events already received are still applied."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.flush_events()
        if self.connection_status != ConnectionStatus.DISCONNECTED:
            self.connection_status = ConnectionStatus.DISCONNECTED
            logger.info("Disconnected from live inventory changes")

    def on_event(self, event: ChangeEvent) -> None:
        """
        Receive one live event. Events are queued and folded into a single
        reconciliation on the next loop tick; with no running loop they are
        applied right away.
        """
        self._pending_events.append(event)
        if self._flush_handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush_events()
            return
        self._flush_handle = loop.call_soon(self.flush_events)

    def flush_events(self) -> int:
        """Apply every queued live event now."""
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        events, self._pending_events = self._pending_events, []
        if not events:
            return 0
        return self.apply_events(events)

    def apply_events(self, events: Iterable[ChangeEvent]) -> int:
        """
        Reconcile a batch in order, then re-evaluate and rescan alerts once
        if anything changed. Returns the number of events that changed the collection.
        """
        events = list(events)
        if self._replay is not None:
            self._replay.extend(events)
        changed = self._reconciler.apply_batch(events)
        logger.debug(f"Reconciled {len(events)} event(s), {changed} change(s)")
        if changed:
            self.last_update = datetime.now()
            self._refresh_view()
        return changed

    # --- mutations ---

    async def update_stock(self, record_id: str, new_stock: int) -> InventoryRecord:
        return await self._mutate("update_stock", record_id, new_stock)

    async def update_cost(self, record_id: str, new_cost: float) -> InventoryRecord:
        return await self._mutate("update_cost", record_id, new_cost)

    async def _mutate(self, operation: str, record_id: str, value: Any) -> InventoryRecord:
        if self._mutator is None:
            raise MutationError(operation, record_id, RuntimeError("no mutation collaborator configured"))
        try:
            record = await getattr(self._mutator, operation)(record_id, value)
        except Exception as e:
            logger.error(f"{operation} failed for record {record_id}: {type(e).__name__}: {e}")
            raise MutationError(operation, record_id, e) from e

        # Applied locally right away instead of waiting for the live echo
        self.apply_events([RecordUpdated(record=record)])
        return record

    # --- alerts ---

    def acknowledge_alert(self, alert_id: str) -> bool:
        return self._alerts.acknowledge(alert_id)

    def clear_alerts(self) -> None:
        self._alerts.clear()

    def on_alert(self, callback: Callable[[CriticalAlert], None]) -> Subscription:
        return self._alerts.on_alert(callback)

    # --- facets & summary ---

    def _facet_source(self) -> list[InventoryRecord]:
        records = self._reconciler.snapshot()
        if self._filter_config.show_hidden:
            return list(records)
        return [record for record in records if not record.hidden]

    def facets(self) -> dict[str, Any]:
        """Facet values and counts over the visible working collection."""
        records = self._facet_source()
        return {
            "vendors": facets.unique_vendors(records),
            "locations": facets.unique_locations(records),
            "status": facets.status_counts(records),
            "velocity": facets.velocity_counts(records),
            "trend": facets.trend_counts(records),
            "presets": preset_counts(records, self.view_config.manufacturing_vendors),
        }

    def summary(self, filtered: bool = True) -> ViewSummary:
        """Aggregates over the filtered records (or the whole visible collection)."""
        return facets.summarize(self._filtered if filtered else self._facet_source())

    def diagnostics(self) -> dict[str, Any]:
        return {
            "connected": self.is_connected,
            "connection_status": self.connection_status.value,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "item_count": len(self._reconciler),
            "filtered_count": len(self._filtered),
            "alert_count": len(self._alerts.alerts),
            "unacknowledged_alert_count": self._alerts.unacknowledged_count,
            "generation": self._queries.generation,
            "evaluations": self.evaluations,
            "error": str(self.error) if self.error else None,
        }

    def close(self) -> None:
        """Drop pending work and live updates."""
        self._queries.cancel_pending()
        self.disconnect()

    # --- internals ---

    def _apply_filters(self, config: FilterConfig) -> None:
        self._filter_config = config
        self._active_preset = None
        self._page = 1
        self._evaluate()

    def _adopt_pending_search(self) -> None:
        if self._pending_search is None:
            return
        term, self._pending_search = self._pending_search, None
        self._queries.cancel_pending()
        self._apply_filters(self._filter_config.with_updates(search=term))

    def _evaluate(self) -> None:
        """filter -> sort -> paginate over the current working collection."""
        matched = [
            record
            for record in self._reconciler.snapshot()
            if evaluate(record, self._filter_config, self._manufacturing_vendors)
        ]
        self._filtered = sort_records(matched, self._sort_config)
        self._view = paginate(self._filtered, self._page, self._page_size)
        self._page = self._view.page
        self.evaluations += 1

    def _refresh_view(self) -> None:
        self._evaluate()
        self._alerts.scan(self._reconciler.snapshot())

    def _request_fetch(self) -> asyncio.Task | None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; resync skipped")
            return None
        return self._queries.submit(Query(self._filter_config, self._sort_config))

    def _working_set_filters(self) -> FilterConfig:
        """Fetch filters covering the whole working set: the standing scope, nothing from the user."""
        standing = self._reconciler.standing_filter
        if standing is None:
            return FilterConfig(show_hidden=True)
        return FilterConfig(vendor=standing.vendor, location=standing.location, show_hidden=True)

    async def _fetch_working_set(self, query: Query) -> list[InventoryRecord]:
        # query.filters only drive local evaluation; alerts and facets need the unfiltered set
        filters = self._working_set_filters()
        page_size = max(1, self.view_config.fetch_page_size)
        items: list[InventoryRecord] = []
        page = 1
        while True:
            try:
                result = await self._fetcher.fetch_page(filters, query.sort, page, page_size)
            except Exception as e:
                raise FetchError(f"Fetching page {page} failed: {type(e).__name__}: {e}") from e
            items.extend(result.items)
            if not result.items or len(items) >= result.total:
                break
            page += 1
        return items

    def _on_query_issued(self, query: Query) -> None:
        self._pending_search = None
        self._replay = []
        if query.filters != self._filter_config:
            # A debounced search term whose quiet window just elapsed
            self._apply_filters(query.filters)

    def _on_fetch_result(self, query: Query, records: list[InventoryRecord]) -> None:
        replay, self._replay = self._replay or [], None
        self._reconciler.reset(records)
        if replay:
            # Live events and optimistic writes may postdate the snapshot
            replayed = self._reconciler.apply_batch(replay)
            logger.debug(f"Replayed {len(replay)} event(s) over resync, {replayed} change(s)")
        self.error = None
        self.last_update = datetime.now()
        self._refresh_view()

    def _on_fetch_error(self, query: Query, error: Exception) -> None:
        self._replay = None
        self.error = error
        logger.warning(f"Keeping last good inventory view after fetch failure: {error}")
