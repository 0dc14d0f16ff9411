"""
Debounced query controller.

Every submitted query bumps a monotonically increasing generation. A result
(or failure) is delivered only if its generation is still the current one
when it arrives; anything else was superseded and is silently discarded.
Debounced submissions wait out a quiet window first, and a newer submission
cancels the wait, so only the request outstanding when the window elapses is
ever issued. Fetches already in flight are not cancelled, only ignored.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from models.query import FilterConfig, SortConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Query:
    filters: FilterConfig
    sort: SortConfig


class QueryController:
    """Issues fetches for queries, applying only the newest generation's outcome."""

    def __init__(
        self,
        fetch: Callable[[Query], Awaitable[Any]],
        on_result: Callable[[Query, Any], None],
        on_error: Callable[[Query, Exception], None],
        debounce_seconds: float = 0.3,
        on_issue: Callable[[Query], None] | None = None,
    ):
        self._fetch = fetch
        self._on_result = on_result
        self._on_error = on_error
        self._on_issue = on_issue
        self.debounce_seconds = debounce_seconds
        self._generation = 0
        self._loading_generation: int | None = None
        self._pending: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self._loading_generation is not None and self._loading_generation == self._generation

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def submit(self, query: Query, debounce: bool = False) -> asyncio.Task:
        """
        Supersede everything outstanding with `query`.
        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        self.cancel_pending()

        delay = self.debounce_seconds if debounce else 0.0
        task = loop.create_task(self._run(generation, query, delay))
        if debounce:
            self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel_pending(self) -> None:
        """Drop a debounced request whose window has not elapsed yet."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.debug("Pending debounced query cancelled")
        self._pending = None

    async def wait_idle(self) -> None:
        """Wait until no submitted query is pending or in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, generation: int, query: Query, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
            if self._pending is asyncio.current_task():
                self._pending = None
        if not self._is_current(generation):
            return

        if self._on_issue is not None:
            self._on_issue(query)

        self._loading_generation = generation
        try:
            result = await self._fetch(query)
        except Exception as e:
            if not self._is_current(generation):
                logger.debug(f"Discarding failure of superseded query generation {generation}: {e}")
                return
            self._loading_generation = None
            logger.warning(f"Query generation {generation} failed: {type(e).__name__}: {e}")
            self._on_error(query, e)
            return

        if not self._is_current(generation):
            logger.debug(f"Discarding result of superseded query generation {generation}")
            return
        self._loading_generation = None
        self._on_result(query, result)
