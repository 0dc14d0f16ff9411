import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Ensure project root is on sys.path to allow `import core`, `import models`, etc.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models.inventory import InventoryRecord  # noqa: E402
from models.query import FetchResult  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


class StubFetcher:
    """
    Fetch collaborator over a fixed record list; can fail or block on demand.
    Filters are recorded but not applied (InMemoryInventoryBackend applies them).
    """

    def __init__(self, records=()):
        self.records = list(records)
        self.calls = []
        self.fail_with: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def fetch_page(self, filters, sort, page, page_size):
        self.calls.append({"filters": filters, "sort": sort, "page": page, "page_size": page_size})
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        start = (page - 1) * page_size
        return FetchResult(items=self.records[start : start + page_size], total=len(self.records))


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def make_record():
    """Factory for InventoryRecord with sensible defaults and a fixed timestamp."""

    def _make(record_id: str = "1", minutes: int = 0, **fields) -> InventoryRecord:
        data = {
            "id": record_id,
            "sku": f"SKU-{record_id}",
            "display_name": f"Item {record_id}",
            "current_stock": 10,
            "last_updated": BASE_TIME + timedelta(minutes=minutes),
        }
        data.update(fields)
        return InventoryRecord(**data)

    return _make


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()
