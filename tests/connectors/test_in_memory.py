from unittest.mock import MagicMock

import pytest

from connectors.in_memory import InMemoryInventoryBackend
from connectors.protocols import ChangeSubscriber, InventoryFetcher, InventoryMutator
from models.enums import ChangeKind
from models.query import FilterConfig, SortConfig


@pytest.fixture
def backend(make_record) -> InMemoryInventoryBackend:
    """Provides a backend holding three records."""
    return InMemoryInventoryBackend(
        [
            make_record("1", display_name="Cog", current_stock=5, vendor="Acme"),
            make_record("2", display_name="Axle", current_stock=0, vendor="Acme"),
            make_record("3", display_name="Belt", current_stock=9, vendor="Bolt Bros", hidden=True),
        ]
    )


def test_implements_collaborator_protocols(backend):
    """Test the backend satisfies the fetch, subscribe and mutation interfaces."""
    assert isinstance(backend, InventoryFetcher)
    assert isinstance(backend, ChangeSubscriber)
    assert isinstance(backend, InventoryMutator)


# --- Test fetch_page --- #


@pytest.mark.asyncio
async def test_fetch_page_filters_sorts_and_slices(backend):
    """Test fetch_page behaves like a server-side query."""
    result = await backend.fetch_page(FilterConfig(), SortConfig(), page=1, page_size=1)
    assert result.total == 2
    assert [record.display_name for record in result.items] == ["Axle"]

    result = await backend.fetch_page(FilterConfig(), SortConfig(), page=2, page_size=1)
    assert [record.display_name for record in result.items] == ["Cog"]
    assert backend.fetch_count == 2


@pytest.mark.asyncio
async def test_fetch_page_with_filters(backend):
    """Test filters are applied before counting."""
    result = await backend.fetch_page(FilterConfig(show_hidden=True, vendor="bolt"), SortConfig(), 1, 10)
    assert result.total == 1
    assert result.items[0].id == "3"


# --- Test change feed --- #


def test_table_edits_publish_events(backend, make_record):
    """Test insert / update / delete publish matching change events."""
    listener = MagicMock()
    subscription = backend.subscribe(listener)
    assert backend.subscriber_count == 1

    backend.insert(make_record("4", display_name="Dial"))
    backend.update(make_record("1", minutes=1, display_name="Cog", current_stock=1))
    backend.delete("2")

    kinds = [call.args[0].kind for call in listener.call_args_list]
    assert kinds == [ChangeKind.INSERT, ChangeKind.UPDATE, ChangeKind.DELETE]
    assert listener.call_args_list[2].args[0].record_id == "2"
    assert sorted(record.id for record in backend.records) == ["1", "3", "4"]

    subscription.unsubscribe()
    assert backend.subscriber_count == 0


def test_unknown_record_raises(backend, make_record):
    """Test editing an unknown record raises KeyError."""
    with pytest.raises(KeyError, match="Unknown inventory record"):
        backend.delete("404")
    with pytest.raises(KeyError):
        backend.update(make_record("404"))


# --- Test mutations --- #


@pytest.mark.asyncio
async def test_update_stock_writes_and_publishes(backend, base_time):
    """Test update_stock returns the new record and publishes it."""
    listener = MagicMock()
    backend.subscribe(listener)

    record = await backend.update_stock("1", 42)

    assert record.current_stock == 42
    assert record.last_updated > base_time
    listener.assert_called_once()
    assert listener.call_args.args[0].record == record


@pytest.mark.asyncio
async def test_update_cost(backend):
    """Test update_cost changes only the cost."""
    record = await backend.update_cost("2", 7.25)
    assert record.cost == 7.25
    assert record.current_stock == 0


@pytest.mark.asyncio
async def test_update_unknown_record(backend):
    """Test mutating an unknown record raises KeyError."""
    with pytest.raises(KeyError):
        await backend.update_stock("missing", 1)
