import math

import pytest

from core import accessors
from models.enums import DemandTrend, StockStatusLevel

# --- Test price / cost --- #


@pytest.mark.parametrize(
    "unit_price, cost, expected",
    [
        (12.5, 8.0, 12.5),
        (None, 8.0, 8.0),
        (None, None, 0.0),
        (0.0, 8.0, 0.0),
    ],
)
def test_price_fallback(make_record, unit_price, cost, expected):
    """Test price is unit_price, else cost, else 0."""
    record = make_record(unit_price=unit_price, cost=cost)
    assert accessors.price(record) == expected


def test_cost_defaults_to_zero(make_record):
    """Test cost ignores unit_price and defaults to 0."""
    assert accessors.cost(make_record(unit_price=9.0)) == 0.0
    assert accessors.cost(make_record(cost=3.0)) == 3.0


# --- Test days_until_stockout --- #


def test_days_explicit_value_wins(make_record):
    """Test a precomputed days value is used verbatim."""
    record = make_record(current_stock=0, sales_velocity=5, days_until_stockout=12)
    assert accessors.days_until_stockout(record) == 12


def test_days_zero_when_out_of_stock(make_record):
    """Test an out-of-stock record has 0 days left."""
    assert accessors.days_until_stockout(make_record(current_stock=0)) == 0


def test_days_infinite_without_sales(make_record):
    """Test a stocked record that never sells has infinite days left."""
    assert math.isinf(accessors.days_until_stockout(make_record(current_stock=5)))
    assert math.isinf(accessors.days_until_stockout(make_record(current_stock=5, sales_velocity=0)))


def test_days_computed_from_velocity(make_record):
    """Test stock / velocity is used when no value is given."""
    assert accessors.days_until_stockout(make_record(current_stock=30, sales_velocity=2)) == 15


# --- Test stock status level --- #


def test_precomputed_status_used_verbatim(make_record):
    """Test a server-computed level is never recomputed."""
    record = make_record(current_stock=1000, reorder_point=10, stock_status_level="critical")
    assert accessors.stock_status_level(record) == StockStatusLevel.CRITICAL


@pytest.mark.parametrize(
    "stock, fields, expected",
    [
        (0, {"reorder_point": 10}, StockStatusLevel.CRITICAL),
        (5, {"reorder_point": 10}, StockStatusLevel.CRITICAL),
        (10, {"reorder_point": 10}, StockStatusLevel.LOW),
        (20, {"reorder_point": 10}, StockStatusLevel.LOW),
        (30, {"reorder_point": 10}, StockStatusLevel.ADEQUATE),
        (60, {"reorder_point": 10}, StockStatusLevel.OVERSTOCKED),
        (60, {"reorder_point": 10, "maximum_stock": 100}, StockStatusLevel.ADEQUATE),
        (101, {"reorder_point": 10, "maximum_stock": 100}, StockStatusLevel.OVERSTOCKED),
        (8, {"minimum_stock": 10}, StockStatusLevel.CRITICAL),
        (500, {}, StockStatusLevel.ADEQUATE),
    ],
)
def test_derived_status(make_record, stock, fields, expected):
    """Test the status derivation from stock vs thresholds."""
    record = make_record(current_stock=stock, **fields)
    assert accessors.stock_status_level(record) == expected


# --- Test flags --- #


def test_demand_trend_defaults_to_stable(make_record):
    """Test a missing trend reads as stable."""
    assert accessors.demand_trend(make_record()) == DemandTrend.STABLE
    assert accessors.demand_trend(make_record(demand_trend="decreasing")) == DemandTrend.DECREASING


@pytest.mark.parametrize(
    "fields, expected",
    [
        ({"reorder_recommended": True, "current_stock": 500}, True),
        ({"reorder_point": 10, "current_stock": 10}, True),
        ({"reorder_point": 10, "current_stock": 11}, False),
        ({"current_stock": 0}, False),
    ],
)
def test_needs_reorder(make_record, fields, expected):
    """Test reorder is flagged, or stock is at/below the reorder point."""
    assert accessors.needs_reorder(make_record(**fields)) is expected


def test_is_manufactured_case_insensitive(make_record):
    """Test vendor membership ignores case and requires a vendor."""
    vendors = accessors.normalize_vendors(["Acme Works", ""])
    assert vendors == frozenset({"acme works"})
    assert accessors.is_manufactured(make_record(vendor="ACME WORKS"), vendors)
    assert not accessors.is_manufactured(make_record(vendor="Other"), vendors)
    assert not accessors.is_manufactured(make_record(vendor=None), vendors)


def test_inventory_value(make_record):
    """Test value is price times stock."""
    assert accessors.inventory_value(make_record(current_stock=4, cost=2.5)) == 10.0
