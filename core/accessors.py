"""
Canonical field accessors.

Every stage that filters, sorts, summarizes or alerts on a record reads the
value through these functions, so a missing field defaults the same way
everywhere.
"""

import math
from collections.abc import Callable
from typing import Any

from models.enums import DemandTrend, StockStatusLevel
from models.inventory import InventoryRecord

INFINITE_DAYS = math.inf

# Ordering used when sorting by status (most severe first).
STATUS_RANK = {
    StockStatusLevel.CRITICAL: 0,
    StockStatusLevel.LOW: 1,
    StockStatusLevel.ADEQUATE: 2,
    StockStatusLevel.OVERSTOCKED: 3,
}

TREND_RANK = {
    DemandTrend.DECREASING: 0,
    DemandTrend.STABLE: 1,
    DemandTrend.INCREASING: 2,
}


def price(record: InventoryRecord) -> float:
    """unit_price, else cost, else 0."""
    if record.unit_price is not None:
        return float(record.unit_price)
    if record.cost is not None:
        return float(record.cost)
    return 0.0


def cost(record: InventoryRecord) -> float:
    return float(record.cost) if record.cost is not None else 0.0


def current_stock(record: InventoryRecord) -> int:
    return record.current_stock or 0


def sales_velocity(record: InventoryRecord) -> float:
    return float(record.sales_velocity) if record.sales_velocity is not None else 0.0


def days_until_stockout(record: InventoryRecord) -> float:
    """
    Projected days of remaining stock.

    An explicit value wins. Otherwise: 0 when out of stock, +inf when nothing
    sells, stock / velocity in every other case.
    """
    if record.days_until_stockout is not None:
        return float(record.days_until_stockout)
    stock = current_stock(record)
    if stock == 0:
        return 0.0
    velocity = sales_velocity(record)
    if velocity == 0:
        return INFINITE_DAYS
    return stock / velocity


def inventory_value(record: InventoryRecord) -> float:
    return price(record) * current_stock(record)


def reorder_threshold(record: InventoryRecord) -> int:
    """reorder_point, else minimum_stock, else 0."""
    if record.reorder_point is not None:
        return record.reorder_point
    if record.minimum_stock is not None:
        return record.minimum_stock
    return 0


def stock_status_level(record: InventoryRecord) -> StockStatusLevel:
    """Precomputed level when present, otherwise derived from stock vs thresholds."""
    if record.stock_status_level is not None:
        return record.stock_status_level

    stock = current_stock(record)
    threshold = reorder_threshold(record)
    if stock == 0 or stock < threshold:
        return StockStatusLevel.CRITICAL
    if stock <= threshold * 2:
        return StockStatusLevel.LOW
    if record.maximum_stock is not None:
        return StockStatusLevel.OVERSTOCKED if stock > record.maximum_stock else StockStatusLevel.ADEQUATE
    if threshold > 0 and stock > threshold * 5:
        return StockStatusLevel.OVERSTOCKED
    return StockStatusLevel.ADEQUATE


def demand_trend(record: InventoryRecord) -> DemandTrend:
    return record.demand_trend or DemandTrend.STABLE


def needs_reorder(record: InventoryRecord) -> bool:
    if record.reorder_recommended:
        return True
    return record.reorder_point is not None and current_stock(record) <= record.reorder_point


def is_manufactured(record: InventoryRecord, manufacturing_vendors: frozenset[str]) -> bool:
    """True when the vendor is one of the (case-folded) manufacturing vendors."""
    if not record.vendor:
        return False
    return record.vendor.casefold() in manufacturing_vendors


def normalize_vendors(vendors) -> frozenset[str]:
    return frozenset(v.casefold() for v in vendors if v)


def _attribute(name: str) -> Callable[[InventoryRecord], Any]:
    def getter(record: InventoryRecord) -> Any:
        return getattr(record, name, None)

    getter.__name__ = name
    return getter


def _status_rank(record: InventoryRecord) -> int:
    return STATUS_RANK[stock_status_level(record)]


def _trend_rank(record: InventoryRecord) -> int | None:
    return TREND_RANK[record.demand_trend] if record.demand_trend is not None else None


# Sort-key accessors. Canonical fields never return None; plain attributes may.
SORT_ACCESSORS: dict[str, Callable[[InventoryRecord], Any]] = {
    "sku": _attribute("sku"),
    "display_name": _attribute("display_name"),
    "current_stock": current_stock,
    "minimum_stock": _attribute("minimum_stock"),
    "maximum_stock": _attribute("maximum_stock"),
    "reorder_point": _attribute("reorder_point"),
    "price": price,
    "unit_price": _attribute("unit_price"),
    "cost": cost,
    "vendor": _attribute("vendor"),
    "location": _attribute("location"),
    "sales_velocity": sales_velocity,
    "days_until_stockout": days_until_stockout,
    "inventory_value": inventory_value,
    "stock_status_level": _status_rank,
    "demand_trend": _trend_rank,
    "reorder_recommended": _attribute("reorder_recommended"),
    "hidden": _attribute("hidden"),
    "last_updated": _attribute("last_updated"),
}
