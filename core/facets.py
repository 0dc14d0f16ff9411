"""
Facet counts and aggregate summary over a set of records.

Records are projected into a pandas DataFrame of canonical accessor values,
so every count here agrees with what the filter evaluator would select.
"""

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd

from models.enums import DemandTrend, StockStatusLevel, VelocityBucket
from models.inventory import InventoryRecord

from . import accessors
from .filters import velocity_bucket

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "id",
    "sku",
    "vendor",
    "location",
    "current_stock",
    "reorder_point",
    "price",
    "sales_velocity",
    "days_until_stockout",
    "inventory_value",
    "status",
    "velocity_bucket",
    "demand_trend",
    "needs_reorder",
]


@dataclass(frozen=True)
class ViewSummary:
    total_items: int = 0
    total_value: float = 0.0
    out_of_stock: int = 0
    low_stock: int = 0
    reorder_needed: int = 0
    average_velocity: float = 0.0
    median_days_of_supply: float | None = None  # finite, in-stock records only

    def to_dict(self) -> dict:
        return asdict(self)


def _row(record: InventoryRecord) -> dict:
    velocity = accessors.sales_velocity(record)
    return {
        "id": record.id,
        "sku": record.sku,
        "vendor": record.vendor,
        "location": record.location,
        "current_stock": accessors.current_stock(record),
        "reorder_point": record.reorder_point,
        "price": accessors.price(record),
        "sales_velocity": velocity,
        "days_until_stockout": accessors.days_until_stockout(record),
        "inventory_value": accessors.inventory_value(record),
        "status": accessors.stock_status_level(record).value,
        "velocity_bucket": velocity_bucket(velocity).value,
        "demand_trend": accessors.demand_trend(record).value,
        "needs_reorder": accessors.needs_reorder(record),
    }


def records_frame(records: Iterable[InventoryRecord]) -> pd.DataFrame:
    """One row per record; malformed records are skipped with a warning."""
    rows = []
    for record in records:
        try:
            rows.append(_row(record))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping malformed record {getattr(record, 'id', '<unknown>')} in facets: {e}")
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def _unique_text(frame: pd.DataFrame, column: str) -> list[str]:
    values = frame[column].dropna()
    values = values[values.astype(str).str.strip() != ""]
    return sorted(values.unique().tolist(), key=str.casefold)


def unique_vendors(records: Iterable[InventoryRecord]) -> list[str]:
    return _unique_text(records_frame(records), "vendor")


def unique_locations(records: Iterable[InventoryRecord]) -> list[str]:
    return _unique_text(records_frame(records), "location")


def status_counts(records: Iterable[InventoryRecord]) -> dict[str, int]:
    """Counts keyed by status filter value ("all", "out-of-stock", "in-stock", each level)."""
    frame = records_frame(records)
    levels = frame["status"].value_counts()
    counts = {
        "all": len(frame),
        "out-of-stock": int((frame["current_stock"] == 0).sum()),
        "in-stock": int((frame["current_stock"] > 0).sum()),
    }
    for level in StockStatusLevel:
        counts[level.value] = int(levels.get(level.value, 0))
    return counts


def velocity_counts(records: Iterable[InventoryRecord]) -> dict[str, int]:
    buckets = records_frame(records)["velocity_bucket"].value_counts()
    return {
        bucket.value: int(buckets.get(bucket.value, 0))
        for bucket in VelocityBucket
        if bucket != VelocityBucket.ALL
    }


def trend_counts(records: Iterable[InventoryRecord]) -> dict[str, int]:
    trends = records_frame(records)["demand_trend"].value_counts()
    return {trend.value: int(trends.get(trend.value, 0)) for trend in DemandTrend}


def summarize(records: Iterable[InventoryRecord]) -> ViewSummary:
    """Aggregate stock, value and supply figures for a set of records."""
    frame = records_frame(records)
    if frame.empty:
        return ViewSummary()

    stock = frame["current_stock"].astype(float)
    reorder_point = frame["reorder_point"].astype(float)
    low_stock = (stock > 0) & reorder_point.notna() & (stock <= reorder_point)

    days = frame.loc[stock > 0, "days_until_stockout"].to_numpy(dtype=float)
    finite_days = days[np.isfinite(days)]
    median_days = float(np.median(finite_days)) if finite_days.size else None

    return ViewSummary(
        total_items=len(frame),
        total_value=round(float(frame["inventory_value"].sum()), 2),
        out_of_stock=int((stock == 0).sum()),
        low_stock=int(low_stock.sum()),
        reorder_needed=int(frame["needs_reorder"].sum()),
        average_velocity=float(np.mean(frame["sales_velocity"].to_numpy(dtype=float))),
        median_days_of_supply=median_days,
    )
