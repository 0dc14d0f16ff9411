"""
Named quick-filter presets.

A preset is a partial FilterConfig merged on top of the current config.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from models.enums import SourceType, StatusFilter, StockDaysBucket, VelocityBucket
from models.inventory import InventoryRecord
from models.query import FilterConfig

from .filters import DEFAULT_FILTER_CONFIG, filter_records


@dataclass(frozen=True)
class QuickFilter:
    id: str
    label: str
    changes: dict[str, Any] = field(default_factory=dict)

    def apply_to(self, config: FilterConfig) -> FilterConfig:
        return config.with_updates(**self.changes)


PRESET_FILTERS: tuple[QuickFilter, ...] = (
    QuickFilter("out-of-stock", "Out of Stock", {"status": StatusFilter.OUT_OF_STOCK}),
    QuickFilter("low-stock", "Low Stock", {"status": StatusFilter.LOW}),
    QuickFilter("reorder-needed", "Reorder Needed", {"reorder_needed": True}),
    QuickFilter("overstocked", "Overstocked", {"status": StatusFilter.OVERSTOCKED}),
    QuickFilter(
        "fast-moving",
        "Fast Moving",
        {"status": StatusFilter.IN_STOCK, "sales_velocity": VelocityBucket.FAST},
    ),
    QuickFilter(
        "dead-stock",
        "Dead Stock",
        {"status": StatusFilter.IN_STOCK, "sales_velocity": VelocityBucket.DEAD, "has_value": True},
    ),
    QuickFilter("high-value", "High Value", {"price_range": {"min": 100}, "has_value": True}),
    QuickFilter("low-value", "Low Value", {"price_range": {"min": 0, "max": 50}}),
    QuickFilter(
        "critical-stock",
        "Critical Stock",
        {"status": StatusFilter.CRITICAL, "stock_days": StockDaysBucket.UNDER_30},
    ),
    QuickFilter("manufactured", "Manufactured", {"source_type": SourceType.MANUFACTURED}),
    QuickFilter(
        "purchased",
        "Supplier Materials",
        {"source_type": SourceType.PURCHASED},
    ),
)

_PRESETS_BY_ID = {preset.id: preset for preset in PRESET_FILTERS}


def get_preset(preset_id: str) -> QuickFilter:
    try:
        return _PRESETS_BY_ID[preset_id]
    except KeyError:
        raise KeyError(f"Unknown preset filter: {preset_id!r}") from None


def preset_counts(
    records: Iterable[InventoryRecord],
    manufacturing_vendors: Iterable[str] = (),
) -> dict[str, int]:
    """Count matches for every preset applied on top of the default config."""
    records = list(records)
    vendors = list(manufacturing_vendors)
    return {
        preset.id: len(filter_records(records, preset.apply_to(DEFAULT_FILTER_CONFIG), vendors))
        for preset in PRESET_FILTERS
    }
