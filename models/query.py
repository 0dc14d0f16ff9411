"""
Query value objects: filter, sort and page descriptions handed to the view pipeline.
"""

import logging
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import (
    DemandTrend,
    SortDirection,
    SourceType,
    StatusFilter,
    StockDaysBucket,
    VelocityBucket,
)
from .inventory import InventoryRecord

logger = logging.getLogger(__name__)

# Logical fields accepted by SortConfig. Canonical fields (price, cost,
# sales_velocity, days_until_stockout, inventory_value) go through the field
# accessors; the rest read the record attribute as-is.
SORTABLE_FIELDS = (
    "sku",
    "display_name",
    "current_stock",
    "minimum_stock",
    "maximum_stock",
    "reorder_point",
    "price",
    "unit_price",
    "cost",
    "vendor",
    "location",
    "sales_velocity",
    "days_until_stockout",
    "inventory_value",
    "stock_status_level",
    "demand_trend",
    "reorder_recommended",
    "hidden",
    "last_updated",
)


class NumericRange(BaseModel):
    """Inclusive [min, max] range. The default is unbounded."""

    model_config = ConfigDict(frozen=True)

    min: float = 0.0
    max: float = math.inf

    @model_validator(mode="before")
    @classmethod
    def _clamp_inverted(cls, data: Any) -> Any:
        if isinstance(data, (tuple, list)) and len(data) == 2:
            data = {"min": data[0], "max": data[1]}
        if isinstance(data, dict):
            low = data.get("min", 0.0)
            high = data.get("max", math.inf)
            if low is not None and high is not None and low > high:
                logger.warning(f"Range min {low} is greater than max {high}; clamping max to {low}")
                data = {**data, "max": low}
        return data

    @property
    def is_unbounded(self) -> bool:
        return self.min <= 0 and math.isinf(self.max)

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class FilterConfig(BaseModel):
    """
    One field per filter dimension. Each field is either its "all" sentinel
    (ALL, empty string, None, False or an unbounded range) or a constraint.
    Replaced wholesale on every change; use `with_updates` to derive a new one.
    """

    model_config = ConfigDict(frozen=True)

    search: str = ""
    status: StatusFilter = StatusFilter.ALL
    vendor: str | None = None
    location: str | None = None
    source_type: SourceType = SourceType.ALL
    price_range: NumericRange = Field(default_factory=NumericRange)
    cost_range: NumericRange = Field(default_factory=NumericRange)
    stock_range: NumericRange = Field(default_factory=NumericRange)
    sales_velocity: VelocityBucket = VelocityBucket.ALL
    stock_days: StockDaysBucket = StockDaysBucket.ALL
    demand_trend: DemandTrend | None = None
    reorder_needed: bool = False
    has_value: bool = False
    show_hidden: bool = False

    def with_updates(self, **changes: Any) -> "FilterConfig":
        """Return a new config with `changes` merged in (re-validated)."""
        return FilterConfig.model_validate({**self.model_dump(), **changes})


class SortConfig(BaseModel):
    """Single active sort key and its direction."""

    model_config = ConfigDict(frozen=True)

    field: str = "display_name"
    direction: SortDirection = SortDirection.ASC

    @field_validator("field")
    @classmethod
    def _known_field(cls, value: str) -> str:
        if value not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {value!r}")
        return value

    def reversed(self) -> "SortConfig":
        direction = SortDirection.DESC if self.direction == SortDirection.ASC else SortDirection.ASC
        return SortConfig(field=self.field, direction=direction)


class StandingFilter(BaseModel):
    """
    Scope applied to every live event and resync before records reach the
    working collection. Vendor/location are case-insensitive substrings.
    """

    model_config = ConfigDict(frozen=True)

    vendor: str | None = None
    location: str | None = None
    low_stock_only: bool = False


class FetchResult(BaseModel):
    """One page returned by the fetch collaborator."""

    items: list[InventoryRecord] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class Page(BaseModel):
    """One page of the filtered, sorted view plus its bookkeeping."""

    model_config = ConfigDict(frozen=True)

    items: tuple[InventoryRecord, ...] = ()
    page: int = 1
    page_size: int = 50
    total_pages: int = 0
    total: int = 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1
