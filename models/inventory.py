"""
Inventory data models for the inventory view.
Includes the InventoryRecord handled by every stage of the view pipeline.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .enums import DemandTrend, StockStatusLevel


class InventoryRecord(BaseModel):
    """
    A single inventory item as known to the client.

    Records are immutable; every change arrives as a whole new record through
    a change event (or an optimistic mutation modeled as one).
    Derived fields (sales_velocity, days_until_stockout, stock_status_level)
    may be absent, in which case the field accessors supply the defaults.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    sku: str
    display_name: str = Field(
        default="", validation_alias=AliasChoices("display_name", "product_name", "name")
    )
    current_stock: int = Field(default=0, ge=0)
    minimum_stock: int | None = Field(default=None, ge=0)
    maximum_stock: int | None = Field(default=None, ge=0)
    reorder_point: int | None = Field(default=None, ge=0)
    unit_price: float | None = Field(default=None, ge=0)
    cost: float | None = Field(default=None, ge=0)
    vendor: str | None = None
    location: str | None = None
    sales_velocity: float | None = Field(default=None, ge=0)  # units/day
    days_until_stockout: float | None = Field(default=None, ge=0)
    stock_status_level: StockStatusLevel | None = None
    demand_trend: DemandTrend | None = None
    reorder_recommended: bool = False
    hidden: bool = False
    last_updated: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _check_stock_bounds(self) -> "InventoryRecord":
        if (
            self.maximum_stock is not None
            and self.minimum_stock is not None
            and self.maximum_stock < self.minimum_stock
        ):
            raise ValueError(
                f"maximum_stock ({self.maximum_stock}) must be >= minimum_stock ({self.minimum_stock})"
            )
        return self

    def with_changes(self, **changes: Any) -> "InventoryRecord":
        """Return a validated copy with `changes` applied and last_updated bumped."""
        changes.setdefault("last_updated", datetime.now())
        return InventoryRecord.model_validate({**self.model_dump(), **changes})
