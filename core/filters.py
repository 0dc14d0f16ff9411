"""
Filter predicate evaluator.

`evaluate(record, config)` decides whether a record passes every active
dimension of a FilterConfig (AND semantics). It is pure and total: a record
whose shape makes a predicate blow up is excluded and logged, never allowed
to abort the surrounding filter pass.
"""

import logging
import math
from collections.abc import Iterable

from models.enums import SourceType, StatusFilter, StockDaysBucket, VelocityBucket
from models.inventory import InventoryRecord
from models.query import FilterConfig, StandingFilter

from . import accessors

logger = logging.getLogger(__name__)

# (lower, upper] bounds per stock-days bucket
STOCK_DAYS_BOUNDS = {
    StockDaysBucket.UNDER_30: (0.0, 30.0),
    StockDaysBucket.DAYS_30_60: (30.0, 60.0),
    StockDaysBucket.DAYS_60_90: (60.0, 90.0),
    StockDaysBucket.OVER_90: (90.0, math.inf),
    StockDaysBucket.OVER_180: (180.0, math.inf),
}

DEFAULT_FILTER_CONFIG = FilterConfig()


def velocity_bucket(velocity: float) -> VelocityBucket:
    """Bucket a sales velocity; each bucket is closed on its upper end."""
    if velocity > 1:
        return VelocityBucket.FAST
    if velocity > 0.1:
        return VelocityBucket.MEDIUM
    if velocity > 0:
        return VelocityBucket.SLOW
    return VelocityBucket.DEAD


def in_stock_days_bucket(days: float, bucket: StockDaysBucket) -> bool:
    lower, upper = STOCK_DAYS_BOUNDS[bucket]
    if math.isinf(days):
        # Unbounded supply only ever lands in the open-ended buckets
        return math.isinf(upper)
    return lower < days <= upper


def _contains(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle in haystack.casefold()


def _matches_search(record: InventoryRecord, term: str) -> bool:
    needle = term.strip().casefold()
    if not needle:
        return True
    return any(_contains(value, needle) for value in (record.sku, record.display_name, record.vendor))


def _matches_status(record: InventoryRecord, status: StatusFilter) -> bool:
    stock = accessors.current_stock(record)
    if status == StatusFilter.OUT_OF_STOCK:
        return stock == 0
    if status == StatusFilter.IN_STOCK:
        return stock > 0
    return accessors.stock_status_level(record).value == status.value


def _matches_source(record: InventoryRecord, source_type: SourceType, manufacturing_vendors: frozenset[str]) -> bool:
    if not record.vendor:
        return False
    manufactured = accessors.is_manufactured(record, manufacturing_vendors)
    return manufactured if source_type == SourceType.MANUFACTURED else not manufactured


def _passes(record: InventoryRecord, config: FilterConfig, manufacturing_vendors: frozenset[str]) -> bool:
    if record.hidden and not config.show_hidden:
        return False

    if config.search and not _matches_search(record, config.search):
        return False

    if config.status != StatusFilter.ALL and not _matches_status(record, config.status):
        return False

    if config.vendor and not _contains(record.vendor, config.vendor.casefold()):
        return False

    if config.location and not _contains(record.location, config.location.casefold()):
        return False

    if config.source_type != SourceType.ALL and not _matches_source(
        record, config.source_type, manufacturing_vendors
    ):
        return False

    if not config.price_range.contains(accessors.price(record)):
        return False
    if not config.cost_range.contains(accessors.cost(record)):
        return False
    if not config.stock_range.contains(accessors.current_stock(record)):
        return False

    if config.sales_velocity != VelocityBucket.ALL:
        if velocity_bucket(accessors.sales_velocity(record)) != config.sales_velocity:
            return False

    if config.stock_days != StockDaysBucket.ALL:
        if not in_stock_days_bucket(accessors.days_until_stockout(record), config.stock_days):
            return False

    if config.demand_trend is not None and accessors.demand_trend(record) != config.demand_trend:
        return False

    if config.reorder_needed and not accessors.needs_reorder(record):
        return False

    if config.has_value and accessors.price(record) <= 0:
        return False

    return True


def evaluate(
    record: InventoryRecord,
    config: FilterConfig,
    manufacturing_vendors: frozenset[str] = frozenset(),
) -> bool:
    """Return True when `record` passes every active dimension of `config`."""
    try:
        return _passes(record, config, manufacturing_vendors)
    except (TypeError, ValueError, AttributeError) as e:
        record_id = getattr(record, "id", "<unknown>")
        logger.warning(f"Excluding malformed record {record_id}: {type(e).__name__}: {e}")
        return False


def filter_records(
    records: Iterable[InventoryRecord],
    config: FilterConfig,
    manufacturing_vendors: Iterable[str] = (),
) -> list[InventoryRecord]:
    """Keep the records passing `config`, preserving input order."""
    vendors = accessors.normalize_vendors(manufacturing_vendors)
    return [record for record in records if evaluate(record, config, vendors)]


def matches_standing(record: InventoryRecord, standing: StandingFilter | None) -> bool:
    """True when `record` lies inside the standing scope (None = everything)."""
    if standing is None:
        return True
    try:
        if standing.vendor and not _contains(record.vendor, standing.vendor.casefold()):
            return False
        if standing.location and not _contains(record.location, standing.location.casefold()):
            return False
        if standing.low_stock_only:
            reorder_point = record.reorder_point or 0
            if accessors.current_stock(record) > reorder_point:
                return False
        return True
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Excluding malformed record {getattr(record, 'id', '<unknown>')} from scope: {e}")
        return False


def active_filter_count(config: FilterConfig) -> int:
    """Number of dimensions of `config` that differ from the "all" default."""
    count = 0
    if config.search.strip():
        count += 1
    if config.status != StatusFilter.ALL:
        count += 1
    if config.vendor:
        count += 1
    if config.location:
        count += 1
    if config.source_type != SourceType.ALL:
        count += 1
    if config.sales_velocity != VelocityBucket.ALL:
        count += 1
    if config.stock_days != StockDaysBucket.ALL:
        count += 1
    if config.demand_trend is not None:
        count += 1
    if config.reorder_needed:
        count += 1
    if config.has_value:
        count += 1
    if config.show_hidden:
        count += 1
    for numeric_range in (config.price_range, config.cost_range, config.stock_range):
        if not numeric_range.is_unbounded:
            count += 1
    return count
