"""
Centralized Enum definitions for the inventory view.
"""

from enum import Enum


class StockStatusLevel(str, Enum):
    """Stock status classification attached to an inventory record"""

    CRITICAL = "critical"
    LOW = "low"
    ADEQUATE = "adequate"
    OVERSTOCKED = "overstocked"


class StatusFilter(str, Enum):
    """Status categories a user can filter on"""

    ALL = "all"
    OUT_OF_STOCK = "out-of-stock"  # current_stock == 0
    IN_STOCK = "in-stock"  # current_stock > 0
    CRITICAL = "critical"
    LOW = "low"
    ADEQUATE = "adequate"
    OVERSTOCKED = "overstocked"


class VelocityBucket(str, Enum):
    """Sales velocity buckets (units per day)"""

    ALL = "all"
    FAST = "fast"  # > 1
    MEDIUM = "medium"  # (0.1, 1]
    SLOW = "slow"  # (0, 0.1]
    DEAD = "dead"  # == 0


class StockDaysBucket(str, Enum):
    """Days-until-stockout buckets"""

    ALL = "all"
    UNDER_30 = "under-30"
    DAYS_30_60 = "30-60"
    DAYS_60_90 = "60-90"
    OVER_90 = "over-90"
    OVER_180 = "over-180"


class DemandTrend(str, Enum):
    """Direction of recent demand"""

    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class SourceType(str, Enum):
    """Whether an item is made in-house or bought from a supplier"""

    ALL = "all"
    MANUFACTURED = "manufactured"
    PURCHASED = "purchased"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ChangeKind(str, Enum):
    """Kinds of live change events"""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AlertType(str, Enum):
    """Types of critical stock alerts"""

    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    CRITICAL_STOCKOUT = "critical_stockout"


class Urgency(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConnectionStatus(str, Enum):
    """State of the live change subscription"""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
