"""
Critical stock alert derivation, deduplication and throttling.
"""

import logging
import math
from collections import deque
from collections.abc import Callable, Iterable

from config.config import AlertConfig
from models.alerts import CriticalAlert
from models.enums import AlertType, Urgency
from models.inventory import InventoryRecord
from utils.event_bus import ChangeFeed, Subscription

from . import accessors

# Define a logger for this module
logger = logging.getLogger(__name__)

AlertKey = tuple[str, AlertType]


def derive_conditions(
    record: InventoryRecord, config: AlertConfig
) -> list[tuple[AlertType, Urgency, str]]:
    """
    Alert-worthy conditions for one record, at most one per alert type:
    - out_of_stock: stock is 0 (critical)
    - low_stock: 0 < stock <= reorder_point (high below `high_urgency_days` of supply, else medium)
    - critical_stockout: still in stock but fewer than `critical_stockout_days` of supply (critical)
    """
    stock = accessors.current_stock(record)
    days = accessors.days_until_stockout(record)
    name = record.display_name or record.sku
    label = f"{name} ({record.sku})"
    conditions: list[tuple[AlertType, Urgency, str]] = []

    if stock == 0:
        conditions.append((AlertType.OUT_OF_STOCK, Urgency.CRITICAL, f"{label} is out of stock"))
        return conditions

    if record.reorder_point is not None and stock <= record.reorder_point:
        urgency = Urgency.HIGH if days < config.high_urgency_days else Urgency.MEDIUM
        conditions.append(
            (
                AlertType.LOW_STOCK,
                urgency,
                f"{label} is low on stock: {stock} left (reorder point {record.reorder_point})",
            )
        )

    if math.isfinite(days) and days < config.critical_stockout_days:
        conditions.append(
            (AlertType.CRITICAL_STOCKOUT, Urgency.CRITICAL, f"{label} will stock out in {days:.1f} days")
        )
    return conditions


class AlertMonitor:
    """
    Scans the reconciled collection and keeps a bounded, newest-first alert buffer.

    A (record, alert type) pair fires once and stays quiet while its condition
    persists, acknowledged or not; it can fire again only after a scan sees
    the condition cleared.
    """

    def __init__(self, config: AlertConfig | None = None):
        self.config = config or AlertConfig()
        self._buffer: deque[CriticalAlert] = deque(maxlen=max(1, self.config.capacity))
        # Pairs whose condition held on the last scan and already raised an alert
        self._active: set[AlertKey] = set()
        self._listeners: ChangeFeed[CriticalAlert] = ChangeFeed("critical-alerts")
        logger.info(f"Initialized alert monitor (capacity {self._buffer.maxlen})")

    @property
    def alerts(self) -> tuple[CriticalAlert, ...]:
        """Current buffer, newest first."""
        return tuple(self._buffer)

    @property
    def unacknowledged_count(self) -> int:
        return sum(1 for alert in self._buffer if not alert.acknowledged)

    def on_alert(self, callback: Callable[[CriticalAlert], None]) -> Subscription:
        """Register a callback for every newly raised alert."""
        return self._listeners.subscribe(callback)

    def scan(self, records: Iterable[InventoryRecord]) -> list[CriticalAlert]:
        """Run one evaluation pass. Returns the alerts raised by this pass."""
        current: dict[AlertKey, tuple[InventoryRecord, Urgency, str]] = {}
        for record in records:
            try:
                conditions = derive_conditions(record, self.config)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping alert checks for malformed record {getattr(record, 'id', '?')}: {e}")
                continue
            for alert_type, urgency, message in conditions:
                current[(record.id, alert_type)] = (record, urgency, message)

        cleared = self._active - current.keys()
        if cleared:
            logger.debug(f"{len(cleared)} alert condition(s) cleared")
        self._active -= cleared

        pending = {alert.key for alert in self._buffer if not alert.acknowledged}
        raised: list[CriticalAlert] = []
        for key, (record, urgency, message) in current.items():
            if key in self._active or key in pending:
                self._active.add(key)
                continue
            alert = CriticalAlert(
                record_id=record.id,
                sku=record.sku,
                alert_type=key[1],
                urgency=urgency,
                message=message,
            )
            self._buffer.appendleft(alert)
            self._active.add(key)
            raised.append(alert)
            logger.warning(f"ALERT [{alert.urgency.value}] {alert.alert_type.value}: {alert.message}")

        for alert in raised:
            self._listeners.publish(alert)
        return raised

    def acknowledge(self, alert_id: str) -> bool:
        """Mark an alert acknowledged. Returns False when unknown or already acknowledged."""
        for index, alert in enumerate(self._buffer):
            if alert.id != alert_id:
                continue
            if alert.acknowledged:
                return False
            self._buffer[index] = alert.model_copy(update={"acknowledged": True})
            logger.info(f"Alert {alert_id} acknowledged")
            return True
        logger.debug(f"Acknowledge for unknown alert {alert_id} ignored")
        return False

    def clear(self) -> None:
        """Empty the buffer. Conditions still holding stay throttled."""
        self._buffer.clear()
