"""
Configuration classes for the inventory view.
Defines pagination, debounce, sorting and alerting parameters in a type-safe, extensible way.
"""

import os
from dataclasses import dataclass, field

from utils.env import load_project_dotenv


def _env_list(name: str) -> list[str] | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class ViewConfig:
    default_page_size: int = 50
    fetch_page_size: int = 1000  # page size used when loading the working set
    debounce_seconds: float = 0.3  # search keystroke window
    default_sort_field: str = "display_name"
    default_sort_direction: str = "asc"
    manufacturing_vendors: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "ViewConfig":
        """Build a config from INVENTORY_VIEW_* variables (project .env is loaded first)."""
        load_project_dotenv()
        defaults = cls()
        vendors = _env_list("INVENTORY_VIEW_MANUFACTURING_VENDORS")
        return cls(
            default_page_size=int(os.getenv("INVENTORY_VIEW_PAGE_SIZE", defaults.default_page_size)),
            fetch_page_size=int(os.getenv("INVENTORY_VIEW_FETCH_PAGE_SIZE", defaults.fetch_page_size)),
            debounce_seconds=float(os.getenv("INVENTORY_VIEW_DEBOUNCE_SECONDS", defaults.debounce_seconds)),
            default_sort_field=os.getenv("INVENTORY_VIEW_SORT_FIELD", defaults.default_sort_field),
            default_sort_direction=os.getenv("INVENTORY_VIEW_SORT_DIRECTION", defaults.default_sort_direction),
            manufacturing_vendors=vendors if vendors is not None else defaults.manufacturing_vendors,
        )


@dataclass
class AlertConfig:
    capacity: int = 10  # alerts kept in the rolling buffer
    critical_stockout_days: float = 7.0
    high_urgency_days: float = 14.0  # low_stock below this is HIGH, otherwise MEDIUM

    @classmethod
    def from_env(cls) -> "AlertConfig":
        """Build a config from INVENTORY_ALERT_* variables (project .env is loaded first)."""
        load_project_dotenv()
        defaults = cls()
        return cls(
            capacity=int(os.getenv("INVENTORY_ALERT_CAPACITY", defaults.capacity)),
            critical_stockout_days=float(
                os.getenv("INVENTORY_ALERT_CRITICAL_DAYS", defaults.critical_stockout_days)
            ),
            high_urgency_days=float(os.getenv("INVENTORY_ALERT_HIGH_URGENCY_DAYS", defaults.high_urgency_days)),
        )


# Example usage:
# view_config = ViewConfig.from_env()
# alert_config = AlertConfig(capacity=20)
