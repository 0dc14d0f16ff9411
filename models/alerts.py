"""
Data model for critical stock alerts.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from .enums import AlertType, Urgency


class CriticalAlert(BaseModel):
    """An alert raised for a record in a critical stock condition"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    record_id: str
    sku: str = ""
    alert_type: AlertType
    urgency: Urgency
    message: str
    created_at: datetime = Field(default_factory=datetime.now)
    acknowledged: bool = False

    @property
    def key(self) -> tuple[str, AlertType]:
        """Dedup key: one live alert per (record, alert type)."""
        return (self.record_id, self.alert_type)
