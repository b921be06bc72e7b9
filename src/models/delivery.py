from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DeliveryStatus(Enum):
    DELIVERED = "DELIVERED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


@dataclass
class DeliveryAttempt:
    attempt_id: str
    event_id: str
    url: str
    status_code: int | None
    timestamp: datetime
    response_time_ms: float
    error: str | None = None

    @property
    def status(self) -> DeliveryStatus:
        if self.status_code is None or self.status_code >= 500:
            return DeliveryStatus.FAILED
        if 200 <= self.status_code < 300:
            return DeliveryStatus.DELIVERED
        return DeliveryStatus.REJECTED
