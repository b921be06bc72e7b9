import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Protocol

from src.models.payment import PaymentStatus

logger = logging.getLogger(__name__)


class SecurityLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def log_level(self) -> int:
        return {
            SecurityLevel.INFO: logging.INFO,
            SecurityLevel.WARNING: logging.WARNING,
            SecurityLevel.ERROR: logging.ERROR,
            SecurityLevel.CRITICAL: logging.CRITICAL,
        }[self]


@dataclass
class SecurityEvent:
    event_type: str
    level: SecurityLevel
    description: str
    details: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "level": self.level.value,
            "description": self.description,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class PaymentEvent:
    event_type: str
    payment_id: str
    order_id: str
    status: PaymentStatus
    metadata: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "payment_id": self.payment_id,
            "order_id": self.order_id,
            "status": self.status.value,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditSink(Protocol):
    def log_security_event(
        self,
        event_type: str,
        level: SecurityLevel,
        description: str,
        details: dict | None = None,
    ) -> None: ...

    def log_payment_event(
        self,
        event_type: str,
        payment_id: str,
        order_id: str,
        status: PaymentStatus,
        metadata: dict | None = None,
    ) -> None: ...


class AuditLog:
    """Thread-safe, bounded in-memory audit trail that also writes to the log."""

    MAX_SECURITY_EVENTS = 500
    MAX_PAYMENT_EVENTS = 1000

    def __init__(self, on_critical: Callable[[SecurityEvent], None] | None = None):
        self._security_events: deque[SecurityEvent] = deque(maxlen=self.MAX_SECURITY_EVENTS)
        self._payment_events: deque[PaymentEvent] = deque(maxlen=self.MAX_PAYMENT_EVENTS)
        self._on_critical = on_critical
        self._lock = threading.Lock()

    def log_security_event(
        self,
        event_type: str,
        level: SecurityLevel,
        description: str,
        details: dict | None = None,
    ) -> None:
        event = SecurityEvent(
            event_type=event_type,
            level=level,
            description=description,
            details=dict(details or {}),
        )
        with self._lock:
            self._security_events.append(event)
        logger.log(level.log_level, "SecurityEvent %s: %s %s", event_type, description, event.details)

        if level is SecurityLevel.CRITICAL and self._on_critical:
            self._on_critical(event)

    def log_payment_event(
        self,
        event_type: str,
        payment_id: str,
        order_id: str,
        status: PaymentStatus,
        metadata: dict | None = None,
    ) -> None:
        event = PaymentEvent(
            event_type=event_type,
            payment_id=payment_id,
            order_id=order_id,
            status=status,
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._payment_events.append(event)
        logger.info("PaymentEvent %s: order=%s payment=%s status=%s",
                    event_type, order_id, payment_id, status.value)

    def get_security_events(self, event_type: str | None = None) -> list[SecurityEvent]:
        with self._lock:
            if event_type is None:
                return list(self._security_events)
            return [e for e in self._security_events if e.event_type == event_type]

    def get_payment_events(self, event_type: str | None = None) -> list[PaymentEvent]:
        with self._lock:
            if event_type is None:
                return list(self._payment_events)
            return [e for e in self._payment_events if e.event_type == event_type]

    def last_event_time(self, event_type: str) -> datetime | None:
        with self._lock:
            events = [*self._security_events, *self._payment_events]
        times = [e.timestamp for e in events if e.event_type == event_type]
        return max(times) if times else None

    def clear(self) -> None:
        with self._lock:
            self._security_events.clear()
            self._payment_events.clear()
