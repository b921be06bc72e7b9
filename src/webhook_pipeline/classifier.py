import logging
from dataclasses import dataclass

from src.models.payment import PaymentStatus, WebhookType
from src.webhook_pipeline.handlers import DomainHandlers

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    "PAID": PaymentStatus.APPROVED,
    "EXPIRED": PaymentStatus.INCOMPLETE,
    "CANCELLED": PaymentStatus.INCOMPLETE,
    "ACTIVE": PaymentStatus.PENDING,
}


def map_payment_status(raw_status) -> PaymentStatus:
    """Normalize a gateway order status. Anything unrecognized, including None, is REJECTED."""
    if raw_status is None:
        return PaymentStatus.REJECTED
    return _STATUS_MAP.get(str(raw_status).upper(), PaymentStatus.REJECTED)


@dataclass(frozen=True)
class HandlerOutcome:
    handler: str | None  # "success", "failed", "dropped", or None for unknown types
    handled: bool


@dataclass(frozen=True)
class Classification:
    normalized_status: PaymentStatus
    handler_outcome: HandlerOutcome


class WebhookClassifier:
    """Maps a validated payload to a payment status and runs the matching handler."""

    def __init__(self, handlers: DomainHandlers):
        self.handlers = handlers
        self._dispatch = {
            WebhookType.PAYMENT_SUCCESS.value: ("success", handlers.on_payment_success),
            WebhookType.PAYMENT_FAILED.value: ("failed", handlers.on_payment_failed),
            WebhookType.PAYMENT_USER_DROPPED.value: ("dropped", handlers.on_payment_dropped),
        }

    def classify(self, payload: dict) -> Classification:
        status = map_payment_status(payload.get("order_status"))
        webhook_type = payload.get("type")

        entry = self._dispatch.get(str(webhook_type))
        if entry is None:
            logger.warning("Unknown webhook type %r, skipping handlers", webhook_type)
            return Classification(status, HandlerOutcome(handler=None, handled=False))

        name, handler = entry
        handler(payload)
        return Classification(status, HandlerOutcome(handler=name, handled=True))
