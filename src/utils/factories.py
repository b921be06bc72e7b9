import uuid
from datetime import datetime, timezone

from src.models.webhook import WebhookEvent


class WebhookFactory:
    """Factory for creating Cashfree-style WebhookEvent instances with sensible defaults."""

    @staticmethod
    def create_event(event_type: str = "PAYMENT_SUCCESS_WEBHOOK", **overrides) -> WebhookEvent:
        order_id = overrides.pop("order_id", f"order_{uuid.uuid4().hex[:12]}")
        now = datetime.now(timezone.utc)

        payload = WebhookFactory.build_payload(event_type, order_id, now, **overrides)
        payload_overrides = overrides.pop("payload", None)
        if payload_overrides:
            payload.update(payload_overrides)

        defaults = {
            "event_id": f"evt_{uuid.uuid4().hex[:16]}",
            "event_type": event_type,
            "timestamp": now,
            "payload": payload,
            "signature": "",
        }
        for key in list(overrides):
            if key in defaults:
                defaults[key] = overrides.pop(key)

        return WebhookEvent(**defaults)

    @staticmethod
    def build_payload(event_type: str, order_id: str, timestamp: datetime, **kwargs) -> dict:
        base = {
            "type": event_type,
            "order_id": order_id,
            "order_status": kwargs.get("order_status", _event_type_to_order_status(event_type)),
            "order_amount": kwargs.get("order_amount", "500.00"),
            "order_currency": kwargs.get("order_currency", "INR"),
            "event_time": timestamp.isoformat(),
        }

        if event_type == "PAYMENT_SUCCESS_WEBHOOK":
            base["cf_payment_id"] = kwargs.get("cf_payment_id", f"cf_{uuid.uuid4().hex[:10]}")
            base["payment_status"] = "SUCCESS"
            base["payment_amount"] = kwargs.get("payment_amount", base["order_amount"])
            base["payment_group"] = kwargs.get("payment_group", "upi")
        elif event_type == "PAYMENT_FAILED_WEBHOOK":
            base["cf_payment_id"] = kwargs.get("cf_payment_id", f"cf_{uuid.uuid4().hex[:10]}")
            base["payment_status"] = "FAILED"
            base["failure_reason"] = kwargs.get("failure_reason", "Transaction declined by bank")
        elif event_type == "PAYMENT_USER_DROPPED_WEBHOOK":
            base["payment_status"] = "USER_DROPPED"

        return base


def _event_type_to_order_status(event_type: str) -> str:
    mapping = {
        "PAYMENT_SUCCESS_WEBHOOK": "PAID",
        "PAYMENT_FAILED_WEBHOOK": "EXPIRED",
        "PAYMENT_USER_DROPPED_WEBHOOK": "ACTIVE",
    }
    return mapping.get(event_type, "ACTIVE")
