from src.models.payment import OrderStatus, WebhookType
from src.models.result import FailureReason
from src.models.webhook import ValidationOutcome


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class PayloadValidator:
    """Structural checks on an inbound webhook body.

    Missing required fields are fatal and all of them are reported; null and
    blank strings count as missing. Unknown webhook types and order statuses
    are only warnings so that new gateway events still flow through the
    pipeline. Order statuses are matched case-insensitively.
    """

    REQUIRED_FIELDS = ("type", "order_id", "order_status")
    KNOWN_TYPES = frozenset(WebhookType.values())
    KNOWN_STATUSES = frozenset(status.value for status in OrderStatus)

    def validate(self, payload: dict) -> ValidationOutcome:
        errors: list[str] = []
        warnings: list[str] = []

        for field in self.REQUIRED_FIELDS:
            if _is_blank(payload.get(field)):
                errors.append(f"Missing required field: {field}")

        webhook_type = payload.get("type")
        if not _is_blank(webhook_type) and str(webhook_type) not in self.KNOWN_TYPES:
            warnings.append(f"Unknown webhook type: {webhook_type}")

        order_status = payload.get("order_status")
        if not _is_blank(order_status) and str(order_status).upper() not in self.KNOWN_STATUSES:
            warnings.append(f"Unknown order status: {order_status}")

        return ValidationOutcome.from_findings(
            errors, warnings, reason=FailureReason.PAYLOAD_STRUCTURE,
        )
