from enum import Enum


class PaymentStatus(Enum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    INCOMPLETE = "INCOMPLETE"
    REJECTED = "REJECTED"


class OrderStatus(Enum):
    """Raw order status tokens sent by the gateway."""

    PAID = "PAID"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class WebhookType(Enum):
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS_WEBHOOK"
    PAYMENT_FAILED = "PAYMENT_FAILED_WEBHOOK"
    PAYMENT_USER_DROPPED = "PAYMENT_USER_DROPPED_WEBHOOK"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]
