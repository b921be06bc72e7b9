from .payment import OrderStatus, PaymentStatus, WebhookType
from .result import FailureReason, WebhookProcessingResult
from .webhook import SignatureContext, ValidationOutcome, WebhookEvent
from .delivery import DeliveryAttempt, DeliveryStatus

__all__ = [
    "OrderStatus", "PaymentStatus", "WebhookType",
    "FailureReason", "WebhookProcessingResult",
    "SignatureContext", "ValidationOutcome", "WebhookEvent",
    "DeliveryAttempt", "DeliveryStatus",
]
