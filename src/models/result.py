from dataclasses import dataclass
from datetime import timedelta
from enum import Enum


class FailureReason(Enum):
    CONFIGURATION = "configuration"
    INPUT = "input"
    SIGNATURE_MISMATCH = "signature_mismatch"
    PAYLOAD_STRUCTURE = "payload_structure"
    UNEXPECTED_FAULT = "unexpected_fault"


@dataclass(frozen=True)
class WebhookProcessingResult:
    """Terminal outcome of processing one inbound webhook.

    A successful result always names the webhook type and order; a failed one
    always carries an error message and, where known, the failure reason.
    """

    success: bool
    error: str | None = None
    details: tuple[str, ...] | None = None
    order_id: str | None = None
    payment_id: str | None = None
    webhook_type: str | None = None
    order_status: str | None = None
    normalized_status: str | None = None
    processing_duration: timedelta | None = None
    reason: FailureReason | None = None

    def __post_init__(self):
        if self.success:
            if not self.webhook_type or not self.order_id:
                raise ValueError("successful result requires webhook_type and order_id")
        elif not self.error:
            raise ValueError("failed result requires an error message")

    @classmethod
    def failed(
        cls,
        error: str,
        reason: FailureReason,
        details: list[str] | tuple[str, ...] | None = None,
    ) -> "WebhookProcessingResult":
        return cls(
            success=False,
            error=error,
            details=tuple(details) if details is not None else None,
            reason=reason,
        )

    def to_dict(self) -> dict:
        duration_ms = None
        if self.processing_duration is not None:
            duration_ms = self.processing_duration // timedelta(milliseconds=1)
        return {
            "success": self.success,
            "error": self.error,
            "details": list(self.details) if self.details is not None else None,
            "orderId": self.order_id,
            "paymentId": self.payment_id,
            "webhookType": self.webhook_type,
            "orderStatus": self.order_status,
            "normalizedStatus": self.normalized_status,
            "processingTimeMs": duration_ms,
            "reason": self.reason.value if self.reason else None,
        }
