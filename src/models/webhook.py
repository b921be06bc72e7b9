from dataclasses import dataclass, field
from datetime import datetime

from src.models.result import FailureReason


@dataclass
class WebhookEvent:
    event_id: str
    event_type: str  # "PAYMENT_SUCCESS_WEBHOOK", "PAYMENT_FAILED_WEBHOOK", etc.
    timestamp: datetime
    payload: dict
    signature: str = ""


@dataclass(frozen=True)
class SignatureContext:
    """Inputs to a single signature comparison. Built per call, never stored."""

    secret: str = field(repr=False)
    claimed_signature: str
    canonical_payload: str


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    reason: FailureReason | None = None

    @classmethod
    def from_findings(
        cls,
        errors: list[str],
        warnings: list[str] | None = None,
        reason: FailureReason | None = None,
    ) -> "ValidationOutcome":
        return cls(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings or ()),
            reason=reason if errors else None,
        )

    @classmethod
    def valid(cls, warnings: list[str] | None = None) -> "ValidationOutcome":
        return cls(is_valid=True, warnings=tuple(warnings or ()))

    @classmethod
    def invalid(cls, error: str, reason: FailureReason) -> "ValidationOutcome":
        return cls(is_valid=False, errors=(error,), reason=reason)

