import time

from src.models.webhook import SignatureContext, ValidationOutcome
from src.utils.crypto import canonicalize, compute_digest, constant_time_compare
from src.webhook_pipeline.errors import (
    ConfigurationError,
    InputError,
    SignatureMismatchError,
    WebhookError,
)

# Epoch values at or above this are milliseconds, below it seconds.
_MILLISECOND_EPOCH_FLOOR = 10**11


class SignatureVerifier:
    """Checks a claimed HMAC-SHA256 signature against the canonical payload."""

    def verify(self, secret: str, payload: dict, claimed_signature: str) -> ValidationOutcome:
        try:
            context = self._build_context(secret, payload, claimed_signature)
            self._compare(context)
        except WebhookError as e:
            return ValidationOutcome.invalid(str(e), reason=e.reason)
        return ValidationOutcome.valid()

    def check_timestamp(
        self, timestamp: str | None, tolerance_seconds: float, now: float | None = None,
    ) -> ValidationOutcome:
        """Reject deliveries whose timestamp header is unparsable or stale.

        A missing header passes, as does any value when the tolerance is 0.
        The header may carry epoch seconds or epoch milliseconds.
        """
        if timestamp is None or not tolerance_seconds:
            return ValidationOutcome.valid()
        try:
            sent_at = self._parse_timestamp(timestamp)
            now = time.time() if now is None else now
            if abs(now - sent_at) > tolerance_seconds:
                raise InputError("Webhook timestamp outside tolerance window")
        except WebhookError as e:
            return ValidationOutcome.invalid(str(e), reason=e.reason)
        return ValidationOutcome.valid()

    @staticmethod
    def _parse_timestamp(timestamp: str) -> float:
        try:
            value = int(str(timestamp).strip())
        except ValueError:
            raise InputError(f"Invalid webhook timestamp: {timestamp}") from None
        if value >= _MILLISECOND_EPOCH_FLOOR:
            return value / 1000
        return float(value)

    def _build_context(self, secret: str, payload: dict, claimed_signature: str) -> SignatureContext:
        if not secret:
            raise ConfigurationError("Webhook secret not configured")
        if not claimed_signature:
            raise InputError("Webhook signature is empty")
        return SignatureContext(
            secret=secret,
            claimed_signature=claimed_signature,
            canonical_payload=canonicalize(payload),
        )

    def _compare(self, context: SignatureContext) -> None:
        expected = compute_digest(context.canonical_payload, context.secret)
        if not constant_time_compare(context.claimed_signature, expected):
            raise SignatureMismatchError("Webhook signature mismatch")
