from src.models.result import FailureReason, WebhookProcessingResult


class WebhookError(Exception):
    """Base class for webhook failures. Each subclass carries its failure reason."""

    reason = FailureReason.UNEXPECTED_FAULT

    def __init__(self, message: str, details: list[str] | tuple[str, ...] | None = None):
        super().__init__(message)
        self.details = tuple(details) if details is not None else None

    def to_result(self) -> WebhookProcessingResult:
        return WebhookProcessingResult.failed(str(self), reason=self.reason, details=self.details)


class ConfigurationError(WebhookError):
    """Webhook secret or URL missing or malformed. Needs an operator fix."""

    reason = FailureReason.CONFIGURATION

    @property
    def errors(self) -> list[str]:
        return list(self.details) if self.details else [str(self)]


class InputError(WebhookError):
    reason = FailureReason.INPUT


class SignatureMismatchError(WebhookError):
    reason = FailureReason.SIGNATURE_MISMATCH


class PayloadStructureError(WebhookError):
    reason = FailureReason.PAYLOAD_STRUCTURE


class UnexpectedFault(WebhookError):
    reason = FailureReason.UNEXPECTED_FAULT


_ERRORS_BY_REASON = {
    cls.reason: cls
    for cls in (
        ConfigurationError,
        InputError,
        SignatureMismatchError,
        PayloadStructureError,
        UnexpectedFault,
    )
}


def error_for(reason: FailureReason | None, message: str, details=None) -> WebhookError:
    """Build the exception matching a failure reason."""
    cls = _ERRORS_BY_REASON.get(reason, UnexpectedFault)
    return cls(message, details=details)
