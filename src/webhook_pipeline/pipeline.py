import json
import logging
import time
from datetime import timedelta

from src.config.settings import ConfigProvider, validate_webhook_configuration
from src.models.payment import WebhookType
from src.models.result import FailureReason, WebhookProcessingResult
from src.observability.audit import AuditSink, SecurityLevel
from src.webhook_pipeline.classifier import WebhookClassifier
from src.webhook_pipeline.errors import PayloadStructureError, UnexpectedFault, WebhookError, error_for
from src.webhook_pipeline.handlers import DomainHandlers
from src.webhook_pipeline.validator import PayloadValidator
from src.webhook_pipeline.verifier import SignatureVerifier

logger = logging.getLogger(__name__)

TIMESTAMP_HEADER = "x-webhook-timestamp"


def _header(headers: dict, name: str) -> str | None:
    for key, value in headers.items():
        if str(key).lower() == name:
            return value
    return None


class WebhookPipeline:
    """Authenticates, validates and classifies inbound payment gateway webhooks.

    ``process`` runs signature and timestamp verification, payload validation and
    classification in that order and stops at the first failing stage. It
    never raises: every outcome, including unexpected faults, is returned as
    a WebhookProcessingResult. The pipeline keeps no state between calls;
    the secret is read from the config provider once, at construction.
    """

    def __init__(
        self,
        config: ConfigProvider,
        audit: AuditSink,
        handlers: DomainHandlers,
        verifier: SignatureVerifier | None = None,
        validator: PayloadValidator | None = None,
        classifier: WebhookClassifier | None = None,
    ):
        self.config = config
        self.audit = audit
        self.verifier = verifier or SignatureVerifier()
        self.validator = validator or PayloadValidator()
        self.classifier = classifier or WebhookClassifier(handlers)
        self._secret = config.webhook_secret
        self._timestamp_tolerance = config.webhook_timestamp_tolerance_seconds
        self._config_outcome = validate_webhook_configuration(config)

    def process(self, payload: dict, signature: str, headers: dict) -> WebhookProcessingResult:
        try:
            return self._process(payload, signature or "", headers or {})
        except WebhookError as e:
            return e.to_result()
        except Exception as e:
            logger.exception("Webhook processing failed")
            try:
                payload_keys = sorted(str(k) for k in payload)
            except TypeError:
                payload_keys = []
            self._security_event(
                "webhook_processing_error",
                SecurityLevel.ERROR,
                "Webhook processing failed",
                {"error": str(e), "payload_keys": payload_keys},
            )
            return UnexpectedFault(f"Webhook processing failed: {e}", details=[str(e)]).to_result()

    def _process(self, payload: dict, signature: str, headers: dict) -> WebhookProcessingResult:
        self._security_event(
            "webhook_received",
            SecurityLevel.INFO,
            "Webhook payload received",
            {
                "payload_size": len(json.dumps(payload, separators=(",", ":"), default=str)),
                "has_signature": bool(signature),
                "headers_count": len(headers),
            },
        )

        signature_outcome = self.verifier.verify(self._secret, payload, signature)
        if not signature_outcome.is_valid:
            self._security_event(
                "webhook_signature_invalid",
                SecurityLevel.ERROR,
                "Invalid webhook signature",
                {
                    "signature_length": len(signature),
                    "validation_errors": list(signature_outcome.errors),
                },
            )
            raise error_for(
                signature_outcome.reason or FailureReason.SIGNATURE_MISMATCH,
                "Invalid webhook signature",
                details=signature_outcome.errors,
            )

        timestamp = _header(headers, TIMESTAMP_HEADER)
        timestamp_outcome = self.verifier.check_timestamp(timestamp, self._timestamp_tolerance)
        if not timestamp_outcome.is_valid:
            self._security_event(
                "webhook_timestamp_invalid",
                SecurityLevel.ERROR,
                "Webhook timestamp rejected",
                {"timestamp": timestamp, "validation_errors": list(timestamp_outcome.errors)},
            )
            raise error_for(
                timestamp_outcome.reason, "Invalid webhook timestamp", details=timestamp_outcome.errors,
            )

        payload_outcome = self.validator.validate(payload)
        if not payload_outcome.is_valid:
            self._security_event(
                "webhook_payload_invalid",
                SecurityLevel.WARNING,
                "Invalid webhook payload structure",
                {"validation_errors": list(payload_outcome.errors)},
            )
            raise PayloadStructureError("Invalid webhook payload", details=payload_outcome.errors)
        if payload_outcome.warnings:
            self._security_event(
                "webhook_payload_warning",
                SecurityLevel.WARNING,
                "Webhook payload accepted with warnings",
                {"warnings": list(payload_outcome.warnings)},
            )

        start = time.monotonic()
        classification = self.classifier.classify(payload)
        duration = timedelta(seconds=time.monotonic() - start)

        order_id = str(payload["order_id"])
        webhook_type = str(payload["type"])
        payment_id = payload.get("cf_payment_id")
        payment_id = str(payment_id) if payment_id is not None else None

        self._payment_event(
            "webhook_processed",
            payment_id=payment_id or "unknown",
            order_id=order_id,
            status=classification.normalized_status,
            metadata={
                "webhook_type": webhook_type,
                "handler": classification.handler_outcome.handler,
                "processing_time_ms": duration.total_seconds() * 1000,
            },
        )

        return WebhookProcessingResult(
            success=True,
            order_id=order_id,
            payment_id=payment_id,
            webhook_type=webhook_type,
            order_status=str(payload["order_status"]),
            normalized_status=classification.normalized_status.value,
            processing_duration=duration,
        )

    def _security_event(self, event_type, level, description, details) -> None:
        try:
            self.audit.log_security_event(event_type, level, description, details)
        except Exception:
            logger.exception("Audit sink failed to record security event %s", event_type)

    def _payment_event(self, event_type, payment_id, order_id, status, metadata) -> None:
        try:
            self.audit.log_payment_event(event_type, payment_id, order_id, status, metadata)
        except Exception:
            logger.exception("Audit sink failed to record payment event %s", event_type)

    def get_webhook_configuration(self) -> dict:
        """Settings to enter in the gateway dashboard."""
        return {
            "webhook_url": self.config.webhook_url,
            "webhook_version": self.config.webhook_version,
            "webhook_secret_configured": bool(self._secret),
            "supported_events": WebhookType.values(),
            "retry_configuration": {
                "max_retries": self.config.max_webhook_retries,
                "timeout_seconds": self.config.webhook_timeout_seconds,
            },
            "timestamp_tolerance_seconds": self._timestamp_tolerance,
        }

    def get_webhook_status(self) -> dict:
        return {
            "is_configured": self._config_outcome.is_valid,
            "webhook_url": self.config.webhook_url,
            "webhook_secret_set": bool(self._secret),
            "is_production": self.config.is_production,
        }
