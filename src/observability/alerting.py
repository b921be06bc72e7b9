import logging
import threading

from src.observability.audit import AuditSink, SecurityLevel
from src.observability.metrics import WebhookMetrics

logger = logging.getLogger(__name__)


class AlertManager:
    """Fires an alert when the webhook rejection rate exceeds a threshold.

    An alert fires once per breach; it re-arms after the rate drops back to
    or below the threshold. A burst of invalid signatures usually means a
    rotated secret or somebody probing the endpoint.
    """

    def __init__(
        self,
        metrics: WebhookMetrics,
        threshold: float = 0.10,
        min_samples: int = 1,
        audit: AuditSink | None = None,
        callback=None,
    ):
        self.metrics = metrics
        self.threshold = threshold
        self.min_samples = min_samples
        self.audit = audit
        self.callback = callback
        self._fired = False
        self._alerts: list[dict] = []
        self._lock = threading.Lock()

    def check(self) -> dict | None:
        """Return the alert dict if one fires now, otherwise None.

        Safe to call from concurrent request threads; a breach fires exactly
        one alert.
        """
        with self._lock:
            alert = self._evaluate()
        if alert is None:
            return None

        logger.warning(alert["message"])
        if self.audit is not None:
            self.audit.log_security_event(
                "webhook_rejection_rate",
                SecurityLevel.CRITICAL,
                alert["message"],
                {k: v for k, v in alert.items() if k not in ("type", "message")},
            )
        if self.callback:
            self.callback(alert)

        return alert

    def _evaluate(self) -> dict | None:
        total = self.metrics.total_in_window()
        if total == 0 or total < self.min_samples:
            return None

        rate = self.metrics.rejection_rate()
        if rate <= self.threshold:
            self._fired = False
            return None

        if self._fired:
            return None

        rejected = self.metrics.rejected_in_window()
        alert = {
            "type": "webhook_rejection_rate",
            "rejection_rate": rate,
            "threshold": self.threshold,
            "total_webhooks": total,
            "rejected_webhooks": rejected,
            "rejections_by_reason": self.metrics.rejections_by_reason(),
            "message": (
                f"Webhook rejection rate {rate:.1%} exceeds "
                f"threshold {self.threshold:.1%} "
                f"({rejected}/{total} webhooks rejected)"
            ),
        }
        self._fired = True
        self._alerts.append(alert)
        return alert

    def get_alerts(self) -> list[dict]:
        with self._lock:
            return list(self._alerts)

    def reset(self) -> None:
        with self._lock:
            self._fired = False
            self._alerts.clear()
