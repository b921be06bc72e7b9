import threading

import pytest

from src.models.result import FailureReason
from src.observability.alerting import AlertManager
from src.observability.audit import SecurityLevel
from src.observability.metrics import WebhookMetrics


class TestAlertCheck:
    """Tests for AlertManager.check()."""

    @pytest.mark.unit
    def test_check_returns_alert_when_rate_exceeds_threshold(self, metrics, alert_manager):
        metrics.record_accepted()
        metrics.record_rejected(FailureReason.SIGNATURE_MISMATCH)
        metrics.record_rejected(FailureReason.SIGNATURE_MISMATCH)
        alert = alert_manager.check()
        assert alert is not None
        assert alert["type"] == "webhook_rejection_rate"
        assert alert["rejection_rate"] == pytest.approx(2 / 3)
        assert alert["total_webhooks"] == 3
        assert alert["rejected_webhooks"] == 2
        assert alert["rejections_by_reason"] == {"signature_mismatch": 2}
        assert "66.7%" in alert["message"]

    @pytest.mark.unit
    def test_check_returns_none_when_rate_below_threshold(self, metrics, alert_manager):
        for _ in range(10):
            metrics.record_accepted()
        assert alert_manager.check() is None

    @pytest.mark.unit
    def test_min_samples(self, metrics):
        am = AlertManager(metrics=metrics, threshold=0.10, min_samples=5)
        metrics.record_rejected(FailureReason.INPUT)
        assert am.check() is None
        for _ in range(4):
            metrics.record_rejected(FailureReason.INPUT)
        assert am.check() is not None

    @pytest.mark.unit
    def test_callback_is_invoked_on_alert(self):
        received = []
        mc = WebhookMetrics(window_seconds=300)
        am = AlertManager(metrics=mc, threshold=0.10, callback=received.append)
        mc.record_rejected(FailureReason.INPUT)
        am.check()
        assert len(received) == 1
        assert received[0]["type"] == "webhook_rejection_rate"

    @pytest.mark.unit
    def test_alert_written_to_audit_sink(self, metrics, audit):
        am = AlertManager(metrics=metrics, audit=audit)
        metrics.record_rejected(FailureReason.SIGNATURE_MISMATCH)
        am.check()
        events = audit.get_security_events("webhook_rejection_rate")
        assert len(events) == 1
        assert events[0].level is SecurityLevel.CRITICAL
        assert events[0].details["rejected_webhooks"] == 1

    @pytest.mark.unit
    def test_fire_once_then_rearm(self, metrics, alert_manager):
        metrics.record_rejected(FailureReason.INPUT)
        assert alert_manager.check() is not None
        assert alert_manager.check() is None

        for _ in range(20):
            metrics.record_accepted()
        assert alert_manager.check() is None

        for _ in range(5):
            metrics.record_rejected(FailureReason.INPUT)
        assert alert_manager.check() is not None
        assert len(alert_manager.get_alerts()) == 2

    @pytest.mark.unit
    def test_reset_allows_refiring(self, metrics, alert_manager):
        metrics.record_rejected(FailureReason.INPUT)
        assert alert_manager.check() is not None
        alert_manager.reset()
        assert alert_manager.get_alerts() == []
        assert alert_manager.check() is not None


class TestConcurrentCheck:
    """check() called from many request threads at once."""

    @pytest.mark.unit
    def test_single_alert_per_breach_across_threads(self, audit):
        metrics = WebhookMetrics()
        for _ in range(5):
            metrics.record_rejected(FailureReason.SIGNATURE_MISMATCH)
        fired = []
        manager = AlertManager(metrics, audit=audit, callback=fired.append)
        barrier = threading.Barrier(16)

        def check():
            barrier.wait()
            manager.check()

        threads = [threading.Thread(target=check) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(fired) == 1
        assert len(manager.get_alerts()) == 1
        assert len(audit.get_security_events("webhook_rejection_rate")) == 1
