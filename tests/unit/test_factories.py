from datetime import datetime

import pytest

from src.utils.factories import WebhookFactory
from src.webhook_pipeline.validator import PayloadValidator


class TestWebhookFactory:
    """Tests for Cashfree webhook payload generation."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "event_type,order_status",
        [
            ("PAYMENT_SUCCESS_WEBHOOK", "PAID"),
            ("PAYMENT_FAILED_WEBHOOK", "EXPIRED"),
            ("PAYMENT_USER_DROPPED_WEBHOOK", "ACTIVE"),
        ],
    )
    def test_payloads_are_valid_with_no_warnings(self, event_type, order_status):
        event = WebhookFactory.create_event(event_type)
        assert event.payload["type"] == event_type
        assert event.payload["order_status"] == order_status
        outcome = PayloadValidator().validate(event.payload)
        assert outcome.is_valid
        assert outcome.warnings == ()

    @pytest.mark.unit
    def test_success_has_payment_id(self):
        event = WebhookFactory.create_event("PAYMENT_SUCCESS_WEBHOOK", cf_payment_id="cf_1")
        assert event.payload["cf_payment_id"] == "cf_1"
        assert event.payload["payment_status"] == "SUCCESS"

    @pytest.mark.unit
    def test_failed_has_failure_reason(self):
        event = WebhookFactory.create_event("PAYMENT_FAILED_WEBHOOK")
        assert event.payload["failure_reason"] == "Transaction declined by bank"

    @pytest.mark.unit
    def test_dropped_has_no_payment_id(self):
        event = WebhookFactory.create_event("PAYMENT_USER_DROPPED_WEBHOOK")
        assert "cf_payment_id" not in event.payload

    @pytest.mark.unit
    def test_order_id_and_payload_overrides(self):
        event = WebhookFactory.create_event(
            "PAYMENT_SUCCESS_WEBHOOK", order_id="ORD42", payload={"order_note": "rent"},
        )
        assert event.payload["order_id"] == "ORD42"
        assert event.payload["order_note"] == "rent"

    @pytest.mark.unit
    def test_event_id_override(self):
        event = WebhookFactory.create_event(event_id="evt_fixed")
        assert event.event_id == "evt_fixed"

    @pytest.mark.unit
    def test_event_time_is_iso_8601(self):
        event = WebhookFactory.create_event()
        assert isinstance(datetime.fromisoformat(event.payload["event_time"]), datetime)
