import json
import threading
import time
import uuid
from datetime import datetime, timezone

import requests

from src.models.delivery import DeliveryAttempt
from src.models.webhook import WebhookEvent
from src.gateway_simulator.retry import RedeliveryPolicy
from src.gateway_simulator.signer import WebhookSigner

WEBHOOK_VERSION = "2022-09-01"


class GatewaySimulator:
    """Delivers signed webhook events to a receiver the way the payment gateway does."""

    def __init__(
        self,
        signer: WebhookSigner,
        policy: RedeliveryPolicy | None = None,
        timeout_seconds: float = 30,
        webhook_version: str = WEBHOOK_VERSION,
    ):
        self.signer = signer
        self.policy = policy or RedeliveryPolicy()
        self.timeout_seconds = timeout_seconds
        self.webhook_version = webhook_version
        self._attempts: list[DeliveryAttempt] = []
        self._lock = threading.Lock()

    def build_headers(self, event: WebhookEvent) -> dict:
        signature = event.signature or self.signer.sign(event.payload)
        return {
            "Content-Type": "application/json",
            "x-webhook-signature": signature,
            "x-webhook-version": self.webhook_version,
            "x-webhook-timestamp": str(int(event.timestamp.timestamp() * 1000)),
            "x-event-id": event.event_id,
        }

    def deliver(self, event: WebhookEvent, url: str) -> DeliveryAttempt:
        """POST a single webhook. Returns the delivery attempt."""
        headers = self.build_headers(event)

        start = time.monotonic()
        status_code = None
        error = None

        try:
            resp = requests.post(
                url,
                data=json.dumps(event.payload, default=str),
                headers=headers,
                timeout=self.timeout_seconds,
            )
            status_code = resp.status_code
        except requests.exceptions.Timeout:
            error = "timeout"
        except requests.exceptions.ConnectionError:
            error = "connection_error"
        except requests.exceptions.RequestException as e:
            error = str(e)

        attempt = DeliveryAttempt(
            attempt_id=f"att_{uuid.uuid4().hex[:16]}",
            event_id=event.event_id,
            url=url,
            status_code=status_code,
            timestamp=datetime.now(timezone.utc),
            response_time_ms=(time.monotonic() - start) * 1000,
            error=error,
        )
        with self._lock:
            self._attempts.append(attempt)
        return attempt

    def deliver_with_redelivery(
        self,
        event: WebhookEvent,
        url: str,
        delay_factor: float = 1.0,
    ) -> list[DeliveryAttempt]:
        """Deliver, then redeliver per the policy until accepted or out of retries.

        Args:
            event: The webhook event to deliver.
            url: The receiver endpoint URL.
            delay_factor: Multiplier for redelivery delays (use 0 in tests to skip waits).
        """
        attempts = []
        retry = 0

        while True:
            attempt = self.deliver(event, url)
            attempts.append(attempt)

            if not self.policy.should_redeliver(attempt.status_code):
                break
            if not self.policy.has_attempts_remaining(retry):
                break

            delay = self.policy.next_delay(retry) * delay_factor
            if delay > 0:
                time.sleep(delay)
            retry += 1

        return attempts

    def get_attempts(self, event_id: str | None = None) -> list[DeliveryAttempt]:
        with self._lock:
            if event_id is None:
                return list(self._attempts)
            return [a for a in self._attempts if a.event_id == event_id]
