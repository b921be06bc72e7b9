import logging
import threading
from collections import OrderedDict
from typing import Protocol

logger = logging.getLogger(__name__)


class DomainHandlers(Protocol):
    """Side effects triggered by a classified webhook.

    Implementations must be idempotent: the gateway redelivers webhooks, so
    the same payload can arrive more than once.
    """

    def on_payment_success(self, payload: dict) -> None: ...

    def on_payment_failed(self, payload: dict) -> None: ...

    def on_payment_dropped(self, payload: dict) -> None: ...


class LoggingHandlers:
    """Default handlers that only record the event in the application log."""

    def on_payment_success(self, payload: dict) -> None:
        logger.info("Payment succeeded for order %s (payment %s)",
                    payload.get("order_id"), payload.get("cf_payment_id"))

    def on_payment_failed(self, payload: dict) -> None:
        logger.info("Payment failed for order %s: %s",
                    payload.get("order_id"), payload.get("failure_reason", "unknown reason"))

    def on_payment_dropped(self, payload: dict) -> None:
        logger.info("User dropped payment for order %s", payload.get("order_id"))


class RecordingHandlers:
    """Thread-safe handlers that keep every call in memory."""

    def __init__(self):
        self._calls: list[tuple[str, dict]] = []
        self._lock = threading.Lock()

    def _record(self, name: str, payload: dict) -> None:
        with self._lock:
            self._calls.append((name, dict(payload)))

    def on_payment_success(self, payload: dict) -> None:
        self._record("success", payload)

    def on_payment_failed(self, payload: dict) -> None:
        self._record("failed", payload)

    def on_payment_dropped(self, payload: dict) -> None:
        self._record("dropped", payload)

    def get_calls(self, name: str | None = None) -> list[tuple[str, dict]]:
        with self._lock:
            if name is None:
                return list(self._calls)
            return [c for c in self._calls if c[0] == name]

    def clear(self) -> None:
        with self._lock:
            self._calls.clear()


class IdempotentHandlers:
    """Wraps handlers so a redelivered event runs its side effects once.

    The key is (type, order_id, cf_payment_id). It is recorded only after the
    inner handler returns, so an event whose handler raised can be retried.
    At most ``max_keys`` keys are remembered; the oldest is evicted first.
    """

    MAX_KEYS = 10_000

    def __init__(self, inner: DomainHandlers, max_keys: int = MAX_KEYS):
        if max_keys < 1:
            raise ValueError("max_keys must be at least 1")
        self.inner = inner
        self.max_keys = max_keys
        self._seen: OrderedDict[tuple, None] = OrderedDict()
        # key -> [per-key lock, number of callers holding or waiting on it]
        self._in_flight: dict[tuple, list] = {}
        self._lock = threading.Lock()

    @staticmethod
    def idempotency_key(payload: dict) -> tuple:
        return (
            payload.get("type"),
            payload.get("order_id"),
            payload.get("cf_payment_id"),
        )

    def _run_once(self, payload: dict, handler) -> None:
        key = self.idempotency_key(payload)
        with self._lock:
            if key in self._seen:
                logger.info("Skipping duplicate webhook for order %s", payload.get("order_id"))
                return
            entry = self._in_flight.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1

        try:
            with entry[0]:
                with self._lock:
                    if key in self._seen:
                        return
                handler(payload)
                with self._lock:
                    self._remember(key)
        finally:
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    self._in_flight.pop(key, None)

    def _remember(self, key: tuple) -> None:
        self._seen[key] = None
        while len(self._seen) > self.max_keys:
            self._seen.popitem(last=False)

    def on_payment_success(self, payload: dict) -> None:
        self._run_once(payload, self.inner.on_payment_success)

    def on_payment_failed(self, payload: dict) -> None:
        self._run_once(payload, self.inner.on_payment_failed)

    def on_payment_dropped(self, payload: dict) -> None:
        self._run_once(payload, self.inner.on_payment_dropped)

    def was_processed(self, payload: dict) -> bool:
        with self._lock:
            return self.idempotency_key(payload) in self._seen

    def pending_count(self) -> int:
        """Number of keys with a handler currently running or waiting."""
        with self._lock:
            return len(self._in_flight)
