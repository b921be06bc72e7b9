import threading
import time
from collections import Counter

from src.models.result import FailureReason


class WebhookMetrics:
    """Rolling-window counts of accepted and rejected webhooks."""

    def __init__(self, window_seconds: float = 300):
        self._window_seconds = window_seconds
        self._accepted: list[float] = []  # monotonic timestamps
        self._rejected: list[tuple[float, FailureReason | None]] = []
        self._lock = threading.Lock()

    def record_accepted(self) -> None:
        with self._lock:
            self._accepted.append(time.monotonic())

    def record_rejected(self, reason: FailureReason | None = None) -> None:
        with self._lock:
            self._rejected.append((time.monotonic(), reason))

    def _prune(self, now: float) -> None:
        cutoff = now - self._window_seconds
        self._accepted = [t for t in self._accepted if t >= cutoff]
        self._rejected = [r for r in self._rejected if r[0] >= cutoff]

    def rejection_rate(self) -> float:
        """Share of rejected webhooks in the current window (0.0 to 1.0)."""
        with self._lock:
            self._prune(time.monotonic())
            total = len(self._accepted) + len(self._rejected)
            if total == 0:
                return 0.0
            return len(self._rejected) / total

    def accepted_in_window(self) -> int:
        with self._lock:
            self._prune(time.monotonic())
            return len(self._accepted)

    def rejected_in_window(self) -> int:
        with self._lock:
            self._prune(time.monotonic())
            return len(self._rejected)

    def total_in_window(self) -> int:
        with self._lock:
            self._prune(time.monotonic())
            return len(self._accepted) + len(self._rejected)

    def rejections_by_reason(self) -> dict[str, int]:
        with self._lock:
            self._prune(time.monotonic())
            counts = Counter(
                reason.value if reason else "unknown" for _, reason in self._rejected
            )
            return dict(counts)

    def snapshot(self) -> dict:
        return {
            "accepted": self.accepted_in_window(),
            "rejected": self.rejected_in_window(),
            "rejection_rate": self.rejection_rate(),
            "rejections_by_reason": self.rejections_by_reason(),
        }

    def reset(self) -> None:
        with self._lock:
            self._accepted.clear()
            self._rejected.clear()
