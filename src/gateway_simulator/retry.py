from src.config.settings import ConfigProvider


class RedeliveryPolicy:
    """When and how often the gateway redelivers a webhook the receiver did not accept."""

    DEFAULT_SCHEDULE = [30, 300, 1800]  # 30s, 5m, 30m

    def __init__(self, schedule: list[float] | None = None, max_retries: int | None = None):
        if schedule is not None and not schedule:
            raise ValueError("Redelivery schedule must not be empty")
        self.schedule = list(schedule) if schedule is not None else list(self.DEFAULT_SCHEDULE)
        self.max_retries = max_retries if max_retries is not None else len(self.schedule)

    @classmethod
    def from_settings(cls, config: ConfigProvider) -> "RedeliveryPolicy":
        return cls(max_retries=config.max_webhook_retries)

    def should_redeliver(self, status_code: int | None) -> bool:
        """Connection errors, timeouts and 5xx are redelivered; 2xx and 4xx never are."""
        if status_code is None:
            return True
        return status_code >= 500

    def next_delay(self, retry: int) -> float:
        """Delay in seconds before the given redelivery (0-indexed)."""
        if retry >= len(self.schedule):
            return float(self.schedule[-1])
        return float(self.schedule[retry])

    def has_attempts_remaining(self, retry: int) -> bool:
        return retry < self.max_retries
