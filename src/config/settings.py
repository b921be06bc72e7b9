"""Webhook receiver configuration.

Values are read once at startup from ``CASHFREE_*`` environment variables
(or a ``.env`` file) and are immutable afterwards.
"""

import logging
from typing import Protocol
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.models.result import FailureReason
from src.models.webhook import ValidationOutcome
from src.webhook_pipeline.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_HOSTS = {"api.cashfree.com", "sandbox.cashfree.com"}


class ConfigProvider(Protocol):
    webhook_secret: str
    is_production: bool
    allowed_hosts: set[str]
    webhook_url: str
    webhook_version: str
    max_webhook_retries: int
    webhook_timeout_seconds: float
    webhook_timestamp_tolerance_seconds: float


class WebhookSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CASHFREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    webhook_secret: str = Field(default="", repr=False, description="HMAC key shared with the gateway")
    is_production: bool = Field(default=False)
    allowed_hosts: set[str] = Field(default_factory=lambda: set(DEFAULT_ALLOWED_HOSTS))
    webhook_url: str = Field(default="", description="Public URL registered in the gateway dashboard")
    webhook_version: str = Field(default="2022-09-01")
    max_webhook_retries: int = Field(default=3, ge=0)
    webhook_timeout_seconds: float = Field(default=30, gt=0)
    webhook_timestamp_tolerance_seconds: float = Field(
        default=300, ge=0, description="Maximum age of a delivery timestamp; 0 disables the check",
    )


def validate_webhook_configuration(config: ConfigProvider) -> ValidationOutcome:
    errors: list[str] = []
    warnings: list[str] = []

    url = config.webhook_url
    if not url:
        errors.append("Webhook URL not configured")
    else:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.hostname:
            errors.append(f"Invalid webhook URL format: {url}")
        else:
            if parsed.scheme != "https":
                errors.append(f"Webhook URL must use HTTPS: {url}")
            if parsed.hostname not in config.allowed_hosts:
                warnings.append(f"Webhook host not in allowed hosts list: {parsed.hostname}")

    if not config.webhook_secret:
        errors.append("Webhook secret not configured")

    return ValidationOutcome.from_findings(errors, warnings, reason=FailureReason.CONFIGURATION)


def require_valid_configuration(config: ConfigProvider) -> ValidationOutcome:
    """Validate configuration at startup.

    In production any error raises ConfigurationError. In sandbox mode the
    problems are only logged.
    """
    outcome = validate_webhook_configuration(config)
    for warning in outcome.warnings:
        logger.warning("Webhook configuration: %s", warning)

    if not outcome.is_valid:
        if config.is_production:
            raise ConfigurationError(
                "Webhook configuration validation failed", details=list(outcome.errors),
            )
        for error in outcome.errors:
            logger.warning("Webhook configuration (sandbox): %s", error)
    return outcome
