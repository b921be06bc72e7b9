from .settings import (
    ConfigProvider,
    WebhookSettings,
    require_valid_configuration,
    validate_webhook_configuration,
)

__all__ = [
    "ConfigProvider",
    "WebhookSettings",
    "require_valid_configuration",
    "validate_webhook_configuration",
]
