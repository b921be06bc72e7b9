import pytest

from src.config.settings import WebhookSettings
from src.gateway_simulator.engine import GatewaySimulator
from src.gateway_simulator.retry import RedeliveryPolicy
from src.gateway_simulator.signer import WebhookSigner
from src.observability.alerting import AlertManager
from src.observability.audit import AuditLog
from src.observability.metrics import WebhookMetrics
from src.utils.factories import WebhookFactory
from src.webhook_pipeline.handlers import IdempotentHandlers, RecordingHandlers
from src.webhook_pipeline.pipeline import WebhookPipeline
from src.webhook_receiver.server import WebhookReceiverServer


WEBHOOK_SECRET = "test-secret-key-for-hmac"
WEBHOOK_URL = "https://api.cashfree.com/api/cashfree/webhook"


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET


@pytest.fixture
def settings():
    return WebhookSettings(webhook_secret=WEBHOOK_SECRET, webhook_url=WEBHOOK_URL)


@pytest.fixture
def signer():
    return WebhookSigner(WEBHOOK_SECRET)


@pytest.fixture
def audit():
    return AuditLog()


@pytest.fixture
def recorder():
    return RecordingHandlers()


@pytest.fixture
def pipeline(settings, audit, recorder):
    return WebhookPipeline(config=settings, audit=audit, handlers=recorder)


@pytest.fixture
def metrics():
    return WebhookMetrics(window_seconds=300)


@pytest.fixture
def alert_manager(metrics):
    return AlertManager(metrics=metrics, threshold=0.10)


@pytest.fixture
def receiver(settings, audit, recorder):
    """Receiver with idempotent handlers in front of the recorder."""
    pipeline = WebhookPipeline(
        config=settings, audit=audit, handlers=IdempotentHandlers(recorder),
    )
    server = WebhookReceiverServer(pipeline)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def gateway(signer):
    return GatewaySimulator(
        signer=signer,
        policy=RedeliveryPolicy(max_retries=3),
        timeout_seconds=5,
    )


@pytest.fixture
def webhook_factory():
    return WebhookFactory
