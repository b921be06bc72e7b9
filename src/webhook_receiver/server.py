import json
import logging
import threading
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Self

from src.config.settings import WebhookSettings, require_valid_configuration
from src.models.result import FailureReason, WebhookProcessingResult
from src.observability.alerting import AlertManager
from src.observability.audit import AuditLog, AuditSink
from src.observability.metrics import WebhookMetrics
from src.webhook_pipeline.handlers import DomainHandlers, IdempotentHandlers, LoggingHandlers
from src.webhook_pipeline.pipeline import WebhookPipeline

logger = logging.getLogger(__name__)

WEBHOOK_PATHS = ("/webhook", "/api/cashfree/webhook")
SIGNATURE_HEADER = "x-webhook-signature"

_STATUS_BY_REASON = {
    FailureReason.CONFIGURATION: 401,
    FailureReason.INPUT: 401,
    FailureReason.SIGNATURE_MISMATCH: 401,
    # Acknowledged so the gateway does not keep redelivering a malformed body.
    FailureReason.PAYLOAD_STRUCTURE: 200,
    FailureReason.UNEXPECTED_FAULT: 500,
}


def status_code_for(result: WebhookProcessingResult) -> int:
    if result.success:
        return 200
    return _STATUS_BY_REASON.get(result.reason, 500)


class _WebhookHandler(BaseHTTPRequestHandler):
    """HTTP request handler that forwards webhooks to the pipeline."""

    def _send_json(self, code: int, body: dict) -> None:
        data = json.dumps(body, default=str).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_POST(self):
        receiver: "WebhookReceiverServer" = self.server.receiver  # type: ignore[attr-defined]

        if self.path not in WEBHOOK_PATHS:
            self._send_json(404, {"success": False, "error": "not found"})
            return

        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = None
        if not isinstance(payload, dict):
            receiver.metrics.record_rejected(FailureReason.INPUT)
            self._send_json(400, {"success": False, "error": "invalid JSON"})
            return

        signature = self.headers.get(SIGNATURE_HEADER, "")
        result = receiver.pipeline.process(payload, signature, dict(self.headers.items()))
        receiver.record(result)
        self._send_json(status_code_for(result), result.to_dict())

    def do_GET(self):
        receiver: "WebhookReceiverServer" = self.server.receiver  # type: ignore[attr-defined]

        if self.path == "/webhook/status":
            self._send_json(200, receiver.status())
        elif self.path == "/webhook/config":
            self._send_json(200, receiver.pipeline.get_webhook_configuration())
        else:
            self._send_json(404, {"success": False, "error": "not found"})

    def log_message(self, format, *args):
        """Suppress default request logging."""
        pass


class WebhookReceiverServer:
    """Threaded HTTP endpoint that receives payment gateway webhooks."""

    def __init__(
        self,
        pipeline: WebhookPipeline,
        host: str = "127.0.0.1",
        port: int = 0,
        metrics: WebhookMetrics | None = None,
        alert_manager: AlertManager | None = None,
    ):
        self.pipeline = pipeline
        self.metrics = metrics or WebhookMetrics()
        self.alert_manager = alert_manager
        self._host = host
        self._port = port
        self._lock = threading.Lock()
        self._last_webhook_received: datetime | None = None
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @classmethod
    def from_settings(
        cls,
        settings: WebhookSettings,
        audit: AuditSink | None = None,
        handlers: DomainHandlers | None = None,
        host: str = "127.0.0.1",
        port: int = 0,
    ) -> Self:
        """Build a receiver with a fresh pipeline. Raises ConfigurationError in production on bad config."""
        require_valid_configuration(settings)
        audit = audit or AuditLog()
        pipeline = WebhookPipeline(
            config=settings,
            audit=audit,
            handlers=IdempotentHandlers(handlers or LoggingHandlers()),
        )
        metrics = WebhookMetrics()
        return cls(
            pipeline,
            host=host,
            port=port,
            metrics=metrics,
            alert_manager=AlertManager(metrics, audit=audit, min_samples=10),
        )

    def record(self, result: WebhookProcessingResult) -> None:
        if result.success:
            self.metrics.record_accepted()
            with self._lock:
                self._last_webhook_received = datetime.now(timezone.utc)
            return

        self.metrics.record_rejected(result.reason)
        if self.alert_manager is not None:
            self.alert_manager.check()

    def status(self) -> dict:
        with self._lock:
            last = self._last_webhook_received
        return {
            **self.pipeline.get_webhook_status(),
            "last_webhook_received": last.isoformat() if last else None,
            "metrics": self.metrics.snapshot(),
        }

    def start(self) -> None:
        self._server = ThreadingHTTPServer((self._host, self._port), _WebhookHandler)
        self._server.receiver = self  # type: ignore[attr-defined]
        # Get the actual port (useful when port=0)
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Webhook receiver listening on %s", self.url)

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    def join(self) -> None:
        if self._thread:
            self._thread.join()

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}/webhook"

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}"

    @property
    def port(self) -> int:
        return self._port


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    server = WebhookReceiverServer.from_settings(WebhookSettings(), host="0.0.0.0", port=8080)
    server.start()
    try:
        server.join()
    except KeyboardInterrupt:
        logger.info("Shutting down webhook receiver")
    finally:
        server.stop()


if __name__ == "__main__":
    main()
