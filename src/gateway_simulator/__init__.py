from .engine import GatewaySimulator
from .retry import RedeliveryPolicy
from .signer import WebhookSigner

__all__ = [
    "GatewaySimulator",
    "RedeliveryPolicy",
    "WebhookSigner",
]
