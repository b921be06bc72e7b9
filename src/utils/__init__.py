from .crypto import canonicalize, constant_time_compare, generate_signature, verify_signature
from .factories import WebhookFactory

__all__ = [
    "canonicalize", "constant_time_compare", "generate_signature", "verify_signature",
    "WebhookFactory",
]
