from src.utils.crypto import canonicalize, generate_signature, verify_signature


class WebhookSigner:
    """Signs and verifies webhook payloads the way the gateway does (HMAC-SHA256 over the canonical form)."""

    def __init__(self, secret: str):
        self.secret = secret

    def sign(self, payload: dict) -> str:
        return generate_signature(payload, self.secret)

    def verify(self, payload: dict, signature: str) -> bool:
        return verify_signature(payload, self.secret, signature)

    @staticmethod
    def canonical_form(payload: dict) -> str:
        return canonicalize(payload)
