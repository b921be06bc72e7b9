import hashlib
import hmac
import json


def _render_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return str(value)


def canonicalize(payload: dict) -> str:
    """Render a payload as the canonical ``key=value&...`` string that gets signed.

    Keys are sorted by code point (equivalent to UTF-8 byte order) and keys
    whose value is None are dropped. Booleans render as ``true``/``false`` and
    nested containers as compact, key-sorted JSON so that signer and verifier
    always agree regardless of the input's key order.
    """
    parts = []
    for key in sorted(payload, key=str):
        value = payload[key]
        if value is None:
            continue
        parts.append(f"{key}={_render_value(value)}")
    return "&".join(parts)


def compute_digest(canonical_payload: str, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        canonical_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def generate_signature(payload: dict, secret: str) -> str:
    """Generate the HMAC-SHA256 hex signature for a webhook payload."""
    return compute_digest(canonicalize(payload), secret)


def constant_time_compare(left: str, right: str) -> bool:
    """Compare two signatures without short-circuiting on content.

    Only the length check returns early; every byte position is XORed into
    the accumulator before the result is inspected.
    """
    a = left.encode("utf-8")
    b = right.encode("utf-8")
    if len(a) != len(b):
        return False

    result = 0
    for x, y in zip(a, b):
        result |= x ^ y
    return result == 0


def verify_signature(payload: dict, secret: str, signature: str) -> bool:
    """Verify an HMAC-SHA256 signature against a webhook payload."""
    expected = generate_signature(payload, secret)
    return constant_time_compare(signature, expected)
