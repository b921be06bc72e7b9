import statistics
import time

import pytest

from src.utils.crypto import (
    canonicalize,
    compute_digest,
    constant_time_compare,
    generate_signature,
    verify_signature,
)


class TestCanonicalize:
    """Tests for canonicalize()."""

    @pytest.mark.unit
    def test_keys_sorted_and_joined(self):
        payload = {"order_id": "ORD1", "type": "PAYMENT_SUCCESS_WEBHOOK", "cf_payment_id": "PAY1"}
        assert canonicalize(payload) == (
            "cf_payment_id=PAY1&order_id=ORD1&type=PAYMENT_SUCCESS_WEBHOOK"
        )

    @pytest.mark.unit
    def test_input_key_order_does_not_matter(self):
        a = {"b": "2", "a": "1", "c": "3"}
        b = {"c": "3", "a": "1", "b": "2"}
        assert canonicalize(a) == canonicalize(b)

    @pytest.mark.unit
    def test_deterministic(self):
        payload = {"order_amount": 500.5, "order_id": "ORD1", "paid": True}
        assert canonicalize(payload) == canonicalize(payload)

    @pytest.mark.unit
    def test_none_values_dropped(self):
        payload = {"order_id": "ORD1", "failure_reason": None}
        assert canonicalize(payload) == "order_id=ORD1"

    @pytest.mark.unit
    def test_sort_is_byte_order(self):
        # Uppercase sorts before lowercase in byte order.
        payload = {"b": "x", "B": "y", "a": "z"}
        assert canonicalize(payload) == "B=y&a=z&b=x"

    @pytest.mark.unit
    def test_scalar_rendering(self):
        payload = {"amount": 10, "rate": 1.5, "flag": False}
        assert canonicalize(payload) == "amount=10&flag=false&rate=1.5"

    @pytest.mark.unit
    def test_nested_values_render_as_sorted_compact_json(self):
        payload = {"customer": {"phone": "999", "id": "c1"}, "tags": ["a", "b"]}
        assert canonicalize(payload) == 'customer={"id":"c1","phone":"999"}&tags=["a","b"]'

    @pytest.mark.unit
    def test_empty_payload(self):
        assert canonicalize({}) == ""


class TestSignature:
    """Tests for generate_signature() / verify_signature()."""

    @pytest.mark.unit
    def test_signature_is_hmac_of_canonical_form(self):
        payload = {"order_id": "ORD1", "type": "PAYMENT_SUCCESS_WEBHOOK"}
        assert generate_signature(payload, "s3cr3t") == compute_digest(
            "order_id=ORD1&type=PAYMENT_SUCCESS_WEBHOOK", "s3cr3t",
        )

    @pytest.mark.unit
    def test_signature_is_64_hex_chars(self):
        sig = generate_signature({"order_id": "ORD1"}, "s3cr3t")
        assert len(sig) == 64
        int(sig, 16)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"order_id": "ORD1"},
            {"order_id": "ORD1", "order_amount": 10.25, "paid": True, "note": None},
            {"customer": {"name": "Asha"}, "items": [1, 2, 3]},
        ],
    )
    def test_round_trip(self, payload):
        sig = generate_signature(payload, "s3cr3t")
        assert verify_signature(payload, "s3cr3t", sig) is True

    @pytest.mark.unit
    def test_every_single_byte_flip_is_detected(self):
        payload = {"order_id": "ORD1", "order_status": "PAID"}
        sig = generate_signature(payload, "s3cr3t")
        for i in range(len(sig)):
            tampered = sig[:i] + chr(ord(sig[i]) ^ 0x01) + sig[i + 1:]
            assert verify_signature(payload, "s3cr3t", tampered) is False


class TestConstantTimeCompare:
    """Tests for constant_time_compare()."""

    @pytest.mark.unit
    def test_equal_strings(self):
        assert constant_time_compare("abc123", "abc123") is True

    @pytest.mark.unit
    def test_length_mismatch(self):
        assert constant_time_compare("abc", "abcd") is False

    @pytest.mark.unit
    def test_content_mismatch_at_last_position(self):
        assert constant_time_compare("abc123", "abc124") is False

    @pytest.mark.unit
    def test_timing_does_not_depend_on_mismatch_position(self):
        expected = generate_signature({"order_id": "ORD1"}, "s3cr3t")
        first_byte_wrong = ("0" if expected[0] != "0" else "1") + expected[1:]

        def sample(candidate: str) -> float:
            start = time.perf_counter_ns()
            for _ in range(20):
                constant_time_compare(candidate, expected)
            return time.perf_counter_ns() - start

        matching, mismatched = [], []
        for _ in range(500):
            matching.append(sample(expected))
            mismatched.append(sample(first_byte_wrong))

        ratio = statistics.median(mismatched) / statistics.median(matching)
        # A short-circuiting compare would exit after one byte of 64.
        assert 0.5 < ratio < 2.0
