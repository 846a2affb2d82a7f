import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from services.payment_service.processor import PAYMENT_SUCCEEDED, StripePaymentProcessor
from shared.errors import ExternalServiceError, SignatureError

SECRET = "whsec_test_secret"


def sign(payload: str, secret: str = SECRET, timestamp: int = None) -> str:
    timestamp = timestamp or int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def event_payload(payment_intent_id="pi_123", event_type=PAYMENT_SUCCEEDED) -> str:
    return json.dumps({
        "id": "evt_123",
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": payment_intent_id,
                "object": "payment_intent",
                "payment_method_types": ["card"],
            }
        },
    })


class TestConstructEvent:
    def test_verified_event(self):
        payload = event_payload()
        event = StripePaymentProcessor("sk_test").construct_event(payload.encode(), sign(payload), SECRET)

        assert event.id == "evt_123"
        assert event.type == PAYMENT_SUCCEEDED
        assert event.transaction_id == "pi_123"
        assert event.payment_method_types == ["card"]

    def test_event_without_payment_method_types(self):
        payload = json.dumps({
            "id": "evt_456",
            "object": "event",
            "type": "charge.refunded",
            "data": {"object": {"id": "ch_1", "object": "charge"}},
        })
        event = StripePaymentProcessor("sk_test").construct_event(payload.encode(), sign(payload), SECRET)

        assert event.transaction_id == "ch_1"
        assert event.payment_method_types == []

    def test_wrong_secret(self):
        payload = event_payload()
        with pytest.raises(SignatureError):
            StripePaymentProcessor("sk_test").construct_event(
                payload.encode(), sign(payload, secret="whsec_other"), SECRET
            )

    def test_tampered_body(self):
        payload = event_payload()
        signature = sign(payload)
        with pytest.raises(SignatureError):
            StripePaymentProcessor("sk_test").construct_event(
                event_payload(payment_intent_id="pi_evil").encode(), signature, SECRET
            )

    def test_missing_header(self):
        with pytest.raises(SignatureError):
            StripePaymentProcessor("sk_test").construct_event(event_payload().encode(), None, SECRET)

    def test_garbage_body(self):
        with pytest.raises(SignatureError):
            StripePaymentProcessor("sk_test").construct_event(b"not json", sign("not json"), SECRET)


class TestCreatePaymentIntent:
    async def test_passes_order_details_to_stripe(self, monkeypatch):
        captured = {}

        def fake_create(**kwargs):
            captured.update(kwargs)
            return SimpleNamespace(id="pi_new", client_secret="pi_new_secret", payment_method_types=["card", "sepa_debit"])

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

        intent = await StripePaymentProcessor("sk_test_key").create_payment_intent(
            amount=2000, currency="eur", metadata={"orderId": "o-1"}
        )

        assert (intent.id, intent.client_secret) == ("pi_new", "pi_new_secret")
        assert captured == {
            "api_key": "sk_test_key",
            "amount": 2000,
            "currency": "eur",
            "metadata": {"orderId": "o-1"},
            "payment_method_types": ["card", "sepa_debit"],
        }

    async def test_stripe_error_becomes_external_service_error(self, monkeypatch):
        def fake_create(**kwargs):
            raise stripe.APIConnectionError("network unreachable")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

        with pytest.raises(ExternalServiceError) as exc_info:
            await StripePaymentProcessor("sk_test").create_payment_intent(100, "eur", {})
        assert "network unreachable" in exc_info.value.message

    async def test_slow_processor_times_out(self, monkeypatch):
        def fake_create(**kwargs):
            time.sleep(0.5)
            return SimpleNamespace(id="pi_late", client_secret="late", payment_method_types=[])

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

        with pytest.raises(ExternalServiceError) as exc_info:
            await StripePaymentProcessor("sk_test", timeout=0.05).create_payment_intent(100, "eur", {})
        assert "did not answer" in exc_info.value.message
