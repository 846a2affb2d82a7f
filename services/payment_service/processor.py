"""
Payment processor boundary.

PaymentService and the webhook route only see the PaymentProcessor protocol;
StripePaymentProcessor is the production implementation, and tests pass a
fake with the same two methods.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Optional, Protocol

import stripe
import structlog

from shared.errors import ExternalServiceError, SignatureError

logger = structlog.get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_METHOD_TYPES = ["card", "sepa_debit"]


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str


@dataclass(frozen=True)
class PaymentEvent:
    id: str
    type: str
    transaction_id: Optional[str]
    payment_method_types: list = field(default_factory=list)


class PaymentProcessor(Protocol):
    async def create_payment_intent(self, amount: int, currency: str, metadata: dict) -> PaymentIntent:
        ...

    def construct_event(self, payload: bytes, signature: Optional[str], secret: str) -> PaymentEvent:
        ...


class StripePaymentProcessor:
    def __init__(self, api_key: str, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout

    async def create_payment_intent(self, amount: int, currency: str, metadata: dict) -> PaymentIntent:
        try:
            intent = await asyncio.wait_for(
                asyncio.to_thread(
                    stripe.PaymentIntent.create,
                    api_key=self.api_key,
                    amount=amount,
                    currency=currency,
                    metadata=metadata,
                    payment_method_types=PAYMENT_METHOD_TYPES,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(
                f"Payment processor did not answer within {self.timeout:g}s"
            ) from e
        except stripe.StripeError as e:
            raise ExternalServiceError(e.user_message or str(e)) from e

        logger.info(
            "stripe_payment_intent_created",
            payment_intent_id=intent.id,
            payment_method_types=list(intent.payment_method_types or []),
        )
        return PaymentIntent(id=intent.id, client_secret=intent.client_secret)

    def construct_event(self, payload: bytes, signature: Optional[str], secret: str) -> PaymentEvent:
        if not signature:
            raise SignatureError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise SignatureError(f"Webhook signature verification failed: {e}") from e
        except ValueError as e:
            # Body is not valid JSON
            raise SignatureError(f"Invalid webhook payload: {e}") from e

        # StripeObject is not a dict; missing keys raise AttributeError.
        obj = event.data.object
        return PaymentEvent(
            id=event.id,
            type=event.type,
            transaction_id=getattr(obj, "id", None),
            payment_method_types=list(getattr(obj, "payment_method_types", None) or []),
        )
