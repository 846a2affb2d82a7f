"""
Shared fixtures: a throwaway SQLite database per test, an app wired to
in-memory fakes for the payment processor and the mailer, and helpers to
seed the catalog and build cart submissions.
"""
import json

import httpx
import pytest
import pytest_asyncio

from main import create_app
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderService
from services.payment_service.processor import PaymentEvent, PaymentIntent
from services.product_service.models import Product
from services.product_service.repository import ProductRepository
from shared.config import database
from shared.config.settings import Settings
from shared.errors import ExternalServiceError, SignatureError

VALID_SIGNATURE = "valid-signature"


class FakePaymentProcessor:
    """Stands in for Stripe: numbered intents, signature is a fixed token."""

    def __init__(self):
        self.calls = []
        self.fail_with = None

    async def create_payment_intent(self, amount, currency, metadata):
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append({"amount": amount, "currency": currency, "metadata": metadata})
        number = len(self.calls)
        return PaymentIntent(id=f"pi_test_{number}", client_secret=f"pi_test_{number}_secret_abc")

    def construct_event(self, payload, signature, secret):
        if signature != VALID_SIGNATURE:
            raise SignatureError("Webhook signature verification failed")
        data = json.loads(payload)
        obj = data["data"]["object"]
        return PaymentEvent(id=data["id"], type=data["type"], transaction_id=obj.get("id"))


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.fail_for = set()

    async def send(self, to, subject, html):
        if to in self.fail_for:
            raise ExternalServiceError(f"Email delivery to {to} failed: connection refused")
        self.sent.append({"to": to, "subject": subject, "html": html})


def stripe_event(payment_intent_id, event_type="payment_intent.succeeded", event_id="evt_1"):
    return PaymentEvent(id=event_id, type=event_type, transaction_id=payment_intent_id)


def webhook_body(payment_intent_id, event_type="payment_intent.succeeded", event_id="evt_1") -> bytes:
    return json.dumps({
        "id": event_id,
        "type": event_type,
        "data": {"object": {"id": payment_intent_id, "object": "payment_intent"}},
    }).encode()


def cart(*items, address=None, customer_email="jane@example.com") -> dict:
    if address is None:
        address = {
            "name": "Jane Doe",
            "street": "Hauptstrasse 1",
            "postalCode": "10115",
            "city": "Berlin",
            "country": "Germany",
            "email": "jane@example.com",
        }
    return {
        "items": [{"productId": product_id, "quantity": quantity} for product_id, quantity in items],
        "shippingAddress": address,
        "customerEmail": customer_email,
    }


@pytest.fixture
def settings():
    return Settings(
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret="whsec_test_123",
        database_url="sqlite+aiosqlite://",
        office_email="office@example.com",
        internal_api_key="internal-test-key",
        rate_limit_enabled=False,
    )


@pytest.fixture
def processor():
    return FakePaymentProcessor()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = database.init_database(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await database.create_tables()
    yield engine
    await database.dispose_database()


@pytest_asyncio.fixture
async def session(db_engine):
    async with database.AsyncSessionLocal() as db:
        yield db


@pytest.fixture
def new_session(db_engine):
    """Fresh sessions, for reading back committed state."""
    return database.AsyncSessionLocal


@pytest.fixture
def app(settings, processor, notifier):
    return create_app(settings, payment_processor=processor, notifier=notifier, observability=False)


@pytest_asyncio.fixture
async def client(app, db_engine):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def make_product(new_session):
    async def _make(name="Oak Table", price=10.0, stock=5):
        async with new_session() as db:
            return await ProductRepository.create_product(db, Product(name=name, price=price, stock=stock))
    return _make


@pytest.fixture
def make_order(new_session):
    """Create a pending order through OrderService, optionally bound to an intent id."""
    async def _make(*items, payment_intent_id=None):
        async with new_session() as db:
            order = await OrderService.create_order(db, OrderCreate.model_validate(cart(*items)))
            if payment_intent_id:
                await OrderRepository.set_payment_intent(db, order, payment_intent_id)
            return order
    return _make


@pytest.fixture
def fetch(new_session):
    async def _fetch_product(product_id):
        async with new_session() as db:
            return await ProductRepository.get_product_by_id(db, product_id)

    async def _fetch_order(order_id):
        async with new_session() as db:
            return await OrderRepository.get_order(db, order_id)

    class Fetch:
        product = staticmethod(_fetch_product)
        order = staticmethod(_fetch_order)

    return Fetch
