import pytest

from services.payment_service.service import to_minor_units
from shared.errors import ExternalServiceError


async def test_creates_intent_and_stores_its_id(client, processor, make_product, make_order, fetch):
    product = await make_product(price=10.0, stock=5)
    order = await make_order((product.id, 2))

    resp = await client.post("/api/payment/create-payment-intent", json={"orderId": order.id})

    assert resp.status_code == 200
    assert resp.json() == {"clientSecret": "pi_test_1_secret_abc"}
    assert processor.calls == [
        {"amount": 2000, "currency": "eur", "metadata": {"orderId": order.id}}
    ]
    assert (await fetch.order(order.id)).payment_intent_id == "pi_test_1"


async def test_unknown_order(client, processor, db_engine):
    resp = await client.post("/api/payment/create-payment-intent", json={"orderId": "missing"})

    assert resp.status_code == 404
    assert resp.json() == {"message": "Order not found"}
    assert processor.calls == []


async def test_processor_failure_is_a_500(client, processor, make_product, make_order, fetch):
    product = await make_product()
    order = await make_order((product.id, 1))
    processor.fail_with = ExternalServiceError("Payment processor did not answer within 10s")

    resp = await client.post("/api/payment/create-payment-intent", json={"orderId": order.id})

    assert resp.status_code == 500
    assert resp.json() == {"message": "Payment processor did not answer within 10s"}
    assert (await fetch.order(order.id)).payment_intent_id is None


async def test_second_call_replaces_intent(client, processor, make_product, make_order, fetch):
    # Not idempotent: every call opens a new intent and the latest id wins.
    product = await make_product()
    order = await make_order((product.id, 1))

    first = await client.post("/api/payment/create-payment-intent", json={"orderId": order.id})
    second = await client.post("/api/payment/create-payment-intent", json={"orderId": order.id})

    assert first.json()["clientSecret"] != second.json()["clientSecret"]
    assert len(processor.calls) == 2
    assert (await fetch.order(order.id)).payment_intent_id == "pi_test_2"


@pytest.mark.parametrize("total, expected", [(20.0, 2000), (19.99, 1999), (0.1 + 0.2, 30), (10.005, 1001), (0.0, 0)])
def test_to_minor_units(total, expected):
    assert to_minor_units(total) == expected
