import hashlib
import hmac
import json
import time

import pytest
import stripe

from app.core.config import Settings
from app.core.errors import PaymentGatewayError
from app.services.payment_gateway import (
    CheckoutLineItem,
    CheckoutSession,
    InvalidWebhookSignature,
    PaymentGateway,
    to_minor_units,
)

SECRET = "whsec_test_secret"


def signed_header(payload: str, secret: str = SECRET) -> str:
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def event_payload(event_type="checkout.session.completed"):
    return json.dumps({
        "id": "evt_1",
        "object": "event",
        "type": event_type,
        "data": {"object": {"id": "cs_1", "object": "checkout.session", "metadata": {"order_id": "o1"}}},
    })


def make_gateway(**overrides):
    values = {"stripe_secret_key": "sk_test", "stripe_webhook_secret": SECRET, "frontend_url": "https://shop.test/"}
    values.update(overrides)
    return PaymentGateway(Settings(**values))


def test_to_minor_units_rounds_to_cents():
    assert to_minor_units(0.1 + 0.2) == 30
    assert to_minor_units(19.99) == 1999


def test_session_paid_and_expired_flags():
    assert CheckoutSession(id="cs", payment_status="paid").is_paid
    assert CheckoutSession(id="cs", payment_status="no_payment_required").is_paid
    assert not CheckoutSession(id="cs", payment_status="unpaid").is_paid
    assert CheckoutSession(id="cs", status="expired").is_expired


def test_construct_event_with_valid_signature():
    payload = event_payload()
    event = make_gateway().construct_event(payload.encode(), signed_header(payload))
    assert event.type == "checkout.session.completed"
    assert event.session_id == "cs_1"
    assert event.metadata == {"order_id": "o1"}


def test_construct_event_rejects_wrong_secret():
    payload = event_payload()
    with pytest.raises(InvalidWebhookSignature):
        make_gateway().construct_event(payload.encode(), signed_header(payload, secret="whsec_other"))


def test_construct_event_rejects_missing_signature():
    with pytest.raises(InvalidWebhookSignature):
        make_gateway().construct_event(event_payload().encode(), None)


def test_construct_event_without_secret_is_rejected():
    with pytest.raises(InvalidWebhookSignature):
        make_gateway(stripe_webhook_secret="").construct_event(event_payload().encode(), None)


def test_construct_event_unsigned_when_explicitly_allowed():
    gateway = make_gateway(stripe_webhook_secret="", stripe_allow_unsigned_webhooks=True)
    event = gateway.construct_event(event_payload().encode(), None)
    assert event.session_id == "cs_1"


async def test_create_checkout_session_builds_line_items(monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return {"id": "cs_42", "url": "https://stripe.test/cs_42", "status": "open",
                "payment_status": "unpaid", "metadata": kwargs["metadata"]}

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    session = await make_gateway().create_checkout_session(
        "order-1",
        [CheckoutLineItem(name="Pizza", unit_price=12.5, quantity=2, images=["https://cdn.test/p.jpg"])],
        {"order_id": "order-1"},
    )

    assert session.id == "cs_42"
    assert session.metadata == {"order_id": "order-1"}
    assert captured["api_key"] == "sk_test"
    assert captured["mode"] == "payment"
    assert captured["line_items"][0]["price_data"]["unit_amount"] == 1250
    assert captured["line_items"][0]["quantity"] == 2
    assert captured["success_url"].startswith("https://shop.test/payment/success?session_id={CHECKOUT_SESSION_ID}")
    assert captured["cancel_url"].endswith("&order_id=order-1")


async def test_gateway_errors_are_wrapped(monkeypatch):
    def fake_retrieve(session_id, **kwargs):
        raise stripe.InvalidRequestError("No such checkout.session", param="id")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake_retrieve)
    with pytest.raises(PaymentGatewayError):
        await make_gateway().retrieve_session("cs_missing")
