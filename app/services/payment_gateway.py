# app/services/payment_gateway.py
"""
Thin wrapper over Stripe hosted checkout.

Routes and services talk to ``PaymentGateway`` only, so the gateway can be
swapped out through the ``get_payment_gateway`` dependency.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import logging

import stripe
from fastapi.concurrency import run_in_threadpool

from app.core.config import Settings, get_settings
from app.core.errors import PaymentGatewayError

log = logging.getLogger(__name__)


@dataclass
class CheckoutLineItem:
    name: str
    unit_price: float
    quantity: int
    images: List[str] = field(default_factory=list)


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str] = None
    status: Optional[str] = None  # open | complete | expired
    payment_status: Optional[str] = None  # paid | unpaid | no_payment_required
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status in ("paid", "no_payment_required")

    @property
    def is_expired(self) -> bool:
        return self.status == "expired"


@dataclass
class WebhookEvent:
    type: str
    session_id: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)


class InvalidWebhookSignature(Exception):
    pass


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_dict(obj: Any) -> Dict[str, Any]:
    if not obj:
        return {}
    if isinstance(obj, dict):
        return {k: obj[k] for k in obj}
    to_dict = getattr(obj, "to_dict", None)
    return dict(to_dict()) if to_dict else {}


def _session_from_stripe(obj: Any) -> CheckoutSession:
    return CheckoutSession(
        id=_field(obj, "id"),
        url=_field(obj, "url"),
        status=_field(obj, "status"),
        payment_status=_field(obj, "payment_status"),
        metadata=_as_dict(_field(obj, "metadata")),
    )


class PaymentGateway:
    def __init__(self, settings: Settings):
        self.api_key = settings.stripe_secret_key
        self.webhook_secret = settings.stripe_webhook_secret
        self.allow_unsigned_webhooks = settings.stripe_allow_unsigned_webhooks
        self.currency = settings.currency
        self.frontend_url = settings.frontend_url.rstrip("/")

    def _line_items(self, items: List[CheckoutLineItem]) -> List[Dict[str, Any]]:
        return [
            {
                "price_data": {
                    "currency": self.currency,
                    "product_data": {"name": item.name, "images": item.images[:8]},
                    "unit_amount": to_minor_units(item.unit_price),
                },
                "quantity": item.quantity,
            }
            for item in items
        ]

    async def create_checkout_session(
        self, order_id: str, items: List[CheckoutLineItem], metadata: Dict[str, str]
    ) -> CheckoutSession:
        base = f"{self.frontend_url}/payment"
        params = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": self._line_items(items),
            "success_url": f"{base}/success?session_id={{CHECKOUT_SESSION_ID}}&order_id={order_id}",
            "cancel_url": f"{base}/cancelled?session_id={{CHECKOUT_SESSION_ID}}&order_id={order_id}",
            "metadata": metadata,
        }
        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.create, api_key=self.api_key, **params
            )
        except stripe.StripeError as e:
            raise PaymentGatewayError(e.user_message or str(e)) from e
        log.info("checkout session created: order=%s session=%s", order_id, _field(session, "id"))
        return _session_from_stripe(session)

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.retrieve, session_id, api_key=self.api_key
            )
        except stripe.StripeError as e:
            raise PaymentGatewayError(e.user_message or str(e)) from e
        return _session_from_stripe(session)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        if self.webhook_secret:
            try:
                event = stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret)
            except (ValueError, stripe.SignatureVerificationError) as e:
                raise InvalidWebhookSignature(str(e)) from e
        elif not self.allow_unsigned_webhooks:
            raise InvalidWebhookSignature("STRIPE_WEBHOOK_SECRET is not configured")
        else:
            log.warning("STRIPE_WEBHOOK_SECRET not set; accepting unverified webhook payload")
            try:
                event = json.loads(payload)
            except ValueError as e:
                raise InvalidWebhookSignature("Invalid payload") from e

        obj = _field(_field(event, "data"), "object")
        return WebhookEvent(
            type=_field(event, "type"),
            session_id=_field(obj, "id"),
            metadata=_as_dict(_field(obj, "metadata")),
        )


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway(get_settings())
