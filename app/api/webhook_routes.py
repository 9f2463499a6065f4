# app/api/webhook_routes.py
"""
Stripe webhook

Reads the raw body (signature covers the exact bytes) and replays the
checkout session through the same reconciliation as the client pages.
Processing errors are left to surface as 500 so Stripe retries.
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.order_routes import schedule_confirmation
from app.db import get_db
from app.models.order import PaymentStatus
from app.services.orders import PaymentReconciler
from app.services.payment_gateway import InvalidWebhookSignature, PaymentGateway, get_payment_gateway

log = logging.getLogger(__name__)
router = APIRouter()

# event type -> outcome applied when the session is neither paid nor expired
HANDLED_EVENTS = {
    "checkout.session.completed": None,
    "checkout.session.async_payment_succeeded": None,
    "checkout.session.async_payment_failed": PaymentStatus.FAILED,
    "checkout.session.expired": PaymentStatus.FAILED,
}


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = gateway.construct_event(payload, signature)
    except InvalidWebhookSignature as e:
        log.warning("rejected webhook: %s", e)
        raise HTTPException(status_code=400, detail=f"Webhook Error: {e}")

    if event.type not in HANDLED_EVENTS:
        log.info("ignoring webhook event: %s", event.type)
        return {"received": True}

    order_id = event.metadata.get("order_id")
    if not order_id or not event.session_id:
        log.warning("webhook %s without order metadata: session=%s", event.type, event.session_id)
        return {"received": True}

    try:
        result = await PaymentReconciler(db, gateway).reconcile(
            event.session_id, order_id, unpaid_outcome=HANDLED_EVENTS[event.type]
        )
    except HTTPException as e:
        # unknown order or foreign session: a retry would fail the same way
        log.warning("webhook %s not applied: order=%s reason=%s", event.type, order_id, e.detail)
        return {"received": True}
    schedule_confirmation(background_tasks, result)
    log.info(
        "webhook %s handled: order=%s payment=%s changed=%s",
        event.type, order_id, result.order.payment_status.value, result.changed,
    )
    return {"received": True}
