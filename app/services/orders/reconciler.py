"""
Payment Reconciliation Service

Brings an order in line with its gateway checkout session. Called from the
client's verify/cancel pages and from the webhook, possibly several times
for the same session and in any order.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import order as order_crud
from app.models.order import (
    TERMINAL_PAYMENT_STATUSES,
    Order,
    OrderStatus,
    PaymentStatus,
)
from app.services.payment_gateway import CheckoutSession, PaymentGateway

log = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    order: Order
    changed: bool = False
    session: Optional[CheckoutSession] = None

    @property
    def completed(self) -> bool:
        """True only for the call that moved the order to Completed."""
        return self.changed and self.order.payment_status == PaymentStatus.COMPLETED


class PaymentReconciler:
    """Applies a checkout session's state to its order exactly once"""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway

    async def reconcile(
        self,
        session_id: str,
        order_id: str,
        unpaid_outcome: Optional[PaymentStatus] = None,
    ) -> ReconcileResult:
        """
        Args:
            session_id: Gateway checkout session id
            order_id: Order the caller believes the session belongs to
            unpaid_outcome: What to do when the session is neither paid nor
                expired. None leaves the order Pending; Failed or Cancelled
                set that payment status and mark the order Failed.

        Raises:
            HTTPException 404 if the order is unknown, 400 if the session
            belongs to another order. PaymentGatewayError if the session
            can't be fetched.
        """
        order = await order_crud.get_order_or_404(self.db, order_id)
        session = await self.gateway.retrieve_session(session_id)

        if session.metadata.get("order_id") != order.id:
            log.warning(
                "session/order mismatch: session=%s metadata_order=%s order=%s",
                session_id, session.metadata.get("order_id"), order.id,
            )
            raise HTTPException(status_code=400, detail="Payment session does not belong to this order")

        if order.payment_status in TERMINAL_PAYMENT_STATUSES:
            return ReconcileResult(order=order, changed=False, session=session)

        if session.is_paid:
            changed = await order_crud.transition_payment(
                self.db,
                order.id,
                PaymentStatus.COMPLETED,
                OrderStatus.PAID,
                paid_at=datetime.now(timezone.utc).replace(tzinfo=None),
                clear_cart_id=order.cart_id,
            )
        elif session.is_expired:
            changed = await order_crud.transition_payment(
                self.db, order.id, PaymentStatus.FAILED, OrderStatus.FAILED
            )
        elif unpaid_outcome is not None and unpaid_outcome != order.payment_status:
            changed = await order_crud.transition_payment(
                self.db, order.id, unpaid_outcome, OrderStatus.FAILED
            )
        else:
            return ReconcileResult(order=order, changed=False, session=session)

        # reload either way; a concurrent caller may have won the swap
        order = await order_crud.get_order(self.db, order.id)
        if changed:
            log.info(
                "payment reconciled: order=%s session=%s payment=%s order_status=%s",
                order.id, session_id, order.payment_status.value, order.order_status.value,
            )
        return ReconcileResult(order=order, changed=changed, session=session)


def confirmation_email_kwargs(order: Order) -> Dict[str, Any]:
    """Arguments for send_order_confirmation_email, captured while the session is open."""
    buyer = order.buyer
    return {
        "to_email": buyer.email if buyer else None,
        "customer_name": buyer.name if buyer else "",
        "items_summary": [
            {
                "name": item.item_name,
                "qty": item.quantity,
                "price": item.price_at_time_of_order,
                "total": round(item.price_at_time_of_order * item.quantity, 2),
            }
            for item in order.items
        ],
        "order_id": order.id,
        "order_total": order.total_price,
    }
