"""
Checkout Service

Turns a cart, a single product or a list of products into a Pending order
and opens a hosted payment session for it:
- Snapshot of names, unit prices and quantities onto the order
- Gateway line items built from the snapshot, never from live prices
- Session metadata carrying order, user and cart ids for reconciliation
"""
import logging
from typing import Dict, List, Sequence, Tuple

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PaymentGatewayError
from app.crud import address as address_crud
from app.crud import cart as cart_crud
from app.crud import order as order_crud
from app.models.catalog import Product
from app.models.order import Order, OrderStatus, PaymentStatus
from app.models.user import User
from app.schemas.order import OrderLineIn
from app.services.payment_gateway import CheckoutLineItem, CheckoutSession, PaymentGateway

log = logging.getLogger(__name__)


class CheckoutService:
    """Creates orders and their payment sessions"""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway

    async def checkout_cart(self, user: User, cart_id: str, address_id: str) -> Tuple[Order, CheckoutSession]:
        cart = await cart_crud.get_cart(self.db, cart_id)
        if not cart or cart.owner_id != user.id:
            raise HTTPException(status_code=404, detail="Cart not found")
        if not cart.items:
            raise HTTPException(status_code=400, detail="Cart is empty")

        address = await address_crud.get_owned_address_or_404(self.db, address_id, user.id)
        lines = [(item.product, item.quantity) for item in cart.items]
        self._ensure_available(lines)

        order = await order_crud.create_order(self.db, user.id, address.id, lines, cart_id=cart.id)
        return await self._open_session(order, user)

    async def checkout_product(
        self, user: User, product_id: str, quantity: int, address_id: str
    ) -> Tuple[Order, CheckoutSession]:
        cart_crud.validate_quantity(quantity)
        product = await cart_crud.get_product_or_404(self.db, product_id)
        address = await address_crud.get_owned_address_or_404(self.db, address_id, user.id)

        lines = [(product, quantity)]
        self._ensure_available(lines)

        order = await order_crud.create_order(self.db, user.id, address.id, lines)
        return await self._open_session(order, user)

    async def checkout_products(
        self, user: User, items: List[OrderLineIn], address_id: str
    ) -> Tuple[Order, CheckoutSession]:
        # same product twice in the request becomes one line
        quantities: Dict[str, int] = {}
        for item in items:
            cart_crud.validate_quantity(item.quantity)
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        address = await address_crud.get_owned_address_or_404(self.db, address_id, user.id)
        lines = []
        for product_id, quantity in quantities.items():
            product = await cart_crud.get_product_or_404(self.db, product_id)
            lines.append((product, quantity))
        self._ensure_available(lines)

        order = await order_crud.create_order(self.db, user.id, address.id, lines)
        return await self._open_session(order, user)

    @staticmethod
    def _ensure_available(lines: Sequence[Tuple[Product, int]]) -> None:
        unavailable = [product.name for product, _ in lines if not product.is_available]
        if unavailable:
            raise HTTPException(
                status_code=400,
                detail=f"Not available right now: {', '.join(unavailable)}",
            )

    async def _open_session(self, order: Order, user: User) -> Tuple[Order, CheckoutSession]:
        line_items = [
            CheckoutLineItem(
                name=item.item_name,
                unit_price=item.price_at_time_of_order,
                quantity=item.quantity,
                images=_public_images(item.product),
            )
            for item in order.items
        ]
        metadata = {
            "order_id": order.id,
            "user_id": str(user.id),
            "cart_id": order.cart_id or "",
        }

        try:
            session = await self.gateway.create_checkout_session(order.id, line_items, metadata)
        except PaymentGatewayError:
            log.warning("checkout session failed, marking order failed: order=%s", order.id)
            await order_crud.transition_payment(
                self.db, order.id, PaymentStatus.FAILED, OrderStatus.FAILED
            )
            raise

        order = await order_crud.set_payment_session(self.db, order.id, session.id)
        return order, session


def _public_images(product) -> List[str]:
    """Gateway only accepts absolute image URLs; local uploads are skipped."""
    if product is None:
        return []
    return [url for url in (product.images or []) if url.startswith("http")][:1]
