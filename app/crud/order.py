# app/crud/order.py
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.crud.cart import empty_cart
from app.models.catalog import Product
from app.models.order import (
    OPEN_PAYMENT_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from app.utils.pagination import PageParams, count_rows, paginate

log = logging.getLogger(__name__)


def _order_query():
    return (
        select(Order)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.address),
            selectinload(Order.buyer),
        )
        .execution_options(populate_existing=True)
    )


async def get_order(db: AsyncSession, order_id: str) -> Optional[Order]:
    result = await db.execute(_order_query().where(Order.id == order_id))
    return result.scalar_one_or_none()


async def get_order_or_404(db: AsyncSession, order_id: str) -> Order:
    order = await get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


async def create_order(
    db: AsyncSession,
    buyer_id: uuid.UUID,
    address_id: str,
    lines: Sequence[Tuple[Product, int]],
    cart_id: Optional[str] = None,
) -> Order:
    """
    Snapshot ``lines`` into a new Pending/Processing order.

    Each line is (product, quantity); the product's current name and price
    are copied onto the order item so later catalog edits don't change it.
    """
    items = [
        OrderItem(
            product_id=product.id,
            quantity=quantity,
            price_at_time_of_order=float(product.price),
            item_name=product.name,
        )
        for product, quantity in lines
    ]
    total_price = round(sum(i.price_at_time_of_order * i.quantity for i in items), 2)
    total_quantity = sum(i.quantity for i in items)
    if total_price <= 0:
        raise HTTPException(status_code=400, detail="Order total must be greater than zero")

    order = Order(
        buyer_id=buyer_id,
        address_id=address_id,
        cart_id=cart_id,
        total_price=total_price,
        total_quantity=total_quantity,
        payment_status=PaymentStatus.PENDING,
        order_status=OrderStatus.PROCESSING,
        items=items,
    )
    db.add(order)
    await db.commit()
    log.info(
        "order created: id=%s buyer=%s lines=%s total=%.2f",
        order.id, buyer_id, len(items), total_price,
    )
    return await get_order(db, order.id)


async def set_payment_session(db: AsyncSession, order_id: str, session_id: str) -> Order:
    await db.execute(
        update(Order).where(Order.id == order_id).values(payment_session_id=session_id)
    )
    await db.commit()
    return await get_order(db, order_id)


async def transition_payment(
    db: AsyncSession,
    order_id: str,
    payment_status: PaymentStatus,
    order_status: Optional[OrderStatus] = None,
    paid_at: Optional[datetime] = None,
    clear_cart_id: Optional[str] = None,
) -> bool:
    """
    Compare-and-swap on payment_status: the row only changes while it is
    still Pending or Cancelled. Returns True for the caller that won.

    The winner also empties ``clear_cart_id`` in the same transaction, so a
    duplicate callback can never clear the cart a second time.
    """
    values = {"payment_status": payment_status}
    if order_status is not None:
        values["order_status"] = order_status
    if paid_at is not None:
        values["paid_at"] = paid_at

    result = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.payment_status.in_(OPEN_PAYMENT_STATUSES))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    changed = result.rowcount == 1
    if changed and clear_cart_id:
        removed = await empty_cart(db, clear_cart_id)
        log.info("cart emptied after payment: order=%s cart=%s lines=%s", order_id, clear_cart_id, removed)
    await db.commit()
    return changed


async def list_orders(
    db: AsyncSession,
    params: PageParams,
    buyer_id: Optional[uuid.UUID] = None,
    order_status: Optional[OrderStatus] = None,
):
    """One page of orders, newest first. Returns (orders, total)."""
    query = _order_query().order_by(Order.created_at.desc())
    if buyer_id is not None:
        query = query.where(Order.buyer_id == buyer_id)
    if order_status is not None:
        query = query.where(Order.order_status == order_status)
    return await paginate(db, query, params)


async def orders_grouped_by_status(
    db: AsyncSession, statuses: List[OrderStatus], params: PageParams
) -> Tuple[List[Dict], int]:
    """Same page window applied to every status; total counts all of them."""
    total = await count_rows(db, select(Order).where(Order.order_status.in_(statuses)))
    groups = []
    for status in statuses:
        result = await db.execute(
            _order_query()
            .where(Order.order_status == status)
            .order_by(Order.created_at.desc())
            .offset(params.offset)
            .limit(params.limit)
        )
        groups.append({"status": status, "orders": result.scalars().unique().all()})
    return groups, total


async def update_order_status(db: AsyncSession, order: Order, order_status: OrderStatus) -> Order:
    previous = order.order_status
    order.order_status = order_status
    await db.commit()
    log.info("order status: id=%s %s -> %s", order.id, previous.value, order_status.value)
    return await get_order(db, order.id)
