# app/api/order_routes.py
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin_user, get_current_user, is_admin
from app.crud import order as order_crud
from app.db import get_db
from app.models.order import Order, OrderStatus, PaymentStatus
from app.models.user import User
from app.schemas.order import (
    MultiProductOrderIn,
    OrderRead,
    OrderStatusUpdate,
    PaymentVerification,
    ProductOrderIn,
)
from app.services.orders import CheckoutService, PaymentReconciler, ReconcileResult, confirmation_email_kwargs
from app.services.payment_gateway import PaymentGateway, get_payment_gateway
from app.utils.email_service import send_order_confirmation_email
from app.utils.pagination import PageParams, page_params, pagination_meta

log = logging.getLogger(__name__)
router = APIRouter()

VALID_ORDER_STATUSES = [s.value for s in OrderStatus]


def parse_order_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.strip())
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid order status. Valid statuses are: {', '.join(VALID_ORDER_STATUSES)}",
        )


def schedule_confirmation(background_tasks: BackgroundTasks, result: ReconcileResult) -> None:
    """Queue the buyer's confirmation e-mail once, for the call that completed the payment."""
    if result.completed:
        background_tasks.add_task(send_order_confirmation_email, **confirmation_email_kwargs(result.order))


def _checkout_response(order: Order, session) -> dict:
    return {
        "success": True,
        "session_url": session.url,
        "order_id": order.id,
        "order": OrderRead.model_validate(order),
        "message": "Payment session created. Redirect to payment.",
    }


def _orders_page(orders, params: PageParams, total: int, message: str) -> dict:
    return {
        "success": True,
        "data": [OrderRead.model_validate(o) for o in orders],
        "pagination": pagination_meta(params, total, len(orders)),
        "message": message,
    }


# ---------- Checkout ----------
@router.post("/create-order-cart/{cart_id}/{address_id}", status_code=201)
async def create_order_from_cart(
    cart_id: str,
    address_id: str,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    user: User = Depends(get_current_user),
):
    order, session = await CheckoutService(db, gateway).checkout_cart(user, cart_id, address_id)
    return _checkout_response(order, session)


@router.post("/create-order-product/{product_id}/{address_id}", status_code=201)
async def create_order_from_product(
    product_id: str,
    address_id: str,
    data: Optional[ProductOrderIn] = None,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    user: User = Depends(get_current_user),
):
    quantity = data.quantity if data else 1
    order, session = await CheckoutService(db, gateway).checkout_product(user, product_id, quantity, address_id)
    return _checkout_response(order, session)


@router.post("/create-order-products-multiple/{address_id}", status_code=201)
async def create_order_from_products(
    address_id: str,
    data: MultiProductOrderIn,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    user: User = Depends(get_current_user),
):
    order, session = await CheckoutService(db, gateway).checkout_products(user, data.items, address_id)
    return _checkout_response(order, session)


# ---------- Payment reconciliation ----------
async def _owned_order_or_404(db: AsyncSession, order_id: str, user: User) -> Order:
    order = await order_crud.get_order_or_404(db, order_id)
    if order.buyer_id != user.id and not is_admin(user):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/verify-payment")
async def verify_payment(
    data: PaymentVerification,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    user: User = Depends(get_current_user),
):
    await _owned_order_or_404(db, data.order_id, user)
    result = await PaymentReconciler(db, gateway).reconcile(data.session_id, data.order_id)
    schedule_confirmation(background_tasks, result)

    paid = result.order.payment_status == PaymentStatus.COMPLETED
    return {
        "success": True,
        "order": OrderRead.model_validate(result.order),
        "message": "Payment verified successfully" if paid else f"Payment is {result.order.payment_status.value}",
    }


@router.post("/cancel-payment")
async def cancel_payment(
    data: PaymentVerification,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    user: User = Depends(get_current_user),
):
    await _owned_order_or_404(db, data.order_id, user)
    result = await PaymentReconciler(db, gateway).reconcile(
        data.session_id, data.order_id, unpaid_outcome=PaymentStatus.CANCELLED
    )
    schedule_confirmation(background_tasks, result)
    return {
        "success": True,
        "order": OrderRead.model_validate(result.order),
        "message": f"Payment is {result.order.payment_status.value}",
    }


# ---------- Admin ----------
@router.patch("/update-order-status/{order_id}")
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    order = await order_crud.get_order_or_404(db, order_id)
    order = await order_crud.update_order_status(db, order, data.order_status)
    return {"success": True, "order": OrderRead.model_validate(order), "message": "Order status updated successfully"}


@router.get("/all-orders")
async def all_orders(
    orderStatus: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    status = parse_order_status(orderStatus) if orderStatus else None
    orders, total = await order_crud.list_orders(db, params, order_status=status)
    if not orders:
        message = f"No orders found with status: {status.value}" if status else "No orders found"
    else:
        message = "Orders fetched successfully"
    return _orders_page(orders, params, total, message)


@router.get("/orders-by-status")
async def orders_by_status(
    orderStatus: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    raw = [s.strip() for s in (orderStatus or "").split(",") if s.strip()]
    if not raw:
        raise HTTPException(status_code=400, detail="At least 1 order status required!")

    invalid = [s for s in raw if s not in VALID_ORDER_STATUSES]
    if invalid:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid statuses: {', '.join(invalid)}. Valid statuses are: {', '.join(VALID_ORDER_STATUSES)}",
        )

    statuses = list(dict.fromkeys(OrderStatus(s) for s in raw))
    groups, total = await order_crud.orders_grouped_by_status(db, statuses, params)
    return {
        "success": True,
        "data": [
            {"status": g["status"].value, "orders": [OrderRead.model_validate(o) for o in g["orders"]]}
            for g in groups
        ],
        "pagination": {
            **pagination_meta(params, total, 0),
            "hasNextPage": params.page * params.limit < total,
        },
        "message": "Orders fetched successfully",
    }


# ---------- Buyer ----------
@router.get("/current-user-orders")
async def current_user_orders(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    orders, total = await order_crud.list_orders(db, params, buyer_id=user.id)
    return _orders_page(orders, params, total, "Orders fetched successfully" if orders else "No orders found")


@router.get("/user-orders/{user_id}")
async def user_orders(
    user_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if user.id != user_id and not is_admin(user):
        raise HTTPException(status_code=403, detail="Not allowed to view these orders")
    orders, total = await order_crud.list_orders(db, params, buyer_id=user_id)
    return _orders_page(orders, params, total, "Orders fetched successfully" if orders else "No orders found")


@router.get("/{order_id}")
async def order_details(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    order = await _owned_order_or_404(db, order_id, user)
    return {"success": True, "order": OrderRead.model_validate(order), "message": "Order fetched successfully"}
