# app/api/cart_routes.py
import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin_user, get_current_user
from app.crud import cart as cart_crud
from app.db import get_db
from app.models.user import User
from app.schemas.cart import CartRead, QuantityIn

router = APIRouter()


def _cart_response(cart, message: str) -> dict:
    return {"success": True, "cart": CartRead.from_cart(cart), "message": message}


# ➕ Create the cart, optionally with a first product
@router.post("/create-cart", status_code=201)
async def create_cart(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cart = await cart_crud.get_or_create_cart(db, user.id)
    return _cart_response(cart, "Cart created successfully")


@router.post("/create-cart/{product_id}", status_code=201)
async def create_cart_with_product(
    product_id: str,
    data: Optional[QuantityIn] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    quantity = data.quantity if data else 1
    cart = await cart_crud.add_product(db, user.id, product_id, quantity)
    return _cart_response(cart, "Product added to cart")


@router.post("/add-product/{product_id}")
async def add_product(
    product_id: str,
    data: Optional[QuantityIn] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    quantity = data.quantity if data else 1
    cart = await cart_crud.add_product(db, user.id, product_id, quantity)
    return _cart_response(cart, "Product added to cart")


@router.patch("/update-quantity/{product_id}")
async def update_quantity(
    product_id: str,
    data: QuantityIn,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cart = await cart_crud.set_quantity(db, user.id, product_id, data.quantity)
    return _cart_response(cart, "Cart updated")


@router.patch("/remove-all-same-products/{product_id}")
async def remove_all_same_products(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cart = await cart_crud.remove_product(db, user.id, product_id)
    return _cart_response(cart, "Product removed from cart")


@router.patch("/clear-cart")
async def clear_cart(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cart = await cart_crud.clear_cart(db, user.id)
    return _cart_response(cart, "Cart cleared")


# Declared after the fixed PATCH paths so they aren't captured as product ids
@router.patch("/{product_id}")
async def decrement_product(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cart = await cart_crud.decrement_product(db, user.id, product_id)
    return _cart_response(cart, "Product quantity decreased")


@router.get("/get-cart")
async def get_cart(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cart = await cart_crud.get_cart_for_user(db, user.id)
    return _cart_response(cart, "Cart fetched successfully" if cart else "Cart is empty")


@router.get("/get-cart/{user_id}")
async def get_cart_for_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    cart = await cart_crud.get_cart_for_user(db, user_id)
    return _cart_response(cart, "Cart fetched successfully" if cart else "Cart is empty")


@router.delete("/delete-cart")
async def delete_cart(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await cart_crud.delete_cart(db, user.id)
    return {"success": True, "message": "Cart deleted successfully"}
