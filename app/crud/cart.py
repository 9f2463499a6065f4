# app/crud/cart.py
import logging
import uuid
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.models.cart import Cart, CartItem
from app.models.catalog import Product

log = logging.getLogger(__name__)


def validate_quantity(quantity, allow_zero: bool = False) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise HTTPException(status_code=400, detail="Quantity must be an integer")
    if allow_zero and quantity < 0:
        raise HTTPException(status_code=400, detail="Quantity must be a non-negative integer")
    if not allow_zero and quantity < 1:
        raise HTTPException(status_code=400, detail="Quantity must be a positive integer")
    return quantity


async def get_product_or_404(db: AsyncSession, product_id: str) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found with the given Product id")
    return product


def _cart_query():
    return (
        select(Cart)
        .options(selectinload(Cart.items).selectinload(CartItem.product))
        .execution_options(populate_existing=True)
    )


async def get_cart_for_user(db: AsyncSession, user_id: uuid.UUID) -> Optional[Cart]:
    result = await db.execute(_cart_query().where(Cart.owner_id == user_id))
    return result.scalar_one_or_none()


async def get_cart(db: AsyncSession, cart_id: str) -> Optional[Cart]:
    result = await db.execute(_cart_query().where(Cart.id == cart_id))
    return result.scalar_one_or_none()


async def get_cart_or_404(db: AsyncSession, user_id: uuid.UUID, detail: str = "Cart not found") -> Cart:
    cart = await get_cart_for_user(db, user_id)
    if not cart:
        raise HTTPException(status_code=404, detail=detail)
    return cart


async def get_or_create_cart(db: AsyncSession, user_id: uuid.UUID) -> Cart:
    cart = await get_cart_for_user(db, user_id)
    if cart:
        return cart

    db.add(Cart(owner_id=user_id))
    try:
        await db.commit()
        log.info("cart created: user=%s", user_id)
    except IntegrityError:
        # a concurrent request created it first
        await db.rollback()
    return await get_cart_for_user(db, user_id)


async def add_product(db: AsyncSession, user_id: uuid.UUID, product_id: str, quantity: int) -> Cart:
    validate_quantity(quantity)
    product = await get_product_or_404(db, product_id)
    if not product.is_available:
        raise HTTPException(status_code=400, detail="Product is not available")

    cart = await get_or_create_cart(db, user_id)
    cart_id = cart.id
    item = cart.find_item(product_id)

    if item:
        # atomic increment: UPDATE ... SET quantity = quantity + n
        item.quantity = CartItem.quantity + quantity
        await db.commit()
    else:
        cart.items.append(CartItem(product_id=product_id, quantity=quantity))
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            await db.execute(
                update(CartItem)
                .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
                .values(quantity=CartItem.quantity + quantity)
            )
            await db.commit()

    log.info("cart add: user=%s product=%s qty=%s", user_id, product_id, quantity)
    return await get_cart(db, cart_id)


async def set_quantity(db: AsyncSession, user_id: uuid.UUID, product_id: str, quantity: int) -> Cart:
    validate_quantity(quantity, allow_zero=True)
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    cart = await get_cart_or_404(db, user_id)
    item = cart.find_item(product_id)
    if not item:
        raise HTTPException(status_code=404, detail="Product not found in cart")

    if quantity == 0:
        cart.items.remove(item)
    else:
        item.quantity = quantity
    await db.commit()
    return await get_cart(db, cart.id)


async def decrement_product(db: AsyncSession, user_id: uuid.UUID, product_id: str) -> Cart:
    cart = await get_cart_or_404(db, user_id, detail="Cart with the given owner doesn't exist")
    item = cart.find_item(product_id)
    if not item:
        raise HTTPException(status_code=404, detail="Product not found in cart")

    if item.quantity <= 1:
        cart.items.remove(item)
    else:
        item.quantity = item.quantity - 1
    await db.commit()
    return await get_cart(db, cart.id)


async def remove_product(db: AsyncSession, user_id: uuid.UUID, product_id: str) -> Cart:
    cart = await get_cart_or_404(db, user_id)
    item = cart.find_item(product_id)
    if not item:
        raise HTTPException(status_code=404, detail="Product not in cart")

    cart.items.remove(item)
    await db.commit()
    return await get_cart(db, cart.id)


async def empty_cart(db: AsyncSession, cart_id: str) -> int:
    """Delete every line of a cart. Caller commits. Returns lines removed."""
    result = await db.execute(delete(CartItem).where(CartItem.cart_id == cart_id))
    return result.rowcount or 0


async def clear_cart(db: AsyncSession, user_id: uuid.UUID) -> Cart:
    cart = await get_cart_or_404(db, user_id)
    await empty_cart(db, cart.id)
    await db.commit()
    return await get_cart(db, cart.id)


async def delete_cart(db: AsyncSession, user_id: uuid.UUID) -> None:
    cart = await get_cart_or_404(db, user_id)
    await db.delete(cart)
    await db.commit()
    log.info("cart deleted: user=%s cart=%s", user_id, cart.id)
