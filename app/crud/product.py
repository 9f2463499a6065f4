# app/crud/product.py
import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.catalog import Category, Product
from app.schemas.catalog import ProductUpdate
from app.utils.pagination import PageParams, paginate

log = logging.getLogger(__name__)


async def get_product(db: AsyncSession, product_id: str) -> Optional[Product]:
    return await db.get(Product, product_id)


async def get_product_or_404(db: AsyncSession, product_id: str) -> Product:
    product = await get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def get_products(
    db: AsyncSession,
    params: PageParams,
    category_id: Optional[str] = None,
    available: Optional[bool] = None,
):
    query = select(Product).order_by(Product.created_at.desc(), Product.name)
    if category_id:
        query = query.where(Product.category_id == category_id)
    if available is not None:
        query = query.where(Product.is_available == available)
    return await paginate(db, query, params)


async def create_product(
    db: AsyncSession,
    category: Category,
    *,
    name: str,
    description: str,
    price: float,
    ingredients: List[str],
    uploaded: List[Tuple[str, str]],
) -> Product:
    """``uploaded`` is a list of (public_url, storage_key) pairs."""
    if not uploaded:
        raise HTTPException(status_code=400, detail="At least one image is required")

    product = Product(
        name=name,
        description=description,
        price=price,
        ingredients=ingredients,
        images=[url for url, _ in uploaded],
        image_keys=[key for _, key in uploaded],
        category_id=category.id,
        is_available=True,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)
    log.info("product listed: id=%s category=%s images=%s", product.id, category.id, len(uploaded))
    return product


async def add_images(db: AsyncSession, product: Product, uploaded: List[Tuple[str, str]]) -> Product:
    # JSON columns: assign new lists so the change is tracked
    product.images = list(product.images or []) + [url for url, _ in uploaded]
    product.image_keys = list(product.image_keys or []) + [key for _, key in uploaded]
    await db.commit()
    await db.refresh(product)
    return product


async def remove_image(db: AsyncSession, product: Product, key: str) -> Product:
    keys = list(product.image_keys or [])
    if key not in keys:
        raise HTTPException(status_code=404, detail="Image not found on this product")
    if len(keys) <= 1:
        raise HTTPException(status_code=400, detail="A product must keep at least one image")

    index = keys.index(key)
    images = list(product.images or [])
    keys.pop(index)
    if index < len(images):
        images.pop(index)

    product.images = images
    product.image_keys = keys
    await db.commit()
    await db.refresh(product)
    return product


async def toggle_availability(db: AsyncSession, product: Product) -> Product:
    product.is_available = not product.is_available
    await db.commit()
    await db.refresh(product)
    log.info("product availability: id=%s available=%s", product.id, product.is_available)
    return product


async def update_product(db: AsyncSession, product: Product, updates: ProductUpdate) -> Product:
    update_data = updates.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="At least 1 field is required for the update")

    for key, value in update_data.items():
        setattr(product, key, value)

    await db.commit()
    await db.refresh(product)
    return product


async def change_category(db: AsyncSession, product: Product, category: Category) -> Product:
    product.category_id = category.id
    await db.commit()
    await db.refresh(product)
    return product


async def delete_product(db: AsyncSession, product: Product) -> List[str]:
    """Delete the product; returns the storage keys of its images."""
    keys = list(product.image_keys or [])
    await db.delete(product)
    await db.commit()
    return keys
