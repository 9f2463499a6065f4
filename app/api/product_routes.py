# app/api/product_routes.py
import logging
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin_user
from app.crud import category as category_crud
from app.crud import product as product_crud
from app.db import get_db
from app.models.user import User
from app.schemas.catalog import ProductRead, ProductUpdate
from app.utils.pagination import PageParams, page_params, pagination_meta
from app.utils.storage import ImageStore, discard_images, get_image_store, save_uploads

log = logging.getLogger(__name__)
router = APIRouter()

MAX_DESCRIPTION_LENGTH = 500


def _product_response(product, message: str) -> dict:
    return {"success": True, "data": ProductRead.model_validate(product), "message": message}


def _parse_ingredients(raw: Optional[str]) -> List[str]:
    """'flour, sugar , eggs' -> ['flour', 'sugar', 'eggs']"""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


async def _category_or_404(db: AsyncSession, category_id: str):
    category = await category_crud.get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


# 📋 Public catalog
@router.get("")
async def list_products(
    category_id: Optional[str] = Query(None),
    available: Optional[bool] = Query(None),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    products, total = await product_crud.get_products(db, params, category_id, available)
    return {
        "success": True,
        "data": [ProductRead.model_validate(p) for p in products],
        "pagination": pagination_meta(params, total, len(products), total_key="totalProducts"),
        "message": "Products fetched successfully",
    }


@router.get("/{product_id}")
async def get_product(product_id: str, db: AsyncSession = Depends(get_db)):
    product = await product_crud.get_product_or_404(db, product_id)
    return _product_response(product, "Product fetched successfully")


# 🛠️ Admin
@router.post("/create-product/{category_id}", status_code=201)
async def create_product(
    category_id: str,
    name: str = Form(...),
    description: str = Form(...),
    price: float = Form(...),
    ingredients: Optional[str] = Form(None),
    images: List[UploadFile] = File(...),
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
    admin: User = Depends(get_current_admin_user),
):
    name, description = name.strip(), description.strip()
    if not name or not description:
        raise HTTPException(status_code=400, detail="Name and description are required")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise HTTPException(status_code=400, detail=f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    if not math.isfinite(price) or price <= 0:
        raise HTTPException(status_code=400, detail="Price must be a finite number greater than zero")
    if not images:
        raise HTTPException(status_code=400, detail="At least one image is required")

    category = await _category_or_404(db, category_id)
    uploaded = await save_uploads(store, images)
    try:
        product = await product_crud.create_product(
            db,
            category,
            name=name,
            description=description,
            price=price,
            ingredients=_parse_ingredients(ingredients),
            uploaded=uploaded,
        )
    except Exception:
        await discard_images(store, [key for _, key in uploaded])
        raise
    return _product_response(product, "Product listed successfully")


@router.post("/{product_id}/images")
async def add_product_images(
    product_id: str,
    images: List[UploadFile] = File(...),
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
    admin: User = Depends(get_current_admin_user),
):
    product = await product_crud.get_product_or_404(db, product_id)
    uploaded = await save_uploads(store, images)
    product = await product_crud.add_images(db, product, uploaded)
    return _product_response(product, "Images added successfully")


@router.delete("/{product_id}/images")
async def delete_product_image(
    product_id: str,
    key: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
    admin: User = Depends(get_current_admin_user),
):
    product = await product_crud.get_product_or_404(db, product_id)
    product = await product_crud.remove_image(db, product, key)
    await discard_images(store, [key])
    return _product_response(product, "Image deleted successfully")


@router.patch("/toggle-availability/{product_id}")
async def toggle_availability(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    product = await product_crud.get_product_or_404(db, product_id)
    product = await product_crud.toggle_availability(db, product)
    state = "available" if product.is_available else "unavailable"
    return _product_response(product, f"Product is now {state}")


@router.patch("/change-category/{product_id}/{category_id}")
async def change_product_category(
    product_id: str,
    category_id: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    product = await product_crud.get_product_or_404(db, product_id)
    category = await _category_or_404(db, category_id)
    product = await product_crud.change_category(db, product, category)
    return _product_response(product, "Product category changed successfully")


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    updates: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    product = await product_crud.get_product_or_404(db, product_id)
    product = await product_crud.update_product(db, product, updates)
    return _product_response(product, "Product updated successfully")


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
    admin: User = Depends(get_current_admin_user),
):
    product = await product_crud.get_product_or_404(db, product_id)
    keys = await product_crud.delete_product(db, product)
    await discard_images(store, keys)
    log.info("product deleted: id=%s images=%s", product_id, len(keys))
    return {"success": True, "message": "Product deleted successfully"}
