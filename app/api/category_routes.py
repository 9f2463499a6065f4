from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin_user
from app.crud import category as category_crud
from app.db import get_db
from app.models.user import User
from app.schemas.catalog import CategoryCreate, CategoryRead, CategoryUpdate, CategoryWithProducts
from app.utils.pagination import PageParams, page_params, pagination_meta
from app.utils.storage import ImageStore, discard_images, get_image_store

router = APIRouter()


@router.post("/create-category", status_code=201)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    category = await category_crud.create_category(db, data)
    return {"success": True, "data": CategoryRead.model_validate(category), "message": "Category created successfully"}


@router.get("/all-categories")
async def all_categories(
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    categories, total = await category_crud.get_categories(db, params)
    return {
        "success": True,
        "data": [CategoryWithProducts.model_validate(c) for c in categories],
        "pagination": pagination_meta(params, total, len(categories), total_key="totalCategories"),
        "message": "Categories fetched successfully",
    }


@router.get("/{category_id}")
async def get_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    category = await category_crud.get_category(db, category_id, with_products=True)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "data": CategoryWithProducts.model_validate(category), "message": "Category fetched successfully"}


@router.patch("/{category_id}")
async def update_category(
    category_id: str,
    updates: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    category = await category_crud.update_category(db, category_id, updates)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "data": CategoryRead.model_validate(category), "message": "Category updated successfully"}


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    store: ImageStore = Depends(get_image_store),
    admin: User = Depends(get_current_admin_user),
):
    category = await category_crud.delete_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    keys = [key for product in category.products for key in (product.image_keys or [])]
    await discard_images(store, keys)
    return {"success": True, "message": "Category deleted successfully"}
