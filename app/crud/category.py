from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.models.catalog import Category
from app.schemas.catalog import CategoryCreate, CategoryUpdate
from app.utils.pagination import PageParams, paginate


async def get_category_by_name(db: AsyncSession, name: str) -> Optional[Category]:
    result = await db.execute(select(Category).where(Category.name == name))
    return result.scalar_one_or_none()


async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
    """Create a category; names are unique"""
    if await get_category_by_name(db, data.name):
        raise HTTPException(status_code=400, detail="Category with the given name already exists")

    category = Category(name=data.name.strip(), description=data.description.strip())
    db.add(category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Category with the given name already exists")
    await db.refresh(category)
    return category


async def get_categories(db: AsyncSession, params: PageParams):
    """One page of categories with their products"""
    query = (
        select(Category)
        .options(selectinload(Category.products))
        .order_by(Category.name)
    )
    return await paginate(db, query, params)


async def get_category(db: AsyncSession, category_id: str, with_products: bool = False) -> Optional[Category]:
    query = select(Category).where(Category.id == category_id)
    if with_products:
        query = query.options(selectinload(Category.products))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def update_category(db: AsyncSession, category_id: str, updates: CategoryUpdate) -> Optional[Category]:
    category = await get_category(db, category_id)
    if not category:
        return None

    update_data = updates.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="At least 1 field is required to change")

    new_name = update_data.get("name")
    if new_name and new_name != category.name and await get_category_by_name(db, new_name):
        raise HTTPException(status_code=400, detail="Category with the given name already exists")

    for key, value in update_data.items():
        setattr(category, key, value)

    await db.commit()
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, category_id: str) -> Optional[Category]:
    """Deletes the category and its products; products stay loaded on the
    returned object so the caller can clean up their images."""
    category = await get_category(db, category_id, with_products=True)
    if category:
        await db.delete(category)
        await db.commit()
    return category
