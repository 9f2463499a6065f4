from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ---------- Product ----------
class ProductRead(BaseModel):
    id: str
    name: str
    description: str
    price: float
    is_available: bool
    ingredients: List[str] = []
    images: List[str] = []
    category_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    price: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    ingredients: Optional[List[str]] = None


# ---------- Category ----------
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)


class CategoryRead(BaseModel):
    id: str
    name: str
    description: str
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryWithProducts(CategoryRead):
    products: List[ProductRead] = []
