import uuid
from datetime import datetime
from typing import Optional

from fastapi_users import schemas
from pydantic import BaseModel, EmailStr, Field


class UserRead(schemas.BaseUser[uuid.UUID]):
    name: str
    phone_number: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None


class UserCreate(schemas.BaseUserCreate):
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)


class UserUpdate(schemas.BaseUserUpdate):
    name: Optional[str] = None
    phone_number: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class PasswordUpdate(BaseModel):
    old_password: str
    new_password: str


class AccountUpdate(BaseModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None
