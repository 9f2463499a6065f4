from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AddressBase(BaseModel):
    label: Optional[str] = None
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone_number: Optional[str] = None


class AddressCreate(AddressBase):
    pass


class AddressRead(AddressBase):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True
