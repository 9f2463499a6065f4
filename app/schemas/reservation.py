import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.reservation import ReservationStatus


# ---------- Table ----------
class TableCreate(BaseModel):
    number: int = Field(..., gt=0)
    capacity: int = Field(..., gt=0)


class TableUpdate(BaseModel):
    number: Optional[int] = Field(None, gt=0)
    capacity: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class TableRead(BaseModel):
    id: str
    number: int
    capacity: int
    is_active: bool

    class Config:
        from_attributes = True


# ---------- Reservation ----------
class ReservationCreate(BaseModel):
    table_id: str
    date: str  # YYYY-MM-DD
    slot: str  # HH:MM
    party_size: int = Field(1, ge=1)


class ReservationUpdate(BaseModel):
    table_id: Optional[str] = None
    date: Optional[str] = None
    slot: Optional[str] = None
    party_size: Optional[int] = Field(None, ge=1)
    status: Optional[ReservationStatus] = None

    # accept "pending" as well as "Pending"
    @field_validator("status", mode="before")
    @classmethod
    def _capitalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class ReservationRead(BaseModel):
    id: str
    user_id: uuid.UUID
    table_id: str
    reservation_date: datetime
    party_size: int
    status: ReservationStatus
    table: Optional[TableRead] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SlotAvailability(BaseModel):
    slot: str
    available_tables: List[TableRead] = []
