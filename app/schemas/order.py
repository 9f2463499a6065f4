import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.order import OrderStatus, PaymentStatus
from app.schemas.address import AddressRead


class OrderItemRead(BaseModel):
    product_id: Optional[str] = None
    item_name: str
    quantity: int
    price_at_time_of_order: float

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    id: str
    buyer_id: uuid.UUID
    address_id: Optional[str] = None
    cart_id: Optional[str] = None
    items: List[OrderItemRead] = []
    total_price: float
    total_quantity: int
    payment_status: PaymentStatus
    order_status: OrderStatus
    payment_session_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    address: Optional[AddressRead] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductOrderIn(BaseModel):
    quantity: int = 1


class OrderLineIn(BaseModel):
    product_id: str
    quantity: int = 1


class MultiProductOrderIn(BaseModel):
    items: List[OrderLineIn] = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    order_status: OrderStatus


class PaymentVerification(BaseModel):
    session_id: str
    order_id: str
