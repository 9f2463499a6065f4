from sqlalchemy import Column, String, Integer, Float, ForeignKey, DateTime, Enum, CheckConstraint, Index
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
from datetime import datetime
import uuid, enum

from app.models.base import Base, TimestampMixin


class PaymentStatus(enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class OrderStatus(enum.Enum):
    PROCESSING = "Processing"
    PAID = "Paid"
    READY = "Ready"
    ON_THE_WAY = "On the way"
    RECEIVED = "Received"
    FAILED = "Failed"


# Completed and Failed never change again; Cancelled can still be settled by the gateway
TERMINAL_PAYMENT_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.FAILED)
OPEN_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.CANCELLED)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Order(TimestampMixin, Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    buyer_id = Column(GUID, ForeignKey("users.id"), nullable=False)
    address_id = Column(String, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)

    # Cart the order was checked out from; emptied once payment completes
    cart_id = Column(String, ForeignKey("carts.id", ondelete="SET NULL"), nullable=True)

    total_price = Column(Float, nullable=False)
    total_quantity = Column(Integer, nullable=False, default=1)

    payment_status = Column(
        Enum(PaymentStatus, values_callable=_enum_values, name="payment_status"),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    order_status = Column(
        Enum(OrderStatus, values_callable=_enum_values, name="order_status"),
        default=OrderStatus.PROCESSING,
        nullable=False,
    )
    payment_session_id = Column(String, nullable=True, index=True)
    paid_at = Column(DateTime, nullable=True)

    buyer = relationship("User", back_populates="orders")
    address = relationship("Address")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("total_price > 0", name="ck_order_total_price_positive"),
        Index("idx_orders_buyer", "buyer_id"),
        Index("idx_orders_status", "order_status"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False)

    # Snapshot pricing and name at time of order
    price_at_time_of_order = Column(Float, nullable=False)
    item_name = Column(String, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
