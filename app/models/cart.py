from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid

from app.models.base import Base, TimestampMixin


class Cart(TimestampMixin, Base):
    __tablename__ = "carts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    owner = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.created_at",
    )

    # Totals are derived from the line items; requires items + products loaded
    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return round(sum(item.line_total for item in self.items), 2)

    def find_item(self, product_id: str):
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None


class CartItem(TimestampMixin, Base):
    __tablename__ = "cart_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    cart_id = Column(String, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_item_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_item_quantity_positive"),
    )

    @property
    def line_total(self) -> float:
        return float(self.product.price) * self.quantity
