from sqlalchemy import Column, String, Float, Boolean, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
import uuid

from app.models.base import Base, TimestampMixin


class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    description = Column(String(500), nullable=False)
    price = Column(Float, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    ingredients = Column(JSON, default=list, nullable=False)

    # Public URLs, and the storage keys needed to delete them (same order)
    images = Column(JSON, default=list, nullable=False)
    image_keys = Column(JSON, default=list, nullable=False)

    category_id = Column(String, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    category = relationship("Category", back_populates="products")

    __table_args__ = (
        Index("idx_products_category", "category_id"),
    )
