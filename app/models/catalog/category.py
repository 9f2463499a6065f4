from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship
import uuid

from app.models.base import Base, TimestampMixin


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=False)

    products = relationship("Product", back_populates="category", cascade="all, delete-orphan")
