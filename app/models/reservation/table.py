from sqlalchemy import Column, String, Integer, Boolean
from sqlalchemy.orm import relationship
import uuid

from app.models.base import Base, TimestampMixin


class Table(TimestampMixin, Base):
    __tablename__ = "tables"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    number = Column(Integer, nullable=False, unique=True)
    capacity = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    reservations = relationship(
        "Reservation", back_populates="table", cascade="all, delete-orphan", passive_deletes=True
    )
