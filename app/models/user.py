from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID

from app.models.base import Base, TimestampMixin


class User(SQLAlchemyBaseUserTableUUID, TimestampMixin, Base):
    __tablename__ = "users"

    name = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)
    role = Column(String, nullable=False, default="customer")  # "customer", "admin"
    refresh_token = Column(String, nullable=True)

    cart = relationship("Cart", back_populates="owner", uselist=False, cascade="all, delete-orphan")
    addresses = relationship("Address", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="buyer")
    reservations = relationship("Reservation", back_populates="user", cascade="all, delete-orphan")
