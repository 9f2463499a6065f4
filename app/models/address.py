from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid

from app.models.base import Base, TimestampMixin


class Address(TimestampMixin, Base):
    __tablename__ = "addresses"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    label = Column(String, nullable=True)  # "Home", "Work"
    street = Column(String, nullable=False)
    city = Column(String, nullable=False)
    state = Column(String, nullable=True)
    postal_code = Column(String, nullable=False)
    country = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)

    user = relationship("User", back_populates="addresses")
