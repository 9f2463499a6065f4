from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Index, text
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid, enum

from app.models.base import Base, TimestampMixin


class ReservationStatus(enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


ACTIVE_RESERVATION_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class Reservation(TimestampMixin, Base):
    __tablename__ = "reservations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    table_id = Column(String, ForeignKey("tables.id", ondelete="CASCADE"), nullable=False)

    # Naive restaurant-local slot start
    reservation_date = Column(DateTime, nullable=False)
    party_size = Column(Integer, nullable=False, default=1)
    status = Column(
        Enum(
            ReservationStatus,
            values_callable=lambda e: [m.value for m in e],
            name="reservation_status",
        ),
        default=ReservationStatus.PENDING,
        nullable=False,
    )

    user = relationship("User", back_populates="reservations")
    table = relationship("Table", back_populates="reservations")

    # One live booking per table and slot; cancelled rows don't count
    __table_args__ = (
        Index(
            "uq_reservation_table_slot_active",
            "table_id",
            "reservation_date",
            unique=True,
            sqlite_where=text("status != 'Cancelled'"),
            postgresql_where=text("status != 'Cancelled'"),
        ),
        Index("idx_reservations_date", "reservation_date"),
    )
