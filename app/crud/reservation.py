# app/crud/reservation.py
import logging
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.crud.table import get_tables
from app.models.reservation import Reservation, ReservationStatus, Table
from app.models.reservation.reservation import ACTIVE_RESERVATION_STATUSES
from app.schemas.reservation import ReservationCreate, ReservationUpdate
from app.utils.pagination import PageParams, paginate
from app.utils.time_windows import configured_slots, format_hhmm, normalize_slot, slot_datetime
from app.utils.timezones import day_bounds, local_now, parse_day

log = logging.getLogger(__name__)

SLOT_TAKEN = "Table is already booked for this time slot"


def _reservation_query():
    return (
        select(Reservation)
        .options(selectinload(Reservation.table))
        .execution_options(populate_existing=True)
    )


async def get_reservation(db: AsyncSession, reservation_id: str) -> Optional[Reservation]:
    result = await db.execute(_reservation_query().where(Reservation.id == reservation_id))
    return result.scalar_one_or_none()


async def get_reservation_or_404(db: AsyncSession, reservation_id: str) -> Reservation:
    reservation = await get_reservation(db, reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


# --------- Validation ---------
def resolve_slot(day_str: str, slot: str, now: Optional[datetime] = None) -> datetime:
    """
    Turn a (YYYY-MM-DD, HH:MM) pair into the slot's naive local start time.
    Rejects slots outside the configured set and slots already started.
    """
    day = parse_day(day_str)
    slots = configured_slots()
    try:
        normalized = normalize_slot(slot)
    except ValueError:
        normalized = None
    if normalized not in slots:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid time slot. Available slots: {', '.join(slots)}",
        )

    start = slot_datetime(day, normalized)
    if start <= (now or local_now()):
        raise HTTPException(status_code=400, detail="Cannot book a reservation in the past")
    return start


async def _bookable_table(db: AsyncSession, table_id: str, party_size: int) -> Table:
    table = await db.get(Table, table_id)
    if not table:
        raise HTTPException(status_code=404, detail="Table not found")
    if not table.is_active:
        raise HTTPException(status_code=400, detail="Table is not available for booking")
    if party_size > table.capacity:
        raise HTTPException(
            status_code=400,
            detail=f"Party size exceeds table capacity ({table.capacity})",
        )
    return table


async def find_active_booking(
    db: AsyncSession,
    table_id: str,
    start: datetime,
    exclude_id: Optional[str] = None,
) -> Optional[Reservation]:
    query = select(Reservation).where(
        Reservation.table_id == table_id,
        Reservation.reservation_date == start,
        Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
    )
    if exclude_id:
        query = query.where(Reservation.id != exclude_id)
    result = await db.execute(query)
    return result.scalars().first()


async def _commit_booking(db: AsyncSession) -> None:
    # the partial unique index catches the race the point lookup can't
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=SLOT_TAKEN)


# --------- Booking ---------
async def create_reservation(db: AsyncSession, user_id: uuid.UUID, data: ReservationCreate) -> Reservation:
    start = resolve_slot(data.date, data.slot)
    table = await _bookable_table(db, data.table_id, data.party_size)

    if await find_active_booking(db, table.id, start):
        raise HTTPException(status_code=409, detail=SLOT_TAKEN)

    reservation = Reservation(
        user_id=user_id,
        table_id=table.id,
        reservation_date=start,
        party_size=data.party_size,
        status=ReservationStatus.PENDING,
    )
    db.add(reservation)
    await _commit_booking(db)
    log.info("reservation booked: id=%s table=%s at=%s", reservation.id, table.number, start)
    return await get_reservation(db, reservation.id)


async def update_reservation(
    db: AsyncSession,
    reservation: Reservation,
    updates: ReservationUpdate,
    as_admin: bool = False,
) -> Reservation:
    if reservation.status == ReservationStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cancelled reservation cannot be updated")

    update_data = updates.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="At least 1 field is required for the update")

    status = update_data.get("status")
    if status == ReservationStatus.CONFIRMED and not as_admin:
        raise HTTPException(status_code=403, detail="Only admins can confirm a reservation")

    reschedule = any(key in update_data for key in ("table_id", "date", "slot"))
    table_id = update_data.get("table_id", reservation.table_id)
    party_size = update_data.get("party_size", reservation.party_size)
    start = reservation.reservation_date

    if reschedule:
        day_str = update_data.get("date", reservation.reservation_date.date().isoformat())
        slot = update_data.get("slot", format_hhmm(start.hour * 60 + start.minute))
        start = resolve_slot(day_str, slot)

    if reschedule or "party_size" in update_data:
        await _bookable_table(db, table_id, party_size)

    if reschedule and await find_active_booking(db, table_id, start, exclude_id=reservation.id):
        raise HTTPException(status_code=409, detail=SLOT_TAKEN)

    reservation.table_id = table_id
    reservation.reservation_date = start
    reservation.party_size = party_size
    if status is not None:
        reservation.status = status
    elif reschedule and not as_admin and reservation.status == ReservationStatus.CONFIRMED:
        # a new table or time needs a fresh confirmation
        reservation.status = ReservationStatus.PENDING

    await _commit_booking(db)
    log.info("reservation updated: id=%s fields=%s", reservation.id, sorted(update_data))
    return await get_reservation(db, reservation.id)


async def cancel_reservation(db: AsyncSession, reservation: Reservation) -> Reservation:
    if reservation.status == ReservationStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Reservation is already cancelled")

    reservation.status = ReservationStatus.CANCELLED
    await db.commit()
    log.info("reservation cancelled: id=%s", reservation.id)
    return await get_reservation(db, reservation.id)


async def delete_reservation(db: AsyncSession, reservation: Reservation) -> None:
    await db.delete(reservation)
    await db.commit()


# --------- Queries ---------
async def get_reservations_for_user(db: AsyncSession, user_id: uuid.UUID) -> List[Reservation]:
    result = await db.execute(
        _reservation_query()
        .where(Reservation.user_id == user_id)
        .order_by(Reservation.reservation_date.desc())
    )
    return result.scalars().all()


async def get_reservations_for_day(db: AsyncSession, day: date) -> List[Reservation]:
    start, end = day_bounds(day)
    result = await db.execute(
        _reservation_query()
        .where(Reservation.reservation_date >= start, Reservation.reservation_date < end)
        .order_by(Reservation.reservation_date)
    )
    return result.scalars().all()


async def get_all_reservations(
    db: AsyncSession,
    params: PageParams,
    status: Optional[ReservationStatus] = None,
):
    query = _reservation_query().order_by(Reservation.reservation_date.desc())
    if status is not None:
        query = query.where(Reservation.status == status)
    return await paginate(db, query, params)


async def get_available_slots(db: AsyncSession, day: date, party_size: int = 1) -> List[Dict]:
    """Every configured slot of ``day`` with the free active tables that seat the party."""
    tables = [t for t in await get_tables(db, active_only=True) if t.capacity >= party_size]
    start, end = day_bounds(day)
    result = await db.execute(
        select(Reservation.table_id, Reservation.reservation_date).where(
            Reservation.reservation_date >= start,
            Reservation.reservation_date < end,
            Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
        )
    )
    booked = {(table_id, at) for table_id, at in result.all()}

    now = local_now()
    availability = []
    for slot in configured_slots():
        at = slot_datetime(day, slot)
        if at <= now:
            continue
        free = [t for t in tables if (t.id, at) not in booked]
        availability.append({"slot": slot, "available_tables": free})
    return availability
