# app/api/reservation_routes.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin_user, get_current_user, is_admin
from app.crud import reservation as reservation_crud
from app.db import get_db
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import User
from app.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationUpdate,
    SlotAvailability,
    TableRead,
)
from app.utils.pagination import PageParams, page_params, pagination_meta
from app.utils.timezones import local_today, parse_day

router = APIRouter()


def _reservation_response(reservation, message: str) -> dict:
    return {"success": True, "data": ReservationRead.model_validate(reservation), "message": message}


def _reservation_list(reservations, message: str) -> dict:
    return {
        "success": True,
        "data": [ReservationRead.model_validate(r) for r in reservations],
        "message": message,
    }


async def _visible_reservation(db: AsyncSession, reservation_id: str, user: User) -> Reservation:
    reservation = await reservation_crud.get_reservation_or_404(db, reservation_id)
    if reservation.user_id != user.id and not is_admin(user):
        raise HTTPException(status_code=403, detail="Not allowed to access this reservation")
    return reservation


# 🗓️ Availability + booking
@router.get("/available-slots")
async def available_slots(
    date: str = Query(...),
    party_size: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    day = parse_day(date)
    slots = await reservation_crud.get_available_slots(db, day, party_size)
    return {
        "success": True,
        "date": day.isoformat(),
        "data": [
            SlotAvailability(
                slot=s["slot"],
                available_tables=[TableRead.model_validate(t) for t in s["available_tables"]],
            )
            for s in slots
        ],
        "message": "Available slots fetched successfully",
    }


@router.post("/book", status_code=201)
async def book_reservation(
    data: ReservationCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reservation = await reservation_crud.create_reservation(db, user.id, data)
    return _reservation_response(reservation, "Reservation booked successfully")


@router.get("/my-reservations")
async def my_reservations(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reservations = await reservation_crud.get_reservations_for_user(db, user.id)
    return _reservation_list(reservations, "Reservations fetched successfully")


# 🛠️ Admin views
@router.get("/day")
async def reservations_for_day(
    date: str = Query(...),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    reservations = await reservation_crud.get_reservations_for_day(db, parse_day(date))
    return _reservation_list(reservations, f"Reservations for {date} fetched successfully")


@router.get("/today")
async def reservations_for_today(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    reservations = await reservation_crud.get_reservations_for_day(db, local_today())
    return _reservation_list(reservations, "Today's reservations fetched successfully")


@router.get("/all")
async def all_reservations(
    status: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    status_filter = None
    if status:
        try:
            status_filter = ReservationStatus(status.strip().capitalize())
        except ValueError:
            valid = ", ".join(s.value for s in ReservationStatus)
            raise HTTPException(status_code=400, detail=f"Invalid status. Valid statuses are: {valid}")

    reservations, total = await reservation_crud.get_all_reservations(db, params, status_filter)
    return {
        "success": True,
        "data": [ReservationRead.model_validate(r) for r in reservations],
        "pagination": pagination_meta(params, total, len(reservations), total_key="totalReservations"),
        "message": "Reservations fetched successfully",
    }


# ✏️ Single reservation
@router.patch("/cancel/{reservation_id}")
async def cancel_reservation(
    reservation_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reservation = await _visible_reservation(db, reservation_id, user)
    reservation = await reservation_crud.cancel_reservation(db, reservation)
    return _reservation_response(reservation, "Reservation cancelled successfully")


@router.get("/{reservation_id}")
async def get_reservation(
    reservation_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reservation = await _visible_reservation(db, reservation_id, user)
    return _reservation_response(reservation, "Reservation fetched successfully")


@router.patch("/{reservation_id}")
async def update_reservation(
    reservation_id: str,
    updates: ReservationUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reservation = await _visible_reservation(db, reservation_id, user)
    reservation = await reservation_crud.update_reservation(db, reservation, updates, as_admin=is_admin(user))
    return _reservation_response(reservation, "Reservation updated successfully")


@router.delete("/{reservation_id}")
async def delete_reservation(
    reservation_id: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    reservation = await reservation_crud.get_reservation_or_404(db, reservation_id)
    await reservation_crud.delete_reservation(db, reservation)
    return {"success": True, "message": "Reservation deleted successfully"}
