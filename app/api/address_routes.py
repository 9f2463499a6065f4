from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.crud import address as address_crud
from app.db import get_db
from app.models.user import User
from app.schemas.address import AddressCreate, AddressRead

router = APIRouter()


@router.post("", status_code=201)
async def create_address(
    data: AddressCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    address = await address_crud.create_address(db, user.id, data)
    return {"success": True, "data": AddressRead.model_validate(address), "message": "Address created"}


@router.get("")
async def list_addresses(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    addresses = await address_crud.get_addresses_for_user(db, user.id)
    return {
        "success": True,
        "data": [AddressRead.model_validate(a) for a in addresses],
        "message": "Addresses fetched successfully",
    }


@router.get("/{address_id}")
async def get_address(
    address_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    address = await address_crud.get_owned_address_or_404(db, address_id, user.id)
    return {"success": True, "data": AddressRead.model_validate(address), "message": "Address fetched"}


@router.delete("/{address_id}")
async def delete_address(
    address_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    address = await address_crud.get_owned_address_or_404(db, address_id, user.id)
    await address_crud.delete_address(db, address)
    return {"success": True, "message": "Address deleted"}
