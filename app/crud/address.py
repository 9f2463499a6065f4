import uuid
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.address import Address
from app.schemas.address import AddressCreate


async def create_address(db: AsyncSession, user_id: uuid.UUID, data: AddressCreate) -> Address:
    address = Address(user_id=user_id, **data.model_dump())
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address


async def get_addresses_for_user(db: AsyncSession, user_id: uuid.UUID) -> List[Address]:
    result = await db.execute(
        select(Address).where(Address.user_id == user_id).order_by(Address.created_at)
    )
    return result.scalars().all()


async def get_address(db: AsyncSession, address_id: str) -> Optional[Address]:
    return await db.get(Address, address_id)


async def get_owned_address_or_404(db: AsyncSession, address_id: str, user_id: uuid.UUID) -> Address:
    address = await get_address(db, address_id)
    if not address or address.user_id != user_id:
        raise HTTPException(status_code=404, detail="Address not found")
    return address


async def delete_address(db: AsyncSession, address: Address) -> None:
    await db.delete(address)
    await db.commit()
