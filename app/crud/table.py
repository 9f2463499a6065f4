from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.reservation import Table
from app.schemas.reservation import TableCreate, TableUpdate


async def get_table(db: AsyncSession, table_id: str) -> Optional[Table]:
    return await db.get(Table, table_id)


async def get_table_or_404(db: AsyncSession, table_id: str) -> Table:
    table = await get_table(db, table_id)
    if not table:
        raise HTTPException(status_code=404, detail="Table may not exist")
    return table


async def get_tables(db: AsyncSession, active_only: bool = False) -> List[Table]:
    query = select(Table).order_by(Table.number)
    if active_only:
        query = query.where(Table.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


async def _number_taken(db: AsyncSession, number: int, exclude_id: Optional[str] = None) -> bool:
    query = select(Table.id).where(Table.number == number)
    if exclude_id:
        query = query.where(Table.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


async def create_table(db: AsyncSession, data: TableCreate) -> Table:
    if await _number_taken(db, data.number):
        raise HTTPException(status_code=400, detail=f"Table number {data.number} already exists")

    table = Table(number=data.number, capacity=data.capacity, is_active=True)
    db.add(table)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail=f"Table number {data.number} already exists")
    await db.refresh(table)
    return table


async def update_table(db: AsyncSession, table: Table, updates: TableUpdate) -> Table:
    update_data = updates.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="At least 1 field is required for the update")

    number = update_data.get("number")
    if number is not None and await _number_taken(db, number, exclude_id=table.id):
        raise HTTPException(status_code=400, detail=f"Table number {number} already exists")

    for key, value in update_data.items():
        setattr(table, key, value)

    await db.commit()
    await db.refresh(table)
    return table


async def delete_table(db: AsyncSession, table: Table) -> None:
    await db.delete(table)
    await db.commit()
