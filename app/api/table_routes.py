from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin_user
from app.crud import table as table_crud
from app.db import get_db
from app.models.user import User
from app.schemas.reservation import TableCreate, TableRead, TableUpdate

router = APIRouter()


@router.post("", status_code=201)
async def create_table(
    data: TableCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    table = await table_crud.create_table(db, data)
    return {"success": True, "data": TableRead.model_validate(table), "message": "Table created successfully!"}


@router.get("")
async def list_tables(db: AsyncSession = Depends(get_db)):
    tables = await table_crud.get_tables(db)
    return {
        "success": True,
        "data": [TableRead.model_validate(t) for t in tables],
        "message": "Tables fetched successfully!",
    }


@router.get("/{table_id}")
async def get_table(table_id: str, db: AsyncSession = Depends(get_db)):
    table = await table_crud.get_table_or_404(db, table_id)
    return {"success": True, "data": TableRead.model_validate(table), "message": "Table fetched successfully!"}


@router.patch("/{table_id}")
async def update_table(
    table_id: str,
    updates: TableUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    table = await table_crud.get_table_or_404(db, table_id)
    table = await table_crud.update_table(db, table, updates)
    return {"success": True, "data": TableRead.model_validate(table), "message": "Table updated successfully!"}


@router.delete("/{table_id}")
async def delete_table(
    table_id: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_current_admin_user),
):
    table = await table_crud.get_table_or_404(db, table_id)
    await table_crud.delete_table(db, table)
    return {"success": True, "message": "Table deleted successfully!"}
