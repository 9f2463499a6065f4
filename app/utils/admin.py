# app/utils/admin.py
import logging
from typing import Optional

from fastapi_users import exceptions as user_exceptions
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.auth.manager import UserManager
from app.core.constants import ROLE_ADMIN
from app.models.user import User
from app.schemas.user import UserCreate

log = logging.getLogger(__name__)


async def get_any_admin(db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.role == ROLE_ADMIN))
    return result.scalars().first()


async def ensure_admin(
    db: AsyncSession,
    email: str,
    password: str,
    name: str = "Admin",
    phone_number: str = "0000000000",
) -> User:
    """Create the account if needed and make sure it carries the admin role."""
    manager = UserManager(SQLAlchemyUserDatabase(db, User))
    try:
        user = await manager.get_by_email(email)
    except user_exceptions.UserNotExists:
        user = await manager.create(
            UserCreate(email=email, password=password, name=name, phone_number=phone_number),
            safe=True,
        )
        log.info("admin account created: %s", email)

    if user.role != ROLE_ADMIN:
        user = await manager.user_db.update(user, {"role": ROLE_ADMIN})
        log.info("admin role granted: %s", email)
    return user


async def seed_default_admin(db: AsyncSession, email: Optional[str], password: Optional[str]) -> None:
    """Startup hook: seed an admin from settings when the database has none."""
    if await get_any_admin(db):
        log.info("admin already exists, no seed needed")
        return
    if not email or not password:
        log.warning("no admin account and ADMIN_EMAIL/ADMIN_PASSWORD not set")
        return
    await ensure_admin(db, email, password)
