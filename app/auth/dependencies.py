# auth/dependencies.py
from fastapi import HTTPException, Depends

from app.auth.routes import current_active_user
from app.core.constants import ROLE_ADMIN
from app.models.user import User


async def get_current_user(user: User = Depends(current_active_user)):
    return user


async def get_current_admin_user(user: User = Depends(get_current_user)):
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access only")
    return user


def is_admin(user: User) -> bool:
    return user.role == ROLE_ADMIN
