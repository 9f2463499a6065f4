# app/api/user_routes.py
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_users import exceptions as user_exceptions
from typing import Optional

from app.auth.config import auth_config
from app.auth.dependencies import get_current_admin_user, get_current_user
from app.auth.manager import UserManager
from app.auth.routes import get_jwt_strategy, get_user_manager
from app.auth.tokens import create_refresh_token, decode_refresh_token
from app.core.config import settings
from app.core.constants import ROLE_ADMIN
from app.models.user import User
from app.schemas.user import (
    AccountUpdate,
    LoginRequest,
    PasswordUpdate,
    RefreshRequest,
    UserCreate,
    UserRead,
    UserUpdate,
)

log = logging.getLogger(__name__)
router = APIRouter()


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    options = {"httponly": True, "secure": settings.cookie_secure, "samesite": "lax"}
    response.set_cookie(
        auth_config.access_cookie_name, access_token,
        max_age=auth_config.jwt_lifetime_seconds, **options,
    )
    response.set_cookie(
        auth_config.refresh_cookie_name, refresh_token,
        max_age=auth_config.refresh_lifetime_seconds, **options,
    )


async def _issue_tokens(user: User, user_manager: UserManager, response: Response) -> dict:
    access_token = await get_jwt_strategy().write_token(user)
    refresh_token = create_refresh_token(user)
    # only the latest refresh token is honoured
    await user_manager.user_db.update(user, {"refresh_token": refresh_token})
    _set_auth_cookies(response, access_token, refresh_token)
    return {"accessToken": access_token, "refreshToken": refresh_token}


@router.post("/register", status_code=201)
async def register(
    request: Request,
    data: UserCreate,
    user_manager: UserManager = Depends(get_user_manager),
):
    try:
        user = await user_manager.create(data, safe=True, request=request)
    except user_exceptions.UserAlreadyExists:
        raise HTTPException(status_code=409, detail="User with the given email already exists")
    except user_exceptions.InvalidPasswordException as e:
        raise HTTPException(status_code=400, detail=e.reason)

    return {
        "success": True,
        "data": UserRead.model_validate(user),
        "message": "User registered successfully",
    }


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    user_manager: UserManager = Depends(get_user_manager),
):
    credentials = OAuth2PasswordRequestForm(username=data.email, password=data.password)
    user = await user_manager.authenticate(credentials)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    tokens = await _issue_tokens(user, user_manager, response)
    await user_manager.on_after_login(user, request)
    return {
        "success": True,
        "data": {"user": UserRead.model_validate(user), **tokens},
        "message": "User logged in successfully",
    }


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    user_manager: UserManager = Depends(get_user_manager),
):
    token = request.cookies.get(auth_config.refresh_cookie_name) or (body.refresh_token if body else None)
    if not token:
        raise HTTPException(status_code=401, detail="Refresh token is required")

    user_id = decode_refresh_token(token)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    try:
        user = await user_manager.get(uuid.UUID(user_id))
    except (ValueError, user_exceptions.UserNotExists):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    if not user.is_active or user.refresh_token != token:
        raise HTTPException(status_code=401, detail="Refresh token is expired or used")

    tokens = await _issue_tokens(user, user_manager, response)
    return {"success": True, "data": tokens, "message": "Access token refreshed"}


@router.get("/current-user")
async def current_user(user: User = Depends(get_current_user)):
    return {
        "success": True,
        "data": UserRead.model_validate(user),
        "message": "Current user fetched successfully",
    }


@router.post("/logout")
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    await user_manager.user_db.update(user, {"refresh_token": None})
    response.delete_cookie(auth_config.access_cookie_name)
    response.delete_cookie(auth_config.refresh_cookie_name)
    log.info("user logged out: id=%s", user.id)
    return {"success": True, "message": "User logged out"}


@router.patch("/update-password")
async def update_password(
    request: Request,
    data: PasswordUpdate,
    user: User = Depends(get_current_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    verified, _ = user_manager.password_helper.verify_and_update(data.old_password, user.hashed_password)
    if not verified:
        raise HTTPException(status_code=400, detail="Invalid old password")

    try:
        await user_manager.update(UserUpdate(password=data.new_password), user, safe=True, request=request)
    except user_exceptions.InvalidPasswordException as e:
        raise HTTPException(status_code=400, detail=e.reason)

    return {"success": True, "message": "Password changed successfully"}


@router.patch("/update-account-details")
async def update_account_details(
    data: AccountUpdate,
    user: User = Depends(get_current_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="At least 1 field is required for the update")

    user = await user_manager.user_db.update(user, update_data)
    return {
        "success": True,
        "data": UserRead.model_validate(user),
        "message": "Account details updated successfully",
    }


@router.patch("/change-user-role/{user_id}")
async def change_user_role(
    user_id: uuid.UUID,
    admin: User = Depends(get_current_admin_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    try:
        user = await user_manager.get(user_id)
    except user_exceptions.UserNotExists:
        raise HTTPException(status_code=404, detail="User not found")

    user = await user_manager.user_db.update(user, {"role": ROLE_ADMIN})
    log.info("role changed: user=%s role=%s by=%s", user.id, ROLE_ADMIN, admin.id)
    return {
        "success": True,
        "data": UserRead.model_validate(user),
        "message": "User role updated successfully",
    }
