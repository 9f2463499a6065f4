import logging
import uuid
from typing import Optional, Union

from fastapi import Request
from fastapi_users import BaseUserManager, InvalidPasswordException, UUIDIDMixin, schemas

from app.models.user import User
from app.auth.config import auth_config

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = auth_config.secret
    verification_token_secret = auth_config.secret

    async def validate_password(
        self, password: str, user: Union[schemas.UC, User]
    ) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordException(
                reason=f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if user.email and user.email.lower() in password.lower():
            raise InvalidPasswordException(reason="Password should not contain e-mail")

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        log.info("user registered: id=%s email=%s", user.id, user.email)

    async def on_after_login(self, user: User, request: Optional[Request] = None, response=None):
        log.info("user logged in: id=%s", user.id)
