import uuid

from fastapi import Depends
from fastapi_users import FastAPIUsers
from fastapi_users.authentication import AuthenticationBackend, JWTStrategy, BearerTransport, CookieTransport
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.auth.manager import UserManager
from app.auth.config import auth_config
from app.core.config import settings
from app.db import get_db

bearer_transport = BearerTransport(tokenUrl="api/v1/user/login")
cookie_transport = CookieTransport(
    cookie_name=auth_config.access_cookie_name,
    cookie_max_age=auth_config.jwt_lifetime_seconds,
    cookie_secure=settings.cookie_secure,
)


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(
        secret=auth_config.secret,
        lifetime_seconds=auth_config.jwt_lifetime_seconds,
        token_audience=[auth_config.jwt_audience],  # ✅ MUST match JWT aud
        algorithm=auth_config.jwt_algorithm,
    )


bearer_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

cookie_backend = AuthenticationBackend(
    name="cookie",
    transport=cookie_transport,
    get_strategy=get_jwt_strategy,
)


# Dependency to get User DB
async def get_user_db(session: AsyncSession = Depends(get_db)):
    yield SQLAlchemyUserDatabase(session, User)


# Dependency to get UserManager
async def get_user_manager(user_db=Depends(get_user_db)):
    yield UserManager(user_db)


fastapi_users = FastAPIUsers[User, uuid.UUID](
    get_user_manager,
    [bearer_backend, cookie_backend],
)

# Export user dependencies
current_active_user = fastapi_users.current_user(active=True)
optional_current_user = fastapi_users.current_user(active=True, optional=True)
