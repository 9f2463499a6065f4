# app/auth/tokens.py
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

import jwt

from app.auth.config import auth_config
from app.models.user import User

log = logging.getLogger(__name__)


def create_refresh_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "aud": auth_config.refresh_audience,
        "iat": now,
        "jti": uuid.uuid4().hex,
        "exp": now + timedelta(seconds=auth_config.refresh_lifetime_seconds),
    }
    return jwt.encode(payload, auth_config.refresh_secret, algorithm=auth_config.jwt_algorithm)


def decode_refresh_token(token: str) -> Optional[str]:
    """Return the user id carried by a refresh token, or None if it is invalid/expired."""
    try:
        decoded = jwt.decode(
            token,
            auth_config.refresh_secret,
            algorithms=[auth_config.jwt_algorithm],
            audience=auth_config.refresh_audience,
        )
    except jwt.ExpiredSignatureError:
        log.info("refresh token expired")
        return None
    except jwt.InvalidTokenError as e:
        log.info("invalid refresh token: %s", e)
        return None
    return decoded.get("sub")
