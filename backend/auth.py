from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Header, HTTPException
from jose import JWTError, jwt

from backend import repositories
from backend.settings import get_settings

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized"


def hash_password(password: str) -> str:
    settings = get_settings()
    salt = bcrypt.gensalt(rounds=int(settings.password_hash_rounds))
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_session_token(user_id: str, now: datetime | None = None) -> tuple[str, datetime]:
    settings = get_settings()
    issued = now or datetime.now(timezone.utc)
    expires = issued + timedelta(seconds=settings.session_max_age_seconds)
    claims = {"sub": user_id, "iat": int(issued.timestamp()), "exp": int(expires.timestamp())}
    token = jwt.encode(claims, settings.session_secret, algorithm=settings.jwt_algorithm)
    return token, expires


def decode_session_token(token: str) -> str | None:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.session_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.debug("Rejected session token: %s", exc)
        return None
    user_id = claims.get("sub")
    return str(user_id) if user_id else None


async def authenticate(email: str, password: str) -> dict | None:
    user = await repositories.get_user_by_email(email)
    if not user or not verify_password(password, user.get("password_hash") or ""):
        return None
    return user


async def require_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    if not authorization:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    user_id = decode_session_token(token.strip())
    if not user_id:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    user = await repositories.get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    return user
