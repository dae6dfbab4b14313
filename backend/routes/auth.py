from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend import repositories
from backend.auth import authenticate, create_session_token, hash_password, require_user
from backend.schemas import LoginPayload, RegisterPayload, SessionResponse, UserResponse, envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")


@router.post("/register", status_code=201)
async def register(payload: RegisterPayload):
    try:
        user = await repositories.create_user(payload.email, hash_password(payload.password), payload.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return envelope(UserResponse.model_validate(repositories.public_user(user)).to_api())


@router.post("/login")
async def login(payload: LoginPayload):
    if not payload.email.strip() or not payload.password:
        raise HTTPException(status_code=400, detail="Please enter your email and password")
    user = await authenticate(payload.email, payload.password)
    if not user:
        logger.info("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token, expires = create_session_token(user["id"])
    session = SessionResponse(
        token=token,
        expires_at=expires.isoformat(),
        user=UserResponse.model_validate(repositories.public_user(user)),
    )
    return envelope(session.to_api())


@router.get("/me")
async def me(user: dict = Depends(require_user)):
    return envelope(UserResponse.model_validate(repositories.public_user(user)).to_api())
