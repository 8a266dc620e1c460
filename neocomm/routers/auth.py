"""Authentication related API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..database import get_session
from ..schemas import AuthResponse, LoginRequest, SignupRequest
from ..services import Unauthenticated, authenticate_user, create_access_token, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup_endpoint(
    payload: SignupRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    user, token = await run_in_threadpool(register_user, db, payload)
    return AuthResponse(access_token=token, user_id=user.id, username=user.username)


@router.post("/login", response_model=AuthResponse)
async def login_endpoint(
    payload: LoginRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    user = await run_in_threadpool(authenticate_user, db, str(payload.email), payload.password)
    if not user:
        raise Unauthenticated("Invalid email or password")
    token = create_access_token(user.id, username=user.username)
    return AuthResponse(access_token=token, user_id=user.id, username=user.username)
