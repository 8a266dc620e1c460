"""Profile routes for the signed-in user."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import ProfileResponse, ProfileUpdateRequest
from ..services import get_current_user, to_profile_response, update_profile

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def my_profile(current_user: User = Depends(get_current_user)) -> ProfileResponse:
    return to_profile_response(current_user)


@router.put("", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    updated = await run_in_threadpool(update_profile, db, user_id=current_user.id, payload=payload)
    return to_profile_response(updated)
