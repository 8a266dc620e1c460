"""Friend management API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import AddFriendRequest, FriendSummary
from ..services import TokenIdentity, add_friend, get_current_identity, list_friends, public_avatar_url

router = APIRouter(prefix="/friends", tags=["friends"])


def _friend_summary(friend: User) -> FriendSummary:
    return FriendSummary(
        id=friend.id,
        username=friend.username,
        email=friend.email,
        status=friend.status,
        avatar_url=public_avatar_url(friend.avatar_url),
    )


@router.post("/add", response_model=FriendSummary, status_code=status.HTTP_201_CREATED)
async def add_friend_endpoint(
    payload: AddFriendRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_session),
) -> FriendSummary:
    _, friend = await run_in_threadpool(
        add_friend,
        db,
        requester_id=identity.user_id,
        email=str(payload.email) if payload.email else None,
        target_id=payload.friend_id,
    )
    return _friend_summary(friend)


@router.get("", response_model=list[FriendSummary])
async def my_friends_endpoint(
    identity: TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_session),
) -> list[FriendSummary]:
    friends = await run_in_threadpool(list_friends, db, user_id=identity.user_id)
    return [_friend_summary(friend) for friend in friends]


@router.get("/{user_id}", response_model=list[FriendSummary])
async def user_friends_endpoint(
    user_id: UUID,
    identity: TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_session),
) -> list[FriendSummary]:
    friends = await run_in_threadpool(list_friends, db, user_id=user_id)
    return [_friend_summary(friend) for friend in friends]


__all__ = ["router"]
