"""Messaging API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..database import get_session
from ..schemas import MessageResponse, MessageSendRequest
from ..services import (
    DeliveryDispatcher,
    TokenIdentity,
    create_message,
    get_current_identity,
    list_conversation,
    to_message_response,
)

router = APIRouter(prefix="/messages", tags=["messages"])


def get_dispatcher(request: Request) -> DeliveryDispatcher:
    return request.app.state.dispatcher


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
    payload: MessageSendRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_session),
    dispatcher: DeliveryDispatcher = Depends(get_dispatcher),
) -> MessageResponse:
    record = await run_in_threadpool(
        create_message,
        db,
        sender_id=identity.user_id,
        receiver_id=payload.receiver_id,
        content=payload.content,
    )
    response = to_message_response(record)
    dispatcher.schedule_message(response)
    return response


@router.get("/{friend_id}", response_model=list[MessageResponse])
async def conversation_endpoint(
    friend_id: UUID,
    identity: TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_session),
) -> list[MessageResponse]:
    messages = await run_in_threadpool(list_conversation, db, identity.user_id, friend_id)
    return [to_message_response(item) for item in messages]


__all__ = ["router", "get_dispatcher"]
