"""Schemas used by messaging endpoints and realtime events."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class MessageSendRequest(BaseModel):
    receiver_id: UUID = Field(..., description="Friend receiving the message")
    content: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    sent_at: datetime
    sender_username: str | None = None
    sender_avatar_url: str | None = None
    receiver_username: str | None = None
    receiver_avatar_url: str | None = None


__all__ = ["MessageSendRequest", "MessageResponse"]
