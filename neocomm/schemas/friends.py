"""Schemas for friendship endpoints."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator


class AddFriendRequest(BaseModel):
    email: EmailStr | None = Field(None, description="Email address of the user to befriend")
    friend_id: UUID | None = Field(None, description="Identifier of the user to befriend")

    @model_validator(mode="after")
    def require_target(self) -> "AddFriendRequest":
        if self.email is None and self.friend_id is None:
            raise ValueError("email or friend_id required")
        return self


class FriendSummary(BaseModel):
    id: UUID = Field(..., description="Friend user ID")
    username: str
    email: str | None = None
    status: str | None = None
    avatar_url: str | None = None


__all__ = ["AddFriendRequest", "FriendSummary"]
