"""Schemas for profile endpoints."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ProfileResponse(BaseModel):
    id: UUID
    username: str
    email: str | None = None
    status: str | None = None
    avatar_url: str | None = None


class ProfileUpdateRequest(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=150)
    status: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=1024)

    @field_validator("username", mode="before")
    def strip_username(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v


__all__ = ["ProfileResponse", "ProfileUpdateRequest"]
