"""Error taxonomy shared by the chat services.

Services raise these instead of ``HTTPException`` so they can be exercised
without a transport; ``neocomm.main`` renders them as JSON responses.
"""
from __future__ import annotations

from typing import Any

from fastapi import status


class ChatServiceError(RuntimeError):
    """Base class for failures surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Server error"

    def __init__(self, detail: Any = None) -> None:
        self.detail = detail if detail is not None else self.default_detail
        super().__init__(str(self.detail))


class Unauthenticated(ChatServiceError):
    """Missing, malformed, expired or wrongly signed credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid token"


class Forbidden(ChatServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not friends with this user"


class NotFound(ChatServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "User not found"


class AlreadyExists(ChatServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Friendship already exists"


class InvalidRequest(ChatServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class StoreFailure(ChatServiceError):
    """Persistence failed; the operation was rolled back and may be retried by the client."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Server error"


__all__ = [
    "ChatServiceError",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "AlreadyExists",
    "InvalidRequest",
    "StoreFailure",
]
