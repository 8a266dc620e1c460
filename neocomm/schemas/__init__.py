"""Convenience exports for schema layer."""
from .auth import AuthResponse, LoginRequest, SignupRequest
from .friends import AddFriendRequest, FriendSummary
from .messages import MessageResponse, MessageSendRequest
from .profiles import ProfileResponse, ProfileUpdateRequest

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "SignupRequest",
    "AddFriendRequest",
    "FriendSummary",
    "MessageResponse",
    "MessageSendRequest",
    "ProfileResponse",
    "ProfileUpdateRequest",
]
