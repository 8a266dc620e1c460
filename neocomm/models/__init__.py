"""Convenience exports for ORM models."""
from .friendship import FRIENDSHIP_ACCEPTED, Friendship
from .message import Message
from .user import User

__all__ = [
    "FRIENDSHIP_ACCEPTED",
    "Friendship",
    "Message",
    "User",
]
