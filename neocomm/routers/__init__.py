"""Aggregate router exports."""
from .auth import router as auth_router
from .friends import router as friends_router
from .messages import router as messages_router
from .profiles import router as profiles_router
from .realtime import router as realtime_router

__all__ = [
    "auth_router",
    "friends_router",
    "messages_router",
    "profiles_router",
    "realtime_router",
]
