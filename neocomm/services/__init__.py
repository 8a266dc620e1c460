"""Convenience exports for service layer."""
from .auth_service import authenticate_user, hash_password, register_user, verify_password
from .connection_registry import ConnectionRegistry
from .dispatcher import RECEIVE_MESSAGE_EVENT, DeliveryDispatcher
from .errors import (
    AlreadyExists,
    ChatServiceError,
    Forbidden,
    InvalidRequest,
    NotFound,
    StoreFailure,
    Unauthenticated,
)
from .friendship_service import add_friend, are_friends, list_friends
from .identity_service import (
    TokenIdentity,
    create_access_token,
    get_current_identity,
    get_current_user,
    identity_from_handshake,
    verify_token,
)
from .message_service import create_message, list_conversation, to_message_response
from .profile_service import public_avatar_url, to_profile_response, update_profile

__all__ = [
    "authenticate_user",
    "hash_password",
    "register_user",
    "verify_password",
    "ConnectionRegistry",
    "DeliveryDispatcher",
    "RECEIVE_MESSAGE_EVENT",
    "ChatServiceError",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "AlreadyExists",
    "InvalidRequest",
    "StoreFailure",
    "add_friend",
    "are_friends",
    "list_friends",
    "TokenIdentity",
    "create_access_token",
    "get_current_identity",
    "get_current_user",
    "identity_from_handshake",
    "verify_token",
    "create_message",
    "list_conversation",
    "to_message_response",
    "public_avatar_url",
    "to_profile_response",
    "update_profile",
]
