"""Bearer credential issuing and verification shared by HTTP routes and websockets."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from fastapi import Depends, WebSocket
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_session
from ..models import User
from ..security.secrets import MissingSecretError, get_jwt_secret
from .errors import Unauthenticated

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class TokenIdentity:
    """Verified caller identity extracted from a bearer token."""

    user_id: UUID
    username: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


def _signing_secret() -> str:
    try:
        return get_jwt_secret()
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def create_access_token(
    subject: UUID,
    *,
    username: str | None = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed JWT holding the provided ``subject``."""

    settings = get_settings()
    expire_delta = timedelta(minutes=expires_minutes or settings.jwt_expires_minutes)
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {"sub": str(subject), "exp": now + expire_delta, "iat": now}
    if username:
        payload["username"] = username
    return jwt.encode(payload, _signing_secret(), algorithm=settings.jwt_algorithm)


def verify_token(token: str | None) -> TokenIdentity:
    """Decode and validate a JWT, returning the embedded identity.

    Raises :class:`Unauthenticated` when the token is missing, malformed,
    expired, or signed with a different secret.
    """

    if not token:
        raise Unauthenticated("Access denied. No token provided.")

    try:
        payload = jwt.decode(token, _signing_secret(), algorithms=[get_settings().jwt_algorithm])
    except JWTError as exc:
        raise Unauthenticated("Invalid token.") from exc

    subject = payload.get("sub")
    if not subject:
        raise Unauthenticated("Invalid token payload")
    try:
        user_id = UUID(str(subject))
    except ValueError as exc:
        raise Unauthenticated("Invalid token payload") from exc

    username = payload.get("username")
    return TokenIdentity(user_id=user_id, username=username if isinstance(username, str) else None, claims=payload)


def _strip_bearer(value: str | None) -> str | None:
    if not value:
        return None
    scheme, _, credential = value.strip().partition(" ")
    if credential and scheme.lower() == "bearer":
        return credential.strip()
    return value.strip()


def identity_from_handshake(websocket: WebSocket) -> TokenIdentity:
    """Verify the token a websocket client supplied while connecting.

    The token is read from the ``token`` query field, falling back to an
    ``Authorization`` header for clients that can set one.
    """

    token = websocket.query_params.get("token") or _strip_bearer(websocket.headers.get("authorization"))
    return verify_token(token)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> TokenIdentity:
    """Resolve the caller identity from the Authorization header."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise Unauthenticated("Access denied. No token provided.")
    return verify_token(credentials.credentials)


async def get_current_user(
    identity: TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_session),
) -> User:
    """Load the user behind a verified token."""

    user = await run_in_threadpool(db.get, User, identity.user_id)
    if user is None:
        logger.warning("Token subject %s no longer exists", identity.user_id)
        raise Unauthenticated("Invalid token.")
    return user


__all__ = [
    "TokenIdentity",
    "create_access_token",
    "verify_token",
    "identity_from_handshake",
    "get_current_identity",
    "get_current_user",
]
