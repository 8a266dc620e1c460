"""Account signup and login backed by the relational store."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User
from ..schemas import SignupRequest
from .errors import AlreadyExists, StoreFailure
from .identity_service import create_access_token

logger = logging.getLogger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt."""

    return _pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify that ``password`` matches ``hashed_password``."""

    try:
        return _pwd_context.verify(password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(func.lower(User.email) == _normalize_email(email)))


def register_user(db: Session, payload: SignupRequest) -> Tuple[User, str]:
    """Persist a new user and return the user with an access token."""

    email = _normalize_email(str(payload.email))
    if find_user_by_email(db, email) is not None:
        raise AlreadyExists("Email already in use")

    user = User(
        username=payload.username.strip(),
        email=email,
        hashed_password=hash_password(payload.password),
    )

    try:
        db.add(user)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyExists("Email already in use") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to register user")
        raise StoreFailure("Unable to register user") from exc

    db.refresh(user)
    token = create_access_token(user.id, username=user.username)
    return user, token


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user against stored credentials."""

    user = find_user_by_email(db, email)
    if user is None:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


__all__ = [
    "hash_password",
    "verify_password",
    "find_user_by_email",
    "register_user",
    "authenticate_user",
]
