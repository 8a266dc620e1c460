"""Business logic for friendships.

Friendships are accepted immediately when added; there is no pending
request phase. Rows are written in canonical order so the unique constraint
covers the unordered pair, but every lookup matches both orderings so rows
written in either order are honoured.
"""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import FRIENDSHIP_ACCEPTED, Friendship, User
from .errors import AlreadyExists, InvalidRequest, NotFound, StoreFailure

logger = logging.getLogger(__name__)


def _ordered_pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    return (a, b) if str(a) < str(b) else (b, a)


def _pair_clause(a: UUID, b: UUID):
    return or_(
        and_(Friendship.user_a_id == a, Friendship.user_b_id == b),
        and_(Friendship.user_a_id == b, Friendship.user_b_id == a),
    )


def _existing_friendship(db: Session, user_id: UUID, friend_id: UUID) -> Friendship | None:
    return db.scalars(select(Friendship).where(_pair_clause(user_id, friend_id))).first()


def are_friends(db: Session, a: UUID, b: UUID) -> bool:
    """Return True when an accepted friendship links ``a`` and ``b`` in either ordering."""

    stmt = (
        select(Friendship.id)
        .where(_pair_clause(a, b), Friendship.status == FRIENDSHIP_ACCEPTED)
        .limit(1)
    )
    return db.scalar(stmt) is not None


def _resolve_target(db: Session, *, email: str | None, target_id: UUID | None) -> User:
    target: User | None = None
    if target_id is not None:
        target = db.get(User, target_id)
    elif email:
        candidate = email.strip().lower()
        if candidate:
            target = db.scalar(select(User).where(func.lower(User.email) == candidate))
    else:
        raise InvalidRequest("email or friend_id required")
    if target is None:
        raise NotFound("User not found")
    return target


def add_friend(
    db: Session,
    *,
    requester_id: UUID,
    email: str | None = None,
    target_id: UUID | None = None,
) -> tuple[Friendship, User]:
    """Link ``requester_id`` with the user identified by ``email`` or ``target_id``.

    Returns the new friendship together with the resolved friend.
    """

    try:
        friend = _resolve_target(db, email=email, target_id=target_id)
        friend_id: UUID = friend.id
        if friend_id == requester_id:
            raise InvalidRequest("Cannot befriend yourself")

        if _existing_friendship(db, requester_id, friend_id) is not None:
            raise AlreadyExists("Friendship already exists")

        user_a_id, user_b_id = _ordered_pair(requester_id, friend_id)
        friendship = Friendship(user_a_id=user_a_id, user_b_id=user_b_id, status=FRIENDSHIP_ACCEPTED)
        db.add(friendship)
        db.commit()
        db.refresh(friendship)
    except IntegrityError as exc:
        # A concurrent add for the same pair won the unique constraint.
        db.rollback()
        raise AlreadyExists("Friendship already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create friendship for %s", requester_id)
        raise StoreFailure("Failed to add friend") from exc

    logger.info("Friendship created between %s and %s", requester_id, friend_id)
    return friendship, friend


def list_friends(db: Session, *, user_id: UUID) -> list[User]:
    """Return every user linked to ``user_id`` in either ordering, de-duplicated."""

    stmt = (
        select(User)
        .join(
            Friendship,
            or_(
                and_(Friendship.user_a_id == user_id, Friendship.user_b_id == User.id),
                and_(Friendship.user_b_id == user_id, Friendship.user_a_id == User.id),
            ),
        )
        .where(Friendship.status == FRIENDSHIP_ACCEPTED, User.id != user_id)
        .distinct()
        .order_by(User.username.asc(), User.id.asc())
    )
    try:
        return list(db.scalars(stmt))
    except SQLAlchemyError as exc:
        logger.exception("Failed to load friends of %s", user_id)
        raise StoreFailure("Failed to load friends") from exc


__all__ = [
    "are_friends",
    "add_friend",
    "list_friends",
]
