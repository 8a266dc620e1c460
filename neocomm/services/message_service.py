"""Direct message persistence and conversation queries."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models import Message
from ..schemas import MessageResponse
from .errors import Forbidden, InvalidRequest, StoreFailure
from .friendship_service import are_friends
from .profile_service import public_avatar_url

logger = logging.getLogger(__name__)


def _conversation_clause(a: UUID, b: UUID):
    return or_(
        and_(Message.sender_id == a, Message.receiver_id == b),
        and_(Message.sender_id == b, Message.receiver_id == a),
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _next_sent_at(db: Session, a: UUID, b: UUID) -> datetime:
    """Server timestamp strictly after the latest message of the pair."""

    now = datetime.now(timezone.utc)
    latest = db.scalar(select(func.max(Message.sent_at)).where(_conversation_clause(a, b)))
    if latest is None:
        return now
    return max(now, _as_utc(latest) + timedelta(microseconds=1))


def _load_hydrated(db: Session, message_id: UUID) -> Message | None:
    stmt = (
        select(Message)
        .where(Message.id == message_id)
        .options(joinedload(Message.sender), joinedload(Message.receiver))
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def create_message(db: Session, *, sender_id: UUID, receiver_id: UUID, content: str) -> Message:
    """Persist a message from ``sender_id`` to ``receiver_id``.

    The friendship check and the insert are two separate steps: a friendship
    removed between them does not abort the write. The returned message has
    both parties loaded from a single read issued after the commit.
    """

    try:
        if not are_friends(db, sender_id, receiver_id):
            raise Forbidden("Not friends with this user")

        if not content or not content.strip():
            raise InvalidRequest("Message content is required")

        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            sent_at=_next_sent_at(db, sender_id, receiver_id),
        )
        db.add(message)
        db.commit()
        hydrated = _load_hydrated(db, message.id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist message from %s to %s", sender_id, receiver_id)
        raise StoreFailure("Failed to persist message") from exc

    if hydrated is None:
        raise StoreFailure("Message vanished after write")
    return hydrated


def list_conversation(db: Session, a: UUID, b: UUID) -> list[Message]:
    """Return every message exchanged between ``a`` and ``b`` in persisted order."""

    stmt = (
        select(Message)
        .where(_conversation_clause(a, b))
        .options(joinedload(Message.sender), joinedload(Message.receiver))
        .order_by(Message.sent_at.asc(), Message.id.asc())
    )
    try:
        return list(db.scalars(stmt))
    except SQLAlchemyError as exc:
        logger.exception("Failed to load conversation between %s and %s", a, b)
        raise StoreFailure("Failed to load messages") from exc


def to_message_response(message: Message) -> MessageResponse:
    sender = message.sender
    receiver = message.receiver
    return MessageResponse(
        id=message.id,
        sender_id=message.sender_id,
        receiver_id=message.receiver_id,
        content=message.content,
        sent_at=_as_utc(message.sent_at),
        sender_username=sender.username if sender else None,
        sender_avatar_url=public_avatar_url(sender.avatar_url) if sender else None,
        receiver_username=receiver.username if receiver else None,
        receiver_avatar_url=public_avatar_url(receiver.avatar_url) if receiver else None,
    )


__all__ = [
    "create_message",
    "list_conversation",
    "to_message_response",
]
