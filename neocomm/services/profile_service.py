from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..models import User
from ..schemas import ProfileResponse, ProfileUpdateRequest
from .errors import NotFound, StoreFailure


def public_avatar_url(avatar_url: str | None) -> str | None:
    """Expand a stored avatar reference into a URL clients can fetch."""

    if not avatar_url:
        return None
    if avatar_url.startswith(("http://", "https://")):
        return avatar_url
    base = get_settings().public_base_url.rstrip("/")
    return f"{base}/uploads/{avatar_url.rsplit('/', 1)[-1]}"


def to_profile_response(user: User) -> ProfileResponse:
    return ProfileResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        status=user.status,
        avatar_url=public_avatar_url(user.avatar_url),
    )


def update_profile(db: Session, *, user_id: UUID, payload: ProfileUpdateRequest) -> User:
    """Apply profile updates for the supplied ``user_id``."""

    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    # Only update fields that were actually sent by the client
    update_data = payload.model_dump(exclude_unset=True)

    # A null username is ignored rather than clearing the display name.
    if update_data.get("username") is None:
        update_data.pop("username", None)

    if "avatar_url" in update_data and not update_data["avatar_url"]:
        update_data["avatar_url"] = None

    for field, value in update_data.items():
        setattr(user, field, value)

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreFailure("Failed to update profile") from exc

    db.refresh(user)
    return user
