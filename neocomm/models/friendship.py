"""ORM model representing an accepted, symmetric friendship between two users."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from neocomm.database import Base

FRIENDSHIP_ACCEPTED = "accepted"


class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_a_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_b_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default=FRIENDSHIP_ACCEPTED, server_default=FRIENDSHIP_ACCEPTED)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user_a = relationship("User", foreign_keys=[user_a_id], back_populates="friendships_a")
    user_b = relationship("User", foreign_keys=[user_b_id], back_populates="friendships_b")

    __table_args__ = (UniqueConstraint("user_a_id", "user_b_id", name="uq_friendship_pair"),)

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in {self.user_a_id, self.user_b_id}


__all__ = ["FRIENDSHIP_ACCEPTED", "Friendship"]
