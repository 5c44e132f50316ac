"""
Flock Backend — Notification Model
====================================

What:  ORM model for the `notifications` table.
Who:   Written by SocialService (follow, like); read and purged by
       NotificationService.

A notification is a directed edge: `from_user_id` acted, `to_user_id` is told.
It is only ever mutated by being marked read in bulk, and deleted in bulk.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.user import User, utcnow


class NotificationType(str, enum.Enum):
    FOLLOW = "follow"
    LIKE = "like"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    from_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Actor",
    )

    to_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Recipient",
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # Enriches each entry with the actor's handle and avatar
    sender: Mapped[User] = relationship(User, foreign_keys=[from_user_id], lazy="selectin")

    __table_args__ = (
        CheckConstraint("type IN ('follow', 'like')", name="ck_notifications_type"),
        # Every read path is "all notifications for this recipient, newest first"
        Index("idx_notifications_to_created", "to_user_id", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(type='{self.type}', from={self.from_user_id}, "
            f"to={self.to_user_id}, read={self.read})>"
        )
