"""
Flock Backend — User Model and Follow Edges
=============================================

What:  ORM model for the `users` table plus the `follows` adjacency table.
Who:   Used by the auth, user and social services; read by the session gate.

Table Design Rationale:
    - UUID primary key: non-sequential, so ids in URLs can't be enumerated
    - username / email: unique indexes back the signup conflict checks
    - password: pbkdf2_sha256 hash, never the raw secret
    - followers / following are NOT columns. A single `follows` row
      (follower_id → followee_id) is both "A follows B" and "B is followed
      by A", so the two views can never drift apart.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Follow Edges ──────────────────────────────────────────────────────────
# Composite primary key: an edge exists at most once, so two racing
# "follow" toggles cannot insert a duplicate
follows = Table(
    "follows",
    Base.metadata,
    Column(
        "follower_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        comment="The identity doing the following",
    ),
    Column(
        "followee_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
        comment="The identity being followed",
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    CheckConstraint("follower_id <> followee_id", name="ck_follows_no_self_follow"),
)


class User(Base):
    """
    A registered account (an Identity).

    Lifecycle:
        1. Created at signup with a hashed password
        2. Updated by profile edits
        3. Never deleted (no delete-account path exists)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        comment="Unique public handle",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    # Hashed secret. Response schemas have no field for it.
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str] = mapped_column(String(128), nullable=False)

    # ── Profile ───────────────────────────────────────────────────────────
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    link: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    profile_img: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        default="",
        comment="Hosted avatar URL",
    )
    cover_img: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        default="",
        comment="Hosted cover image URL",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
