"""
Flock Backend — Post, Comment and Like Models
===============================================

What:  ORM models for `posts`, `comments` and the `post_likes` adjacency table.
Who:   Used by the post and social services.

Relationships are loaded eagerly with `selectin` so that serializing a page
of posts never triggers lazy IO outside the async session:
    Post.user         → author
    Post.comments     → comments in creation order, each with Comment.user
    Post.likers       → identities who liked the post, in like order (read-only;
                        writes go through the `post_likes` table)

A `post_likes` row is both "post.likes contains user" and "user.likedPosts
contains post".
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Index, Table, Text, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.user import User, utcnow


# ── Like Edges ────────────────────────────────────────────────────────────
post_likes = Table(
    "post_likes",
    Base.metadata,
    Column(
        "post_id",
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


class Post(Base):
    """
    A text and/or image post owned by one identity.

    Invariant: `text` or `img` is non-empty (enforced by PostService.create_post).
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    img: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        comment="Hosted image URL",
    )

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

    user: Mapped[User] = relationship(User, lazy="selectin")

    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
        back_populates="post",
    )

    likers: Mapped[List[User]] = relationship(
        User,
        secondary=post_likes,
        lazy="selectin",
        order_by=post_likes.c.created_at,
        viewonly=True,
    )

    # Feeds are always newest first
    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, user_id={self.user_id})>"


class Comment(Base):
    """A comment embedded in a post's thread."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    post: Mapped[Post] = relationship(Post, back_populates="comments")
    user: Mapped[User] = relationship(User, lazy="selectin")
