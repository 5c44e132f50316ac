"""
Flock Backend — Social Graph Mutator
======================================

What:  Follow/unfollow and like/unlike toggles, plus commenting.
Who:   Called by the users and posts routes.

Toggle semantics:
    Both toggles read the current edge and flip it. Calling twice in a row
    returns the graph to where it started. Only the "add" direction emits
    a Notification; removing an edge and commenting never do.

Consistency:
    Each relation is one row in an adjacency table (`follows`,
    `post_likes`), so "A follows B" and "B's followers contain A" are the
    same fact and can't disagree. The edge write and its notification share
    the request transaction. Two concurrent "add" toggles for the same pair
    collide on the edge's primary key; the loser gets a ConflictError and
    its transaction (notification included) is rolled back.

Known asymmetry (left as is):
    following yourself is rejected, liking your own post is allowed and
    notifies you.
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    ConflictError,
    DatabaseError,
    FlockError,
    NotFoundError,
    SelfReferenceNotAllowedError,
    ValidationError,
)
from app.models.notification import NotificationType
from app.models.post import Comment, post_likes
from app.models.user import User, follows
from app.schemas.common import MessageResponse
from app.schemas.post import PostResponse
from app.services.notification_service import notification_service
from app.services.post_service import post_service

logger = logging.getLogger(__name__)


class SocialService:

    # ── Follow ────────────────────────────────────────────────────────────

    async def is_following(
        self, db: AsyncSession, follower_id: uuid.UUID, followee_id: uuid.UUID
    ) -> bool:
        result = await db.execute(
            select(follows.c.follower_id).where(
                follows.c.follower_id == follower_id,
                follows.c.followee_id == followee_id,
            )
        )
        return result.first() is not None

    async def toggle_follow(
        self, db: AsyncSession, actor: User, target_id: uuid.UUID
    ) -> MessageResponse:
        """
        Follow `target_id` if the actor doesn't follow them yet, else unfollow.

        Raises:
            SelfReferenceNotAllowedError: target is the actor (checked first,
                whatever the current state).
            NotFoundError: target does not exist.
            ConflictError: a concurrent toggle changed the same edge.
        """
        if target_id == actor.id:
            raise SelfReferenceNotAllowedError(context={"user_id": str(actor.id)})

        try:
            target = await db.get(User, target_id)
            if target is None:
                raise NotFoundError(resource="user", resource_id=str(target_id))

            if await self.is_following(db, actor.id, target.id):
                await db.execute(
                    delete(follows).where(
                        follows.c.follower_id == actor.id,
                        follows.c.followee_id == target.id,
                    )
                )
                await db.flush()
                logger.info("%s unfollowed %s", actor.username, target.username)
                return MessageResponse(message="User unfollowed successfully")

            await db.execute(
                insert(follows).values(follower_id=actor.id, followee_id=target.id)
            )
            notification_service.record(db, actor.id, target.id, NotificationType.FOLLOW)
            await db.flush()
            logger.info("%s followed %s", actor.username, target.username)
            return MessageResponse(message="User followed successfully")

        except FlockError:
            raise
        except IntegrityError as e:
            logger.warning("Concurrent follow toggle %s -> %s: %s", actor.id, target_id, str(e))
            raise ConflictError(
                message="Follow state changed while processing your request. Please try again.",
                context={"target_id": str(target_id)},
            )
        except SQLAlchemyError as e:
            logger.error("Database error toggling follow: %s", str(e), exc_info=True)
            raise DatabaseError(context={"target_id": str(target_id)})

    # ── Like ──────────────────────────────────────────────────────────────

    async def has_liked(
        self, db: AsyncSession, user_id: uuid.UUID, post_id: uuid.UUID
    ) -> bool:
        result = await db.execute(
            select(post_likes.c.user_id).where(
                post_likes.c.post_id == post_id,
                post_likes.c.user_id == user_id,
            )
        )
        return result.first() is not None

    async def likes_of(self, db: AsyncSession, post_id: uuid.UUID) -> List[uuid.UUID]:
        """Ids of the identities that like `post_id`, in the order they liked it."""
        result = await db.execute(
            select(post_likes.c.user_id)
            .where(post_likes.c.post_id == post_id)
            .order_by(post_likes.c.created_at)
        )
        return list(result.scalars().all())

    async def toggle_like(
        self, db: AsyncSession, actor: User, post_id: uuid.UUID
    ) -> List[uuid.UUID]:
        """
        Like the post if the actor hasn't yet, else unlike it.

        Returns:
            The post's resulting `likes` list, in both branches.

        Raises:
            NotFoundError: post does not exist.
            ConflictError: a concurrent toggle changed the same edge.
        """
        try:
            post = await post_service.get_post(db, post_id)
            if post is None:
                raise NotFoundError(resource="post", resource_id=str(post_id))

            if await self.has_liked(db, actor.id, post.id):
                await db.execute(
                    delete(post_likes).where(
                        post_likes.c.post_id == post.id,
                        post_likes.c.user_id == actor.id,
                    )
                )
                logger.info("%s unliked post %s", actor.username, post.id)
            else:
                await db.execute(insert(post_likes).values(post_id=post.id, user_id=actor.id))
                # Owner is notified even when the actor is the owner
                notification_service.record(db, actor.id, post.user_id, NotificationType.LIKE)
                logger.info("%s liked post %s", actor.username, post.id)

            await db.flush()
            return await self.likes_of(db, post.id)

        except FlockError:
            raise
        except IntegrityError as e:
            logger.warning("Concurrent like toggle %s -> %s: %s", actor.id, post_id, str(e))
            raise ConflictError(
                message="Like state changed while processing your request. Please try again.",
                context={"post_id": str(post_id)},
            )
        except SQLAlchemyError as e:
            logger.error("Database error toggling like: %s", str(e), exc_info=True)
            raise DatabaseError(context={"post_id": str(post_id)})

    # ── Comment ───────────────────────────────────────────────────────────

    async def comment_on_post(
        self, db: AsyncSession, actor: User, post_id: uuid.UUID, text: str
    ) -> PostResponse:
        """
        Append a comment to a post and return the updated post.

        No notification is emitted for comments.
        """
        if not text or not text.strip():
            raise ValidationError(message="Text field is required", field="text")

        try:
            post = await post_service.get_post(db, post_id)
            if post is None:
                raise NotFoundError(resource="post", resource_id=str(post_id))

            post.comments.append(Comment(user=actor, text=text))
            await db.flush()
            logger.info("%s commented on post %s", actor.username, post.id)
            return PostResponse.from_post(post)

        except FlockError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error adding comment: %s", str(e), exc_info=True)
            raise DatabaseError(context={"post_id": str(post_id)})


social_service = SocialService()
