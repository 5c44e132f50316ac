"""
Flock Backend — Post Service
==============================

What:  Creating, deleting and listing posts.
Who:   Called by app.routes.posts.

Listing selectors:
    all        → every post, newest first
    following  → posts by identities the caller follows, newest first
    user       → posts by one handle, newest first
    likes      → posts liked by one identity, in the order they were liked

Every listed post carries its author, comment thread (with comment authors)
and likers, loaded eagerly by the model relationships.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseError,
    FlockError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.models.post import Post, post_likes
from app.models.user import User, follows
from app.schemas.common import MessageResponse
from app.schemas.post import PostResponse
from app.schemas.user import UserSummary
from app.services.image_service import image_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)


class PostService:

    async def get_post(self, db: AsyncSession, post_id: uuid.UUID) -> Optional[Post]:
        """Load a post with its author, comments and likers freshly populated."""
        result = await db.execute(
            select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_post(
        self,
        db: AsyncSession,
        author: User,
        text: Optional[str] = None,
        img: Optional[str] = None,
    ) -> PostResponse:
        """
        Publish a post with text, an image, or both.

        The image (a data URI) is hosted before the row is written; the row
        stores only the hosted URL.

        Raises:
            ValidationError: neither text nor image was supplied.
        """
        has_text = bool(text and text.strip())
        if not has_text and not img:
            raise ValidationError(message="Post must have text or image")

        img_url = await image_service.upload(img) if img else None

        try:
            post = Post(user=author, text=text if has_text else None, img=img_url)
            db.add(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            if img_url:
                await image_service.destroy(img_url)
            raise DatabaseError(message="Could not create the post. Please try again.")

        logger.info("Post %s created by %s", post.id, author.username)
        # Fresh post: nobody has liked or commented on it yet
        return PostResponse(
            id=post.id,
            user=UserSummary.model_validate(author),
            text=post.text,
            img=post.img,
            likes=[],
            comments=[],
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    async def delete_post(
        self, db: AsyncSession, caller: User, post_id: uuid.UUID
    ) -> MessageResponse:
        """
        Delete one of the caller's own posts.

        The post's comments and like edges go with it, then its hosted image
        is released. If releasing the image fails, the request transaction is
        rolled back and the post survives.

        Raises:
            NotFoundError: post does not exist.
            ForbiddenError: caller does not own the post (nothing is changed).
        """
        try:
            post = await self.get_post(db, post_id)
            if post is None:
                raise NotFoundError(resource="post", resource_id=str(post_id))

            if post.user_id != caller.id:
                logger.warning(
                    "User %s tried to delete post %s owned by %s",
                    caller.id, post.id, post.user_id,
                )
                raise ForbiddenError(message="You are not authorized to delete this post")

            img_url = post.img
            await db.execute(delete(post_likes).where(post_likes.c.post_id == post.id))
            await db.delete(post)
            await db.flush()

            if img_url:
                await image_service.destroy(img_url)

            logger.info("Post %s deleted by its owner", post_id)
            return MessageResponse(message="Post deleted successfully")

        except FlockError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the post. Please try again.",
                context={"post_id": str(post_id)},
            )

    # ── Listings ──────────────────────────────────────────────────────────

    async def _list(self, db: AsyncSession, query: Select) -> List[PostResponse]:
        # Refresh relationships of posts already in the identity map
        result = await db.execute(query.execution_options(populate_existing=True))
        return [PostResponse.from_post(post) for post in result.scalars().all()]

    async def get_all_posts(self, db: AsyncSession) -> List[PostResponse]:
        try:
            return await self._list(db, select(Post).order_by(Post.created_at.desc()))
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve posts. Please try again.")

    async def get_following_posts(self, db: AsyncSession, caller: User) -> List[PostResponse]:
        followed = select(follows.c.followee_id).where(follows.c.follower_id == caller.id)
        try:
            return await self._list(
                db,
                select(Post)
                .where(Post.user_id.in_(followed))
                .order_by(Post.created_at.desc()),
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing feed for %s: %s", caller.id, str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve posts. Please try again.")

    async def get_user_posts(self, db: AsyncSession, username: str) -> List[PostResponse]:
        try:
            user = await user_service.get_by_username(db, username)
            if user is None:
                raise NotFoundError(resource="user", resource_id=username)
            return await self._list(
                db,
                select(Post)
                .where(Post.user_id == user.id)
                .order_by(Post.created_at.desc()),
            )
        except FlockError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing posts of %s: %s", username, str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve posts. Please try again.")

    async def get_liked_posts(self, db: AsyncSession, user_id: uuid.UUID) -> List[PostResponse]:
        try:
            user = await user_service.get_by_id(db, user_id)
            if user is None:
                raise NotFoundError(resource="user", resource_id=str(user_id))
            return await self._list(
                db,
                select(Post)
                .join(post_likes, post_likes.c.post_id == Post.id)
                .where(post_likes.c.user_id == user.id)
                .order_by(post_likes.c.created_at),
            )
        except FlockError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing likes of %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve posts. Please try again.")


post_service = PostService()
