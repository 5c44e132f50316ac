"""
Flock Backend — User Service
==============================

What:  Identity lookups, profile reads, suggestions and profile updates.
Who:   Called by the auth and users routes, and by the other services for
       identity lookups.

Derived relationship views:
    followers / following come from the `follows` table and likedPosts from
    `post_likes`. They are read in three small indexed queries whenever an
    Identity is serialized; nothing is cached on the user row.
"""

import logging
import re
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    ConflictError,
    DatabaseError,
    FlockError,
    NotFoundError,
    ValidationError,
)
from app.models.post import post_likes
from app.models.user import User, follows
from app.schemas.user import UpdateProfileRequest, UserResponse
from app.security import MIN_PASSWORD_LENGTH, hash_password, verify_password
from app.services.image_service import image_service

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Candidates sampled before dropping already-followed users
SUGGESTION_SAMPLE_SIZE = 10
SUGGESTION_LIMIT = 4


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


class UserService:
    """
    Business logic for identities.

    Error Handling Strategy:
        Our own exceptions propagate unchanged; SQLAlchemy failures are
        logged and wrapped in DatabaseError (generic message to the client).
    """

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        return await db.get(User, user_id)

    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def relationship_views(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> Tuple[List[uuid.UUID], List[uuid.UUID], List[uuid.UUID]]:
        """Return (followers, following, liked_posts) ids for one identity."""
        followers = await db.execute(
            select(follows.c.follower_id)
            .where(follows.c.followee_id == user_id)
            .order_by(follows.c.created_at)
        )
        following = await db.execute(
            select(follows.c.followee_id)
            .where(follows.c.follower_id == user_id)
            .order_by(follows.c.created_at)
        )
        liked = await db.execute(
            select(post_likes.c.post_id)
            .where(post_likes.c.user_id == user_id)
            .order_by(post_likes.c.created_at)
        )
        return (
            list(followers.scalars().all()),
            list(following.scalars().all()),
            list(liked.scalars().all()),
        )

    async def to_response(self, db: AsyncSession, user: User) -> UserResponse:
        """Serialize an identity, without its password, with its derived views."""
        followers, following, liked_posts = await self.relationship_views(db, user.id)
        return UserResponse(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            bio=user.bio,
            link=user.link,
            profile_img=user.profile_img,
            cover_img=user.cover_img,
            followers=followers,
            following=following,
            liked_posts=liked_posts,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_me(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        try:
            user = await self.get_by_id(db, user_id)
            if user is None:
                raise NotFoundError(resource="user", resource_id=str(user_id))
            return await self.to_response(db, user)
        except FlockError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error loading user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": str(user_id)})

    async def get_profile(self, db: AsyncSession, username: str) -> UserResponse:
        """Public profile by handle."""
        try:
            user = await self.get_by_username(db, username)
            if user is None:
                raise NotFoundError(resource="user", resource_id=username)
            return await self.to_response(db, user)
        except FlockError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error loading profile %s: %s", username, str(e))
            raise DatabaseError(context={"username": username})

    async def get_suggested(self, db: AsyncSession, current_user: User) -> List[UserResponse]:
        """
        Suggest identities to follow.

        How:
            1. Randomly sample up to 10 identities other than the caller
            2. Drop the ones the caller already follows
            3. Return the first 4 survivors
        """
        try:
            sampled = await db.execute(
                select(User)
                .where(User.id != current_user.id)
                .order_by(func.random())
                .limit(SUGGESTION_SAMPLE_SIZE)
            )
            followed = await db.execute(
                select(follows.c.followee_id).where(follows.c.follower_id == current_user.id)
            )
            followed_ids = set(followed.scalars().all())

            candidates = [u for u in sampled.scalars().all() if u.id not in followed_ids]
            return [
                await self.to_response(db, user)
                for user in candidates[:SUGGESTION_LIMIT]
            ]
        except SQLAlchemyError as e:
            logger.error("Database error building suggestions: %s", str(e))
            raise DatabaseError(context={"user_id": str(current_user.id)})

    # ── Updates ───────────────────────────────────────────────────────────

    async def update_profile(
        self,
        db: AsyncSession,
        user: User,
        changes: UpdateProfileRequest,
    ) -> UserResponse:
        """
        Apply a partial profile update for the calling identity.

        Validation order (first failure wins):
            1. current/new password must be supplied together
            2. current password must verify; new one must be long enough
            3. new email must look like an email
            4. new username/email must not belong to someone else
        Then profile/cover images are replaced (old one released first) and
        every non-empty field is written.

        Raises:
            ValidationError, ConflictError, ImageStorageError, DatabaseError
        """
        if bool(changes.current_password) != bool(changes.new_password):
            raise ValidationError(
                message="Please provide both current password and new password",
                field="password",
            )

        try:
            if changes.current_password and changes.new_password:
                if not verify_password(changes.current_password, user.password):
                    raise ValidationError(
                        message="Current password is incorrect",
                        field="currentPassword",
                    )
                if len(changes.new_password) < MIN_PASSWORD_LENGTH:
                    raise ValidationError(
                        message=(
                            f"Password must be at least {MIN_PASSWORD_LENGTH} "
                            f"characters long"
                        ),
                        field="newPassword",
                    )
                user.password = hash_password(changes.new_password)

            if changes.email and not is_valid_email(changes.email):
                raise ValidationError(message="Invalid email format", field="email")

            if changes.username and changes.username != user.username:
                if await self.get_by_username(db, changes.username) is not None:
                    raise ConflictError(message="Username is already taken", field="username")

            if changes.email and changes.email != user.email:
                if await self.get_by_email(db, changes.email) is not None:
                    raise ConflictError(message="Email is already taken", field="email")

            profile_img = ""
            if changes.profile_img:
                if user.profile_img:
                    await image_service.destroy(user.profile_img)
                profile_img = await image_service.upload(changes.profile_img)

            cover_img = ""
            if changes.cover_img:
                if user.cover_img:
                    await image_service.destroy(user.cover_img)
                cover_img = await image_service.upload(changes.cover_img)

            user.full_name = changes.full_name or user.full_name
            user.email = changes.email or user.email
            user.username = changes.username or user.username
            user.bio = changes.bio or user.bio
            user.link = changes.link or user.link
            user.profile_img = profile_img or user.profile_img
            user.cover_img = cover_img or user.cover_img

            await db.flush()
            logger.info("Profile updated: %s", user.username)
            return await self.to_response(db, user)

        except FlockError:
            raise
        except IntegrityError as e:
            # Lost a race against another signup/update claiming the same handle
            logger.warning("Unique constraint hit updating %s: %s", user.id, str(e))
            raise ConflictError(message="Username or email is already taken")
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update your profile. Please try again.",
                context={"user_id": str(user.id)},
            )


user_service = UserService()
