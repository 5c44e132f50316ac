"""
Flock Backend — User Route Handlers
=====================================

What:  Profiles, follow suggestions, the follow toggle and profile updates.
Who:   Called by the profile page, the "who to follow" panel and settings.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import UpdateProfileRequest, UserResponse
from app.services.social_service import social_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses={401: {"description": "Missing or invalid session", "model": ErrorResponse}},
)


@router.get(
    "/profile/{username}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Public profile by handle",
)
async def get_user_profile(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_profile(db, username)


@router.get(
    "/suggested",
    response_model=List[UserResponse],
    summary="Up to four identities the caller does not follow yet",
)
async def get_suggested_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserResponse]:
    return await user_service.get_suggested(db, current_user)


@router.post(
    "/follow/{user_id}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Tried to follow yourself", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Follow or unfollow an identity",
    description=(
        "Toggles the follow edge from the caller to `user_id`. Following sends "
        "the target a notification; unfollowing does not."
    ),
)
async def follow_unfollow_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await social_service.toggle_follow(db, current_user, user_id)


@router.post(
    "/update",
    response_model=UserResponse,
    responses={
        400: {"description": "Invalid change or handle/email taken", "model": ErrorResponse},
    },
    summary="Update the caller's profile",
)
async def update_user(
    changes: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.update_profile(db, current_user, changes)
