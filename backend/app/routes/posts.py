"""
Flock Backend — Post Route Handlers
=====================================

What:  Feeds, post creation/deletion, likes and comments.

Route order matters: the fixed paths (/all, /following, /create, ...) are
declared before DELETE /{post_id} so they are never captured as an id.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.post import CommentRequest, CreatePostRequest, PostResponse
from app.services.post_service import post_service
from app.services.social_service import social_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/posts",
    tags=["Posts"],
    responses={401: {"description": "Missing or invalid session", "model": ErrorResponse}},
)


# ── Feeds ─────────────────────────────────────────────────────────────────

@router.get(
    "/all",
    response_model=List[PostResponse],
    summary="Every post, newest first",
)
async def get_all_posts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.get_all_posts(db)


@router.get(
    "/following",
    response_model=List[PostResponse],
    summary="Posts by identities the caller follows, newest first",
)
async def get_following_posts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.get_following_posts(db, current_user)


@router.get(
    "/user/{username}",
    response_model=List[PostResponse],
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Posts by one handle, newest first",
)
async def get_user_posts(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.get_user_posts(db, username)


@router.get(
    "/likes/{user_id}",
    response_model=List[PostResponse],
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Posts liked by one identity",
)
async def get_liked_posts(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.get_liked_posts(db, user_id)


# ── Mutations ─────────────────────────────────────────────────────────────

@router.post(
    "/create",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "No text and no image, or bad image", "model": ErrorResponse}},
    summary="Publish a post",
    description="`img` is a base64 data URI; it is hosted and replaced by its URL.",
)
async def create_post(
    payload: CreatePostRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.create_post(db, current_user, text=payload.text, img=payload.img)


@router.post(
    "/like/{post_id}",
    response_model=List[UUID],
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Like or unlike a post",
    description="Returns the post's updated list of likers.",
)
async def like_unlike_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UUID]:
    return await social_service.toggle_like(db, current_user, post_id)


@router.post(
    "/comment/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Empty comment", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Comment on a post",
)
async def comment_on_post(
    post_id: UUID,
    payload: CommentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await social_service.comment_on_post(db, current_user, post_id, payload.text)


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    responses={
        401: {"description": "Not the owner of the post", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Delete one of your own posts",
)
async def delete_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await post_service.delete_post(db, current_user, post_id)
