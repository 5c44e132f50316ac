"""
Flock Backend — Auth Route Handlers
=====================================

What:  POST /api/auth/signup, POST /api/auth/login, POST /api/auth/logout,
       GET /api/auth/me.
How:   Credentials are checked by AuthService; the session cookie is set or
       cleared here because the route owns the HTTP response.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import LoginRequest, SignupRequest, UserResponse
from app.services.auth_service import auth_service
from app.services.session_service import session_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid input or handle/email taken", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create an account and start a session",
)
async def signup(
    payload: SignupRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await auth_service.signup(db, payload)
    session_service.set_session_cookie(response, user.id)
    return await user_service.to_response(db, user)


@router.post(
    "/login",
    response_model=UserResponse,
    responses={
        400: {"description": "Invalid username or password", "model": ErrorResponse},
    },
    summary="Log in and start a session",
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await auth_service.login(db, payload)
    session_service.set_session_cookie(response, user.id)
    return await user_service.to_response(db, user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="End the session",
    description="Clears the session cookie. Tokens are not revoked server-side.",
)
async def logout(response: Response) -> MessageResponse:
    session_service.clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid session", "model": ErrorResponse},
        404: {"description": "Session names a missing user", "model": ErrorResponse},
    },
    summary="The identity behind the current session",
)
async def me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_me(db, current_user.id)
