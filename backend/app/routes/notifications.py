"""
Flock Backend — Notification Route Handlers
=============================================

What:  GET /api/notifications (fetch and mark read) and
       DELETE /api/notifications (purge).
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.notification import NotificationResponse
from app.services.notification_service import notification_service

router = APIRouter(
    prefix="/api/notifications",
    tags=["Notifications"],
    responses={401: {"description": "Missing or invalid session", "model": ErrorResponse}},
)


@router.get(
    "",
    response_model=List[NotificationResponse],
    summary="The caller's notifications, newest first",
    description=(
        "Returns every notification addressed to the caller and marks them all "
        "read. The response shows the read flags from before the mark."
    ),
)
async def get_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NotificationResponse]:
    return await notification_service.get_notifications(db, current_user.id)


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Delete all of the caller's notifications",
)
async def delete_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await notification_service.delete_notifications(db, current_user.id)
