"""
Flock Backend — Notification Ledger
=====================================

What:  Append-only record of directed social events (follow, like).
How:   `record` appends inside the caller's transaction. Reading is two
       explicit steps, `fetch_for_recipient` then `mark_all_read`, exposed to
       the API as one combined call: fetching your notifications marks them
       read, and the response shows the state from before the mark.
Who:   SocialService writes; app.routes.notifications reads and purges.
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.notification import Notification, NotificationType
from app.schemas.common import MessageResponse
from app.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)


class NotificationService:

    def record(
        self,
        db: AsyncSession,
        actor_id: uuid.UUID,
        recipient_id: uuid.UUID,
        kind: NotificationType,
    ) -> Notification:
        """Append a notification to the current transaction (flushed by the caller)."""
        notification = Notification(
            from_user_id=actor_id,
            to_user_id=recipient_id,
            type=kind.value,
            read=False,
        )
        db.add(notification)
        return notification

    async def fetch_for_recipient(
        self, db: AsyncSession, recipient_id: uuid.UUID
    ) -> List[Notification]:
        """All notifications addressed to `recipient_id`, newest first, actor loaded."""
        result = await db.execute(
            select(Notification)
            .where(Notification.to_user_id == recipient_id)
            .order_by(Notification.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def mark_all_read(self, db: AsyncSession, recipient_id: uuid.UUID) -> None:
        await db.execute(
            update(Notification)
            .where(Notification.to_user_id == recipient_id, Notification.read.is_(False))
            .values(read=True)
        )

    async def get_notifications(
        self, db: AsyncSession, recipient_id: uuid.UUID
    ) -> List[NotificationResponse]:
        """
        Fetch, then mark everything read.

        Responses are built before the mark so they carry the unread flags
        the user has not seen yet; a second call shows every entry read.
        """
        try:
            notifications = await self.fetch_for_recipient(db, recipient_id)
            responses = [NotificationResponse.from_notification(n) for n in notifications]
            await self.mark_all_read(db, recipient_id)
            return responses
        except SQLAlchemyError as e:
            logger.error("Database error fetching notifications for %s: %s", recipient_id, str(e))
            raise DatabaseError(
                message="Could not retrieve notifications. Please try again.",
                context={"user_id": str(recipient_id)},
            )

    async def delete_notifications(
        self, db: AsyncSession, recipient_id: uuid.UUID
    ) -> MessageResponse:
        """Irreversibly purge every notification addressed to `recipient_id`."""
        try:
            result = await db.execute(
                delete(Notification).where(Notification.to_user_id == recipient_id)
            )
        except SQLAlchemyError as e:
            logger.error("Database error deleting notifications for %s: %s", recipient_id, str(e))
            raise DatabaseError(
                message="Could not delete notifications. Please try again.",
                context={"user_id": str(recipient_id)},
            )
        logger.info("Deleted %d notifications for %s", result.rowcount, recipient_id)
        return MessageResponse(message="Notifications deleted successfully")


notification_service = NotificationService()
