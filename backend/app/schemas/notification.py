"""
Flock Backend — Notification Response Schemas
===============================================
"""

import uuid
from datetime import datetime

from pydantic import Field

from app.models.notification import Notification
from app.schemas.common import APIModel


class NotificationActor(APIModel):
    """The actor of a notification: just enough to render "@alice liked your post"."""
    id: uuid.UUID = Field(alias="_id")
    username: str
    profile_img: str = ""


class NotificationResponse(APIModel):
    id: uuid.UUID = Field(alias="_id")
    from_: NotificationActor = Field(alias="from")
    to: uuid.UUID
    type: str
    read: bool
    created_at: datetime

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            from_=NotificationActor.model_validate(notification.sender),
            to=notification.to_user_id,
            type=notification.type,
            read=notification.read,
            created_at=notification.created_at,
        )
