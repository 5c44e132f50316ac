"""
Flock Backend — ORM Models
============================

Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and by `create_all` in tests).
"""

from app.models.user import User, follows
from app.models.post import Post, Comment, post_likes
from app.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "follows",
    "Post",
    "Comment",
    "post_likes",
    "Notification",
    "NotificationType",
]
