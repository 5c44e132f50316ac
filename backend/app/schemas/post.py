"""
Flock Backend — Post Request/Response Schemas
===============================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.models.post import Post
from app.schemas.common import APIModel
from app.schemas.user import UserSummary


class CreatePostRequest(APIModel):
    """Body of POST /api/posts/create. `img` is a data URI."""
    text: Optional[str] = None
    img: Optional[str] = None


class CommentRequest(APIModel):
    text: str = ""


class CommentResponse(APIModel):
    id: uuid.UUID = Field(alias="_id")
    user: UserSummary
    text: str
    created_at: datetime


class PostResponse(APIModel):
    """A post with its author, comment thread and likers populated."""
    id: uuid.UUID = Field(alias="_id")
    user: UserSummary
    text: Optional[str] = None
    img: Optional[str] = None
    likes: List[uuid.UUID] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        """Build from an ORM Post whose relationships are already loaded."""
        return cls(
            id=post.id,
            user=UserSummary.model_validate(post.user),
            text=post.text,
            img=post.img,
            likes=[liker.id for liker in post.likers],
            comments=[CommentResponse.model_validate(c) for c in post.comments],
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
