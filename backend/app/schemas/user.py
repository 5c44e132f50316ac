"""
Flock Backend — User Request/Response Schemas
===============================================

What:  API contracts for signup, login, profile reads and profile updates.

The hashed password has no field in any response model, so it can't be
serialized by accident.
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import Field

from app.schemas.common import APIModel


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SignupRequest(APIModel):
    """Body of POST /api/auth/signup. Business rules are checked by AuthService."""
    username: str
    full_name: str
    email: str
    password: str


class LoginRequest(APIModel):
    username: str
    password: str


class UpdateProfileRequest(APIModel):
    """
    Body of POST /api/users/update.

    Every field is optional; empty strings leave the stored value unchanged.
    `profile_img` / `cover_img` are data URIs for new images.
    `current_password` and `new_password` must be sent together.
    """
    full_name: str = ""
    email: str = ""
    username: str = ""
    bio: str = ""
    link: str = ""
    profile_img: str = ""
    cover_img: str = ""
    current_password: str = ""
    new_password: str = ""


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(APIModel):
    """Compact author/actor representation embedded in posts and comments."""
    id: uuid.UUID = Field(alias="_id")
    username: str
    full_name: str
    profile_img: str = ""


class UserResponse(APIModel):
    """
    Full Identity as returned by auth and profile endpoints.

    followers / following / liked_posts are derived from the adjacency
    tables at read time.
    """
    id: uuid.UUID = Field(alias="_id")
    username: str
    full_name: str
    email: str
    bio: str = ""
    link: str = ""
    profile_img: str = ""
    cover_img: str = ""
    followers: List[uuid.UUID] = Field(default_factory=list)
    following: List[uuid.UUID] = Field(default_factory=list)
    liked_posts: List[uuid.UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
