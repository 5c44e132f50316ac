"""
Flock Backend — Request Dependencies
======================================

What:  The session gate. Every endpoint except signup, login, logout, health
       and file serving depends on `get_current_user`.
How:   Reads the `jwt` cookie, verifies it, loads the identity it names, and
       hands the User (no password ever leaves the service layer) to the route.

Failure modes:
    no cookie             → UnauthenticatedError  (401 "Unauthorized: No Token Provided")
    bad/expired token     → InvalidTokenError     (401 "Unauthorized: Invalid Token")
    token for a lost user → IdentityNotFoundError (404 "User not found")
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import IdentityNotFoundError, UnauthenticatedError
from app.models.user import User
from app.services.session_service import session_service

logger = logging.getLogger(__name__)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthenticatedError()

    user_id = session_service.decode_token(token)

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("Valid token for missing user %s", user_id)
        raise IdentityNotFoundError(user_id=str(user_id))

    return user
