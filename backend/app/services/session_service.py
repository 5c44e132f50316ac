"""
Flock Backend — Session Issuer
================================

What:  Turns a verified identity into a signed, time-bounded session token
       and delivers it as the `jwt` cookie; decodes tokens for the gate.
How:   HS256 JWT with claims {userId, iat, exp}. Nothing is persisted: a token
       is valid exactly while its signature checks out and `exp` is in the
       future. Logout clears the cookie client-side; there is no revocation.
Who:   AuthService (signup/login/logout) and the session gate in
       app.dependencies.

Cookie attributes:
    HttpOnly        → not readable from page scripts
    SameSite=Strict → only sent on same-site requests
    Secure          → https only, except when ENVIRONMENT=development
    Max-Age         → same 15-day lifetime as the token
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Response

from app.config import settings
from app.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


class SessionService:
    """Issues, decodes and clears session tokens. Stateless."""

    def __init__(
        self,
        secret: Optional[str] = None,
        expires_days: Optional[int] = None,
        algorithm: Optional[str] = None,
    ):
        # Overrides are for tests; production uses settings
        self._secret = secret
        self._expires_days = expires_days
        self._algorithm = algorithm

    @property
    def secret(self) -> str:
        return self._secret or settings.jwt_secret

    @property
    def expires_days(self) -> int:
        return self._expires_days or settings.jwt_expires_days

    @property
    def algorithm(self) -> str:
        return self._algorithm or settings.jwt_algorithm

    @property
    def max_age_seconds(self) -> int:
        return self.expires_days * 24 * 60 * 60

    # ── Issuing ───────────────────────────────────────────────────────────

    def issue_token(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> str:
        """Sign a token for `user_id` expiring `expires_days` from `now`."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "userId": str(user_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.expires_days),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def set_session_cookie(self, response: Response, user_id: uuid.UUID) -> str:
        """Issue a token and attach it to `response` as the session cookie."""
        token = self.issue_token(user_id)
        response.set_cookie(
            key=settings.session_cookie_name,
            value=token,
            max_age=self.max_age_seconds,
            httponly=True,
            samesite="strict",
            secure=not settings.is_development,
            path="/",
        )
        return token

    def clear_session_cookie(self, response: Response) -> None:
        """Overwrite the session cookie with an empty, already-expired value."""
        response.set_cookie(
            key=settings.session_cookie_name,
            value="",
            max_age=0,
            httponly=True,
            samesite="strict",
            secure=not settings.is_development,
            path="/",
        )

    # ── Verifying ─────────────────────────────────────────────────────────

    def decode_token(self, token: str) -> uuid.UUID:
        """
        Verify signature and expiry, return the embedded identity id.

        Raises:
            InvalidTokenError: bad signature, expired, malformed, or missing userId.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "userId"]},
            )
            return uuid.UUID(payload["userId"])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired session token")
            raise InvalidTokenError(context={"reason": "expired"})
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid session token: %s", type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__})
        except (AttributeError, TypeError, ValueError):
            # userId present but not a UUID
            raise InvalidTokenError(context={"reason": "malformed_user_id"})


session_service = SessionService()
