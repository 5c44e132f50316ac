"""
Flock Backend — Auth Service (Credential Store)
=================================================

What:  Signup and login. Issuing the cookie is left to the route, which owns
       the HTTP response; see app.services.session_service.
Who:   Called by app.routes.auth.

Signup validation order (first failure wins):
    1. email shape           → ValidationError "Invalid email format"
    2. username not taken    → ConflictError   "Username is already taken"
    3. email not taken       → ConflictError   "Email is already taken"
    4. password ≥ 6 chars    → ValidationError "Password must be at least 6 characters long"

Login never says which half of the credentials was wrong: unknown username
and wrong password raise the same InvalidCredentialsError, and an unknown
username still pays for one hash verification.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    ConflictError,
    DatabaseError,
    FlockError,
    InvalidCredentialsError,
    ValidationError,
)
from app.models.user import User
from app.schemas.user import LoginRequest, SignupRequest
from app.security import MIN_PASSWORD_LENGTH, dummy_verify, hash_password, verify_password
from app.services.user_service import is_valid_email, user_service

logger = logging.getLogger(__name__)


class AuthService:

    async def signup(self, db: AsyncSession, payload: SignupRequest) -> User:
        """
        Create a new identity with a hashed password.

        Returns:
            The persisted User (flushed, so its id is assigned).
        """
        if not is_valid_email(payload.email):
            raise ValidationError(message="Invalid email format", field="email")

        try:
            if await user_service.get_by_username(db, payload.username) is not None:
                raise ConflictError(message="Username is already taken", field="username")

            if await user_service.get_by_email(db, payload.email) is not None:
                raise ConflictError(message="Email is already taken", field="email")

            if len(payload.password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(
                    message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
                    field="password",
                )

            user = User(
                username=payload.username,
                full_name=payload.full_name,
                email=payload.email,
                password=hash_password(payload.password),
            )
            db.add(user)
            await db.flush()
            logger.info("User signed up: %s (%s)", user.username, user.id)
            return user

        except FlockError:
            raise
        except IntegrityError as e:
            logger.warning("Signup lost a uniqueness race for %s: %s", payload.username, str(e))
            raise ConflictError(message="Username or email is already taken")
        except SQLAlchemyError as e:
            logger.error("Database error during signup: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not create your account. Please try again.")

    async def login(self, db: AsyncSession, payload: LoginRequest) -> User:
        """
        Verify credentials.

        Raises:
            InvalidCredentialsError: unknown username or wrong password.
        """
        try:
            user = await user_service.get_by_username(db, payload.username)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError()

        if user is None:
            dummy_verify()
            logger.info("Login failed: unknown username")
            raise InvalidCredentialsError()

        if not verify_password(payload.password, user.password):
            logger.info("Login failed: wrong password for %s", user.id)
            raise InvalidCredentialsError()

        logger.info("User logged in: %s", user.id)
        return user


auth_service = AuthService()
