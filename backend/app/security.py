"""
Flock Backend — Password Hashing
==================================

What:  Salted one-way hashing of user secrets.
How:   passlib CryptContext with pbkdf2_sha256 (per-hash random salt, no
       native bcrypt dependency).
"""

from passlib.context import CryptContext

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """Hash a plain-text password using PBKDF2-SHA256."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a candidate password against a stored hash."""
    return pwd_context.verify(plain_password, hashed)


def dummy_verify() -> None:
    """
    Burn the same amount of time as a real verification.

    Called when the username is unknown, so a failed login takes as long
    whether or not the account exists.
    """
    pwd_context.dummy_verify()
