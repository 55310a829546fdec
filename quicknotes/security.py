"""
QuickNotes Backend — Password Hashing & Bearer Tokens
=======================================================

What:  bcrypt password hashing, JWT issue/verify, and the FastAPI
       dependency that authenticates a request from its Authorization header.
Who:   UserService (hash/verify/issue) and every authenticated route
       (get_current_user).

Token format:
    HS256 JWT signed with settings.jwt_secret.
    Claims: sub (user id as string), email, iat, exp (iat + jwt_expires_days).

Usage:
    from quicknotes.security import hash_password, verify_password

    hashed = hash_password("my-password")
    verify_password("my-password", hashed)  # True
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Header

from quicknotes.config import settings
from quicknotes.exceptions import AuthenticationError
from quicknotes.schemas.user import TokenPayload

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plaintext: str) -> str:
    """
    Hash a password using bcrypt with a fresh salt.

    Returns:
        Bcrypt hash as string (60 characters, salt included)

    Raises:
        ValueError: plaintext is empty
    """
    if not plaintext:
        raise ValueError("Cannot hash empty password")

    hashed_bytes = bcrypt.hashpw(_password_bytes(plaintext), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_password(plaintext: str, password_hash: str) -> bool:
    """
    Verify a password against a stored bcrypt hash.

    Returns False (never raises) for empty input or a malformed hash.
    """
    if not plaintext or not password_hash:
        logger.warning("Attempted to verify with empty password or hash")
        return False

    try:
        return bcrypt.checkpw(_password_bytes(plaintext), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error("Error verifying password hash: %s", e)
        return False


def create_access_token(user_id: int, email: str, now: Optional[datetime] = None) -> str:
    """
    Sign a bearer token for a user.

    Args:
        user_id: Account id, stored in the `sub` claim
        email: Account email, stored in the `email` claim
        now: Issue time override (tests)
    """
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """
    Verify a bearer token and return its claims.

    Raises:
        AuthenticationError: bad signature, expired, or malformed claims
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
        return TokenPayload(user_id=int(claims["sub"]), email=claims.get("email", ""))
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired bearer token")
        raise AuthenticationError("Invalid token", context={"reason": "expired"})
    except (jwt.InvalidTokenError, ValueError, TypeError) as e:
        logger.info("Rejected bearer token: %s", e)
        raise AuthenticationError("Invalid token", context={"reason": "invalid"})


async def get_current_user(authorization: Optional[str] = Header(default=None)) -> TokenPayload:
    """
    FastAPI dependency: authenticate the request from `Authorization: Bearer <token>`.

    Raises:
        AuthenticationError: header missing, not a Bearer header, empty token,
            or the token fails verification (→ 401)
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Missing Authorization header")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError("Missing Authorization header")

    return decode_access_token(token)
