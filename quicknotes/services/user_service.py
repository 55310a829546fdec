"""
QuickNotes Backend — User Service
===================================

What:  Registration, login and profile lookup.
How:   Parameterized SQLAlchemy statements against `users`, bcrypt hashing
       off the event loop, bearer token issuance via quicknotes.security.
Who:   Called by the /api/auth route handlers.

Error Handling Strategy:
    Business failures raise ValidationError / ConflictError /
    AuthenticationError / NotFoundError. Unexpected SQLAlchemy failures are
    wrapped in DatabaseError so driver details never reach the client.
"""

import logging
from typing import Optional

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from quicknotes.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from quicknotes.models.user import User
from quicknotes.schemas.user import AuthResponse, UserPublic
from quicknotes.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

CREDENTIALS_REQUIRED = "email and password are required"
INVALID_CREDENTIALS = "Invalid credentials"


class UserService:
    """Account operations. Stateless; the session is passed per call."""

    async def register(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> AuthResponse:
        """
        Create an account and sign the caller in.

        Raises:
            ValidationError: email or password missing (→ 400)
            ConflictError: email already registered (→ 409)
            DatabaseError: insert failed (→ 500)
        """
        if not email or not password:
            raise ValidationError(CREDENTIALS_REQUIRED)

        try:
            existing = await db.execute(select(User.id).where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError("Email already registered", context={"email": email})

            password_hash = await run_in_threadpool(hash_password, password)
            result = await db.execute(
                insert(User)
                .values(email=email, password_hash=password_hash)
                .returning(User)
            )
            user = result.scalar_one()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            raise ConflictError("Email already registered", context={"email": email})
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", email, e, exc_info=True)
            raise DatabaseError(
                message="Failed to create user",
                context={"error_type": type(e).__name__},
            )

        logger.info("Registered user %s (%s)", user.id, user.email)
        return self._auth_response(user)

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> AuthResponse:
        """
        Exchange email + password for a bearer token.

        Unknown email and wrong password produce the same 401 so the
        endpoint does not reveal which accounts exist.
        """
        if not email or not password:
            raise ValidationError(CREDENTIALS_REQUIRED)

        try:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", e, exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None:
            logger.warning("Login attempt for unknown email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.warning("Invalid password for user %s", user.id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("User %s logged in", user.id)
        return self._auth_response(user)

    async def get_profile(self, db: AsyncSession, user_id: int) -> UserPublic:
        """The caller's account, or NotFoundError if it has been removed."""
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, e)
            raise DatabaseError(context={"user_id": user_id})

        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return UserPublic(id=user.id, email=user.email)

    @staticmethod
    def _auth_response(user: User) -> AuthResponse:
        return AuthResponse(
            token=create_access_token(user.id, user.email),
            user=UserPublic(id=user.id, email=user.email),
        )


user_service = UserService()
