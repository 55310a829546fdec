"""
QuickNotes Backend — Auth Route Handlers
==========================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
Who:   Called by the login page of the browser client and by
       quicknotes.client.QuickNotesClient.

Routes stay thin: they unpack the body and delegate to UserService, which
raises the application exceptions that main.py maps to 400/401/404/409.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from quicknotes.database import get_db_session
from quicknotes.schemas.note import ErrorResponse
from quicknotes.schemas.user import AuthResponse, Credentials, TokenPayload, UserPublic
from quicknotes.security import get_current_user
from quicknotes.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "email and password are required", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account and receive a bearer token",
)
async def register(
    credentials: Optional[Credentials] = None,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    credentials = credentials or Credentials()
    return await user_service.register(db, credentials.email, credentials.password)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "email and password are required", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Exchange email and password for a bearer token",
)
async def login(
    credentials: Optional[Credentials] = None,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    credentials = credentials or Credentials()
    return await user_service.login(db, credentials.email, credentials.password)


@router.get(
    "/me",
    response_model=UserPublic,
    responses={
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
    },
    summary="The account behind the current bearer token",
)
async def me(
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserPublic:
    return await user_service.get_profile(db, user.user_id)
