"""
QuickNotes Backend — Auth Request/Response Schemas
====================================================

What:  Pydantic models for /api/auth/register, /api/auth/login and /api/auth/me.

Both credential fields are optional at the schema level; UserService turns
a missing or empty value into 400 `email and password are required`.
"""

from typing import Optional

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Body of POST /api/auth/register and POST /api/auth/login."""
    email: Optional[str] = Field(default=None, description="Account email")
    password: Optional[str] = Field(default=None, description="Plaintext password")


class UserPublic(BaseModel):
    """The public view of an account. Never includes the password hash."""
    id: int
    email: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Returned by register (201) and login (200)."""
    token: str = Field(description="Bearer token for the Authorization header")
    user: UserPublic


class TokenPayload(BaseModel):
    """Claims QuickNotes reads back out of a verified bearer token."""
    user_id: int
    email: str
