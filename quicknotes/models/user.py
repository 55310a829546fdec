"""
QuickNotes Backend — User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
Who:   Used by UserService for registration, login and profile lookups,
       and by Alembic for schema management.

Table Design Rationale:
    - Integer primary key: ids are embedded in bearer tokens and cache keys
    - email: UNIQUE; the login identifier
    - password_hash: bcrypt hash only; the plaintext never reaches the DB
"""

from datetime import datetime

from sqlalchemy import Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import TIMESTAMP

from quicknotes.database import Base


class User(Base):
    """A registered QuickNotes account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Login identifier",
    )

    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="bcrypt hash of the user's password",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
