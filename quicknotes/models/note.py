"""
QuickNotes Backend — Note SQLAlchemy Model
============================================

What:  ORM model representing the `notes` table in PostgreSQL.
Who:   Used by NoteService for CRUD and tag search, and by Alembic.

Table Design Rationale:
    - user_id: every query is scoped by owner; ON DELETE CASCADE removes a
      user's notes with the account
    - tags: native PostgreSQL text[] so the search can use the array
      overlap operator (tags && :tags) backed by a GIN index
    - updated_at: advanced on every UPDATE; the list and search endpoints
      order by it

    Index on (user_id, updated_at DESC):
        Serves "my notes, most recently edited first" without a sort step.
    GIN index on tags:
        Serves the overlap search.
"""

from datetime import datetime
from typing import List

from sqlalchemy import ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP

from quicknotes.database import Base


class Note(Base):
    """
    A single note owned by one user.

    Query Patterns:
        - List: WHERE user_id = :uid ORDER BY updated_at DESC
        - Detail / update / delete: WHERE id = :id AND user_id = :uid
        - Tag search: WHERE user_id = :uid AND tags && :tags
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
    )

    tags: Mapped[List[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
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

    __table_args__ = (
        Index("idx_notes_user_updated_at", user_id, updated_at.desc()),
        Index("idx_notes_tags", tags, postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id={self.user_id}, title='{self.title}')>"
