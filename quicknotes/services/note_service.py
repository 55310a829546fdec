"""
QuickNotes Backend — Note Service
===================================

What:  Per-user note CRUD plus cached tag search.
How:   Parameterized SQLAlchemy statements (INSERT/UPDATE/DELETE ... RETURNING)
       against `notes`, every one filtered by the caller's user id, and the
       Redis SearchCache in front of the tag search.
Who:   Called by the /api/notes route handlers.

Cache-aside flow (GET /api/notes/search/by-tags):
    ┌──────────┐  hit   ┌──────────────┐
    │  Redis   │──────▶ │  response    │
    └────┬─────┘        └──────────────┘
         │ miss               ▲
         ▼                    │
    ┌──────────┐  rows  ┌─────┴────────┐
    │ Postgres │──────▶ │ SET key ttl  │
    └──────────┘        └──────────────┘

    Every successful write commits first, then drops all of the writer's
    cached searches, so a search that runs after the write cannot re-cache
    pre-write rows.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, desc, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quicknotes.cache import search_cache
from quicknotes.exceptions import DatabaseError, NotFoundError, ValidationError
from quicknotes.models.note import Note
from quicknotes.schemas.note import NoteResponse, NoteWrite

logger = logging.getLogger(__name__)

NEWEST_FIRST = (desc(Note.updated_at), desc(Note.id))


def parse_tag_query(raw: Optional[str]) -> List[str]:
    """
    Split a comma-separated `tags` query value into clean tags.

    Whitespace around each tag is dropped, as are empty entries and repeats.
    """
    if not raw or not raw.strip():
        return []
    tags = [tag.strip() for tag in raw.split(",")]
    return list(dict.fromkeys(tag for tag in tags if tag))


class NoteService:
    """
    Business logic layer for note operations.

    Ownership: a note that exists but belongs to someone else is reported
    exactly like a missing one (NotFoundError).
    """

    async def create_note(
        self, db: AsyncSession, user_id: int, payload: NoteWrite
    ) -> NoteResponse:
        """
        Insert a note for `user_id`.

        Raises:
            ValidationError: title missing (→ 400)
            DatabaseError: insert failed (→ 500)
        """
        self._require_title(payload)
        try:
            result = await db.execute(
                insert(Note)
                .values(
                    user_id=user_id,
                    title=payload.title,
                    content=payload.content or "",
                    tags=payload.tags,
                )
                .returning(Note)
            )
            note = NoteResponse.model_validate(result.scalar_one())
            await db.commit()
        except SQLAlchemyError as e:
            raise self._database_error("creating note", e, user_id=user_id)

        logger.info("Created note %s for user %s", note.id, user_id)
        await search_cache.invalidate_user(user_id)
        return note

    async def list_notes(self, db: AsyncSession, user_id: int) -> List[NoteResponse]:
        """All of the user's notes, most recently updated first."""
        try:
            result = await db.execute(
                select(Note).where(Note.user_id == user_id).order_by(*NEWEST_FIRST)
            )
            return [NoteResponse.model_validate(note) for note in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._database_error("listing notes", e, user_id=user_id)

    async def get_note(self, db: AsyncSession, user_id: int, note_id: int) -> NoteResponse:
        try:
            result = await db.execute(
                select(Note).where(Note.id == note_id, Note.user_id == user_id)
            )
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._database_error("fetching note", e, user_id=user_id, note_id=note_id)

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return NoteResponse.model_validate(note)

    async def update_note(
        self, db: AsyncSession, user_id: int, note_id: int, payload: NoteWrite
    ) -> NoteResponse:
        """
        Replace title, content and tags of one of the user's notes.

        Raises:
            ValidationError: title missing (checked before the lookup → 400)
            NotFoundError: no such note for this user (→ 404)
        """
        self._require_title(payload)
        try:
            result = await db.execute(
                update(Note)
                .where(Note.id == note_id, Note.user_id == user_id)
                .values(
                    title=payload.title,
                    content=payload.content or "",
                    tags=payload.tags,
                    updated_at=func.now(),
                )
                .returning(Note)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError(resource="note", resource_id=str(note_id))
            note = NoteResponse.model_validate(row)
            await db.commit()
        except SQLAlchemyError as e:
            raise self._database_error("updating note", e, user_id=user_id, note_id=note_id)

        logger.info("Updated note %s for user %s", note_id, user_id)
        await search_cache.invalidate_user(user_id)
        return note

    async def delete_note(self, db: AsyncSession, user_id: int, note_id: int) -> None:
        """Remove one of the user's notes, or raise NotFoundError."""
        try:
            result = await db.execute(
                delete(Note)
                .where(Note.id == note_id, Note.user_id == user_id)
                .returning(Note.id)
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError(resource="note", resource_id=str(note_id))
            await db.commit()
        except SQLAlchemyError as e:
            raise self._database_error("deleting note", e, user_id=user_id, note_id=note_id)

        logger.info("Deleted note %s for user %s", note_id, user_id)
        await search_cache.invalidate_user(user_id)

    async def search_by_tags(
        self, db: AsyncSession, user_id: int, raw_tags: Optional[str]
    ) -> List[NoteResponse]:
        """
        Notes carrying ANY of the requested tags, newest first.

        An empty or all-blank tag list returns [] without touching the
        database or the cache.
        """
        tags = parse_tag_query(raw_tags)
        if not tags:
            return []

        key = search_cache.build_key(user_id, tags)
        cached = await search_cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit: %s", key)
            return [NoteResponse.model_validate(item) for item in cached]

        try:
            result = await db.execute(
                select(Note)
                .where(Note.user_id == user_id, Note.tags.overlap(tags))
                .order_by(*NEWEST_FIRST)
            )
            notes = [NoteResponse.model_validate(note) for note in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._database_error("searching notes", e, user_id=user_id, tags=tags)

        await search_cache.set(key, [note.model_dump(mode="json") for note in notes])
        return notes

    @staticmethod
    def _require_title(payload: NoteWrite) -> None:
        if not payload.title:
            raise ValidationError("title is required", field="title")

    @staticmethod
    def _database_error(action: str, error: Exception, **context) -> DatabaseError:
        logger.error("Database error %s: %s", action, error, exc_info=True)
        context["error_type"] = type(error).__name__
        return DatabaseError(
            message=f"Could not complete the request while {action}. Please try again.",
            context=context,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
