"""
QuickNotes Backend — Notes Route Handlers
===========================================

What:  /api/notes CRUD and /api/notes/search/by-tags.
How:   Every route depends on get_current_user; the token's user id scopes
       all work delegated to NoteService.
Who:   Called by the dashboard page of the browser client and by
       quicknotes.client.QuickNotesClient.

Route order:
    /search/by-tags is declared before /{note_id} so the literal path is
    never treated as a note id.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from quicknotes.database import get_db_session
from quicknotes.schemas.note import ErrorResponse, NoteResponse, NoteWrite
from quicknotes.schemas.user import TokenPayload
from quicknotes.security import get_current_user
from quicknotes.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/notes",
    tags=["Notes"],
    responses={
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
)


@router.post(
    "",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "title is required", "model": ErrorResponse}},
    summary="Create a note",
)
async def create_note(
    payload: Optional[NoteWrite] = None,
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(db=db, user_id=user.user_id, payload=payload or NoteWrite())


@router.get(
    "",
    response_model=List[NoteResponse],
    summary="List my notes, most recently updated first",
)
async def list_notes(
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    return await note_service.list_notes(db=db, user_id=user.user_id)


@router.get(
    "/search/by-tags",
    response_model=List[NoteResponse],
    summary="Find notes carrying any of the given tags",
    description=(
        "Comma-separated `tags`; a note matches when it has at least one of them. "
        "Results are cached per user and tag set until that user's next write "
        "or the cache TTL, whichever comes first."
    ),
)
async def search_notes_by_tags(
    tags: Optional[str] = Query(default=None, description="Comma-separated tags, e.g. work,personal"),
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    return await note_service.search_by_tags(db=db, user_id=user.user_id, raw_tags=tags)


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Get one of my notes",
)
async def get_note(
    note_id: int,
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.get_note(db=db, user_id=user.user_id, note_id=note_id)


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "title is required", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Replace a note's title, content and tags",
)
async def update_note(
    note_id: int,
    payload: Optional[NoteWrite] = None,
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(
        db=db, user_id=user.user_id, note_id=note_id, payload=payload or NoteWrite()
    )


@router.delete(
    "/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Delete a note",
)
async def delete_note(
    note_id: int,
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.delete_note(db=db, user_id=user.user_id, note_id=note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
