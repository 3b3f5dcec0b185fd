"""
Notes Backend — Notes Route Handlers
=====================================

What:  CRUD for the signed-in user's notes under /api/notes.
How:   Every handler depends on get_current_user_id, so the session token is
       validated before any note data is read or written. Handlers stay thin
       and delegate to NoteService.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user_id
from app.schemas.auth import ErrorResponse
from app.schemas.note import MessageResponse, NoteContent, NoteResponse
from app.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/notes",
    tags=["Notes"],
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
)


@router.get("", response_model=List[NoteResponse], summary="List my notes, newest first")
async def list_notes(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    return await note_service.list_notes(db, user_id)


@router.post(
    "",
    status_code=201,
    response_model=NoteResponse,
    responses={400: {"description": "Content is required", "model": ErrorResponse}},
    summary="Create a note",
)
async def create_note(
    body: NoteContent,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(db, user_id, body.content)


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Content is required", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Replace a note's content",
)
async def update_note(
    note_id: UUID,
    body: NoteContent,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(db, user_id, note_id, body.content)


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db, user_id, note_id)
    return MessageResponse(message="Note deleted")
