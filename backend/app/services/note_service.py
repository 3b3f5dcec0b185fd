"""
Notes Backend — Note Service (Business Logic)
==============================================

What:  Create, list, update and delete a user's notes.
How:   Every query is scoped by the authenticated user's id, so one user can
       never read or change another user's notes. A note owned by someone
       else is reported exactly like a missing note (404).
Who:   Called by the /api/notes route handlers after the session token gate.

Error Handling:
    Blank content       → ValidationError (400)
    Note missing/foreign → NotFoundError (404)
    Database failure    → PersistenceError (500), details logged only
"""

import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, PersistenceError, ValidationError
from app.models.note import Note
from app.schemas.note import NoteResponse

logger = logging.getLogger(__name__)


def _require_content(content: str) -> str:
    if not content or not content.strip():
        raise ValidationError("Content is required", field="content")
    return content


class NoteService:
    """
    Business logic layer for note operations.

    Stateless: the database session and the acting user id are passed into
    each call.
    """

    async def list_notes(self, db: AsyncSession, user_id: UUID) -> List[NoteResponse]:
        """The user's notes, newest first."""
        try:
            result = await db.execute(
                select(Note)
                .where(Note.user_id == user_id)
                .order_by(desc(Note.created_at))
            )
            notes = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes for %s: %s", user_id, str(e))
            raise PersistenceError(
                message="Failed to fetch notes",
                context={"error_type": type(e).__name__},
            ) from e
        return [NoteResponse.model_validate(note) for note in notes]

    async def create_note(self, db: AsyncSession, user_id: UUID, content: str) -> NoteResponse:
        note = Note(user_id=user_id, content=_require_content(content))
        db.add(note)
        try:
            await db.flush()
            await db.refresh(note)
        except SQLAlchemyError as e:
            logger.error("Database error creating note for %s: %s", user_id, str(e))
            raise PersistenceError(
                message="Failed to create note",
                context={"error_type": type(e).__name__},
            ) from e
        logger.info("Note %s created for user %s", note.id, user_id)
        return NoteResponse.model_validate(note)

    async def update_note(
        self, db: AsyncSession, user_id: UUID, note_id: UUID, content: str
    ) -> NoteResponse:
        """
        Replace a note's content.

        Raises:
            ValidationError: content blank
            NotFoundError:   no note with this id belongs to the user
        """
        content = _require_content(content)
        note = await self._get_owned(db, user_id, note_id)
        note.content = content
        # onupdate only fires when a column changes; an edit always counts
        note.updated_at = datetime.now(timezone.utc)
        try:
            await db.flush()
            await db.refresh(note)
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e))
            raise PersistenceError(
                message="Failed to update note",
                context={"note_id": str(note_id)},
            ) from e
        logger.info("Note %s updated", note_id)
        return NoteResponse.model_validate(note)

    async def delete_note(self, db: AsyncSession, user_id: UUID, note_id: UUID) -> None:
        note = await self._get_owned(db, user_id, note_id)
        try:
            await db.delete(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise PersistenceError(
                message="Failed to delete note",
                context={"note_id": str(note_id)},
            ) from e
        logger.info("Note %s deleted", note_id)

    async def _get_owned(self, db: AsyncSession, user_id: UUID, note_id: UUID) -> Note:
        try:
            result = await db.execute(
                select(Note).where(Note.id == note_id, Note.user_id == user_id)
            )
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise PersistenceError(context={"note_id": str(note_id)}) from e

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
