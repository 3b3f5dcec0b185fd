"""
Notes Backend — Note Service Unit Tests
========================================

What:  Tests for NoteService business logic (list, create, update, delete).
How:   Mock DB sessions for error paths; in-memory SQLite for ownership and
       ordering.

What we test:
    ✅ Blank content rejected before touching the database
    ✅ Create/update return the serialized note
    ✅ Notes of another user behave exactly like missing notes
    ✅ Newest notes come first
    ✅ Database failures become PersistenceError
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import NotFoundError, PersistenceError, ValidationError
from app.models.note import Note
from app.services.note_service import NoteService


class TestNoteServiceValidation:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n\t", None])
    async def test_create_requires_content(self, mock_db_session, content):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(mock_db_session, uuid.uuid4(), content)

        assert exc_info.value.message == "Content is required"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_requires_content(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.update_note(mock_db_session, uuid.uuid4(), uuid.uuid4(), " ")

        mock_db_session.execute.assert_not_awaited()


class TestNoteServiceMocked:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_update_missing_note(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_note(mock_db_session, uuid.uuid4(), uuid.uuid4(), "text")

        assert exc_info.value.message == "Note not found"

    @pytest.mark.asyncio
    async def test_list_database_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(PersistenceError) as exc_info:
            await self.service.list_notes(mock_db_session, uuid.uuid4())

        assert exc_info.value.message == "Failed to fetch notes"

    @pytest.mark.asyncio
    async def test_create_database_failure(self, mock_db_session):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("gone"))

        with pytest.raises(PersistenceError):
            await self.service.create_note(mock_db_session, uuid.uuid4(), "hello")

    @pytest.mark.asyncio
    async def test_list_serializes_rows(self, mock_db_session):
        owner = uuid.uuid4()
        now = datetime.now(timezone.utc)
        mock_notes = []
        for i in range(3):
            note = MagicMock()
            note.id = uuid.uuid4()
            note.user_id = owner
            note.content = f"Note {i}"
            note.created_at = now
            note.updated_at = now
            mock_notes.append(note)

        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = mock_notes
        mock_db_session.execute.return_value = mock_result

        result = await self.service.list_notes(mock_db_session, owner)

        assert [n.content for n in result] == ["Note 0", "Note 1", "Note 2"]
        assert all(n.user_id == owner for n in result)


class TestNoteServiceDatabase:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_and_list(self, db_session, make_user):
        user = await make_user("ann@example.com")

        created = await self.service.create_note(db_session, user.id, "First")
        notes = await self.service.list_notes(db_session, user.id)

        assert [n.id for n in notes] == [created.id]
        assert created.content == "First"
        assert created.user_id == user.id

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session, make_user):
        user = await make_user("ann@example.com")
        base = datetime(2024, 1, 15, tzinfo=timezone.utc)
        for i in range(3):
            db_session.add(
                Note(user_id=user.id, content=f"n{i}", created_at=base + timedelta(minutes=i))
            )
        await db_session.flush()

        notes = await self.service.list_notes(db_session, user.id)

        assert [n.content for n in notes] == ["n2", "n1", "n0"]

    @pytest.mark.asyncio
    async def test_update_replaces_content(self, db_session, make_user):
        user = await make_user("ann@example.com")
        created = await self.service.create_note(db_session, user.id, "draft")

        updated = await self.service.update_note(db_session, user.id, created.id, "final")

        assert updated.id == created.id
        assert updated.content == "final"

    @pytest.mark.asyncio
    async def test_update_with_same_content_refreshes_timestamp(self, db_session, make_user):
        user = await make_user("ann@example.com")
        created = await self.service.create_note(db_session, user.id, "unchanged")
        row = await db_session.get(Note, created.id)
        row.updated_at = datetime(2020, 1, 1, tzinfo=timezone.utc)
        await db_session.flush()

        updated = await self.service.update_note(db_session, user.id, created.id, "unchanged")

        assert updated.content == "unchanged"
        assert updated.updated_at.year > 2020

    @pytest.mark.asyncio
    async def test_other_users_notes_are_invisible(self, db_session, make_user):
        ann = await make_user("ann@example.com")
        bob = await make_user("bob@example.com")
        note = await self.service.create_note(db_session, ann.id, "ann's secret")

        assert await self.service.list_notes(db_session, bob.id) == []
        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, bob.id, note.id, "hijacked")
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, bob.id, note.id)

        remaining = await self.service.list_notes(db_session, ann.id)
        assert [n.content for n in remaining] == ["ann's secret"]

    @pytest.mark.asyncio
    async def test_delete(self, db_session, make_user):
        user = await make_user("ann@example.com")
        note = await self.service.create_note(db_session, user.id, "temp")

        await self.service.delete_note(db_session, user.id, note.id)

        assert await self.service.list_notes(db_session, user.id) == []
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, user.id, note.id)
