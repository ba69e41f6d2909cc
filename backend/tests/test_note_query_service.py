"""
Note Taking API — Note Query Service Tests
============================================

What:  Tests for owner-scoped fetch and the filtered, paginated listing.
How:   Notes are written through NoteService on the per-test SQLite database,
       then read back through NoteQueryService.

What we test:
    ✅ Fetch returns tags sorted by name
    ✅ Soft-deleted and foreign notes are NotFound
    ✅ Page slicing, ordering and total count
    ✅ Case-sensitive search over title OR content
    ✅ Exact tag filter, combined with search
    ✅ Empty result is a normal page
    ✅ Database failures become DatabaseError
"""

import pytest
from sqlalchemy.exc import OperationalError

from notetaking.exceptions import DatabaseError, NotFoundError
from notetaking.services.note_query_service import NoteQueryService
from notetaking.services.note_service import note_service


async def _create(db, user, title, content="body", tags=()):
    return await note_service.create_note(
        db=db, user_id=user.id, title=title, content=content, tags=list(tags)
    )


class TestGetNote:

    def setup_method(self):
        self.service = NoteQueryService()

    @pytest.mark.asyncio
    async def test_get_own_note(self, db_session, users):
        created = await _create(db_session, users["alice"], "Groceries", tags=["shop", "home"])

        note = await self.service.get_note(db_session, created.id, users["alice"].id)

        assert note.id == created.id
        assert note.title == "Groceries"
        assert note.tags == ["home", "shop"]

    @pytest.mark.asyncio
    async def test_other_users_note_not_found(self, db_session, users):
        created = await _create(db_session, users["alice"], "Private")

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, created.id, users["bob"].id)

    @pytest.mark.asyncio
    async def test_soft_deleted_note_not_found(self, db_session, users):
        created = await _create(db_session, users["alice"], "Old")
        await note_service.delete_note(db_session, created.id, users["alice"].id)

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, created.id, users["alice"].id)

    @pytest.mark.asyncio
    async def test_missing_note_not_found(self, db_session, users):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_note(db_session, 9999, users["alice"].id)
        assert exc_info.value.context["resource_id"] == "9999"

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await self.service.get_note(mock_db_session, 1, 1)


class TestListNotes:

    def setup_method(self):
        self.service = NoteQueryService()

    @pytest.mark.asyncio
    async def test_second_page_of_twelve(self, db_session, users):
        for i in range(12):
            await _create(db_session, users["alice"], f"Note {i}")

        result = await self.service.list_notes(
            db_session, users["alice"].id, page=2, page_size=5
        )

        assert result.total_count == 12
        assert result.page == 2
        assert result.page_size == 5
        # Newest first: page 1 is 11..7, page 2 is 6..2
        assert [n.title for n in result.notes] == [f"Note {i}" for i in (6, 5, 4, 3, 2)]

    @pytest.mark.asyncio
    async def test_last_update_moves_note_to_front(self, db_session, users):
        first = await _create(db_session, users["alice"], "First")
        await _create(db_session, users["alice"], "Second")
        await note_service.update_note(
            db_session, first.id, users["alice"].id, "First, edited", "body", []
        )

        result = await self.service.list_notes(db_session, users["alice"].id)

        assert [n.title for n in result.notes] == ["First, edited", "Second"]

    @pytest.mark.asyncio
    async def test_excludes_deleted_and_foreign_notes(self, db_session, users):
        kept = await _create(db_session, users["alice"], "Kept")
        gone = await _create(db_session, users["alice"], "Gone")
        await _create(db_session, users["bob"], "Bob's")
        await note_service.delete_note(db_session, gone.id, users["alice"].id)

        result = await self.service.list_notes(db_session, users["alice"].id)

        assert result.total_count == 1
        assert [n.id for n in result.notes] == [kept.id]

    @pytest.mark.asyncio
    async def test_search_is_case_sensitive(self, db_session, users):
        await _create(db_session, users["alice"], "Meeting notes", content="agenda")
        await _create(db_session, users["alice"], "Shopping", content="buy milk for the Meeting")
        await _create(db_session, users["alice"], "meeting lowercase", content="x")

        result = await self.service.list_notes(db_session, users["alice"].id, search="Meeting")

        assert result.total_count == 2
        assert sorted(n.title for n in result.notes) == ["Meeting notes", "Shopping"]

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, db_session, users):
        await _create(db_session, users["alice"], "100% done")
        await _create(db_session, users["alice"], "100 items")

        result = await self.service.list_notes(db_session, users["alice"].id, search="100%")

        assert [n.title for n in result.notes] == ["100% done"]

    @pytest.mark.asyncio
    async def test_tag_filter_is_exact(self, db_session, users):
        await _create(db_session, users["alice"], "Tagged", tags=["work"])
        await _create(db_session, users["alice"], "Other case", tags=["Work"])
        await _create(db_session, users["alice"], "Untagged")

        result = await self.service.list_notes(db_session, users["alice"].id, tag="work")

        assert result.total_count == 1
        assert result.notes[0].title == "Tagged"
        assert result.notes[0].tags == ["work"]

    @pytest.mark.asyncio
    async def test_tag_filter_combined_with_search(self, db_session, users):
        await _create(db_session, users["alice"], "Plan Q1", tags=["work"])
        await _create(db_session, users["alice"], "Plan trip", tags=["travel"])
        await _create(db_session, users["alice"], "Budget", tags=["work"])

        result = await self.service.list_notes(
            db_session, users["alice"].id, search="Plan", tag="work"
        )

        assert [n.title for n in result.notes] == ["Plan Q1"]

    @pytest.mark.asyncio
    async def test_other_users_tag_usage_does_not_leak(self, db_session, users):
        await _create(db_session, users["bob"], "Bob work", tags=["work"])

        result = await self.service.list_notes(db_session, users["alice"].id, tag="work")

        assert result.total_count == 0
        assert result.notes == []

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, db_session, users):
        await _create(db_session, users["alice"], "Only one")

        result = await self.service.list_notes(
            db_session, users["alice"].id, page=3, page_size=10
        )

        assert result.notes == []
        assert result.total_count == 1

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(DatabaseError):
            await self.service.list_notes(mock_db_session, user_id=1)
