"""
Note Taking API — Tag Reconciler Tests
========================================

What:  Tests for find-or-create of global tags and note_tags rewriting.
How:   Runs against the per-test SQLite database; notes are inserted
       directly so only the reconciler is under test.

What we test:
    ✅ Exact deduplication keeps first-occurrence order
    ✅ Duplicates never produce duplicate tags or join rows
    ✅ replace=True leaves exactly the requested set
    ✅ A tag name shared by several notes (any owner) is one row
    ✅ A concurrent creator's unique violation is retried, not surfaced
    ✅ Empty list clears tags on update
"""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from notetaking.exceptions import DatabaseError
from notetaking.models import Note, NoteTag, Tag
from notetaking.services.tag_reconciler import TagReconciler, dedupe_tag_names


async def _make_note(db, user, title="A note"):
    note = Note(user_id=user.id, title=title, content="body")
    db.add(note)
    await db.flush()
    return note


async def _tags_of(db, note_id):
    result = await db.execute(
        select(Tag.name)
        .join(NoteTag, NoteTag.tag_id == Tag.id)
        .where(NoteTag.note_id == note_id)
        .order_by(Tag.name)
    )
    return list(result.scalars().all())


async def _tag_count(db):
    return (await db.execute(select(func.count(Tag.id)))).scalar()


class TestDedupeTagNames:

    def test_keeps_first_occurrence_order(self):
        assert dedupe_tag_names(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_matching_is_exact(self):
        """Case and surrounding whitespace make names distinct."""
        assert dedupe_tag_names(["Work", "work", " work"]) == ["Work", "work", " work"]

    def test_empty(self):
        assert dedupe_tag_names([]) == []


class TestReconcile:

    def setup_method(self):
        self.reconciler = TagReconciler()

    @pytest.mark.asyncio
    async def test_create_dedupes_tags_and_joins(self, db_session, users):
        note = await _make_note(db_session, users["alice"])

        names = await self.reconciler.reconcile(db_session, note.id, ["a", "b", "a"])

        assert names == ["a", "b"]
        assert await _tags_of(db_session, note.id) == ["a", "b"]
        assert await _tag_count(db_session) == 2
        joins = await db_session.execute(
            select(func.count()).select_from(NoteTag).where(NoteTag.note_id == note.id)
        )
        assert joins.scalar() == 2

    @pytest.mark.asyncio
    async def test_replace_leaves_exactly_requested_set(self, db_session, users):
        note = await _make_note(db_session, users["alice"])
        await self.reconciler.reconcile(db_session, note.id, ["a", "b"])

        names = await self.reconciler.reconcile(db_session, note.id, ["b", "c"], replace=True)

        assert names == ["b", "c"]
        assert await _tags_of(db_session, note.id) == ["b", "c"]
        # "a" stays in the global vocabulary even though nothing uses it
        assert await _tag_count(db_session) == 3

    @pytest.mark.asyncio
    async def test_replace_with_empty_list_clears_tags(self, db_session, users):
        note = await _make_note(db_session, users["alice"])
        await self.reconciler.reconcile(db_session, note.id, ["a"])

        names = await self.reconciler.reconcile(db_session, note.id, [], replace=True)

        assert names == []
        assert await _tags_of(db_session, note.id) == []

    @pytest.mark.asyncio
    async def test_two_notes_share_one_tag_row(self, db_session, users):
        first = await _make_note(db_session, users["alice"], "first")
        second = await _make_note(db_session, users["alice"], "second")

        await self.reconciler.reconcile(db_session, first.id, ["work", "draft"])
        await self.reconciler.reconcile(db_session, second.id, ["work"])

        assert await _tag_count(db_session) == 2
        work_ids = await db_session.execute(
            select(NoteTag.tag_id).join(Tag, Tag.id == NoteTag.tag_id).where(Tag.name == "work")
        )
        assert len(set(work_ids.scalars().all())) == 1

    @pytest.mark.asyncio
    async def test_same_name_across_users_is_one_tag(self, db_session, users):
        alice_note = await _make_note(db_session, users["alice"])
        bob_note = await _make_note(db_session, users["bob"])

        await self.reconciler.reconcile(db_session, alice_note.id, ["work"])
        await self.reconciler.reconcile(db_session, bob_note.id, ["work"])

        rows = await db_session.execute(select(Tag).where(Tag.name == "work"))
        assert len(rows.scalars().all()) == 1
        assert await _tags_of(db_session, alice_note.id) == ["work"]
        assert await _tags_of(db_session, bob_note.id) == ["work"]

    @pytest.mark.asyncio
    async def test_concurrent_tag_creation_is_retried(self, db_session, users):
        """
        Simulates losing the race: the first lookup misses a tag another
        transaction already created, the insert hits uq_tags_name, and the
        retry picks up the existing row.
        """
        db_session.add(Tag(name="work"))
        await db_session.flush()
        note = await _make_note(db_session, users["alice"])

        real_lookup = self.reconciler._existing_tags
        calls = []

        async def stale_then_real(db, names):
            calls.append(names)
            if len(calls) == 1:
                return {}
            return await real_lookup(db, names)

        with patch.object(self.reconciler, "_existing_tags", side_effect=stale_then_real):
            names = await self.reconciler.reconcile(db_session, note.id, ["work", "new"])

        assert names == ["work", "new"]
        assert len(calls) == 2
        assert await _tags_of(db_session, note.id) == ["new", "work"]
        assert await _tag_count(db_session) == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_database_error(self, db_session, users):
        db_session.add(Tag(name="work"))
        await db_session.flush()
        note = await _make_note(db_session, users["alice"])

        async def always_stale(db, names):
            return {}

        with patch.object(self.reconciler, "_existing_tags", side_effect=always_stale):
            with pytest.raises(DatabaseError):
                await self.reconciler.reconcile(db_session, note.id, ["work"])
