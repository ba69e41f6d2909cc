"""
Note Taking API — Note Query Service
======================================

What:  Read side of notes: single fetch and filtered, paginated listing,
       always scoped to the requesting user.
Who:   Route handlers (GET /notes, GET /notes/{id}) and NoteService, which
       reuses find_owned_note() for update and delete.

Visibility rule:
    A note is visible only when it exists, is_deleted is false and its
    user_id equals the requester. Every other case is the same NotFoundError,
    so the API never reveals whether another user's note id exists.

Listing query plan:
    SELECT notes WHERE user_id = :uid AND NOT is_deleted
        [AND (title LIKE %:q% OR content LIKE %:q%)]
        [AND EXISTS (note_tags JOIN tags WHERE tags.name = :tag)]
    ORDER BY updated_at DESC, id DESC
    OFFSET (page - 1) * page_size LIMIT page_size

    plus a COUNT over the same WHERE clause, and one batched query that
    resolves tag names for the notes on the page.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from sqlalchemy import Select, desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notetaking.exceptions import DatabaseError, NotFoundError
from notetaking.models import Note, NoteTag, Tag
from notetaking.schemas.note import NoteListResponse, NoteResponse

logger = logging.getLogger(__name__)


def to_note_response(note: Note, tags: List[str]) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        title=note.title,
        content=note.content,
        tags=tags,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


class NoteQueryService:
    """
    Owner-scoped note retrieval.

    Error Handling Strategy:
        NotFoundError propagates as-is. Any SQLAlchemy failure is logged with
        detail and re-raised as a generic DatabaseError.
    """

    def _visible_notes(self, user_id: int) -> Select:
        return select(Note).where(Note.user_id == user_id, Note.is_deleted.is_(False))

    async def find_owned_note(self, db: AsyncSession, note_id: int, user_id: int) -> Note:
        """
        Load a note the user may see, or raise NotFoundError.

        Raises:
            NotFoundError: absent, soft-deleted or owned by someone else
        """
        result = await db.execute(self._visible_notes(user_id).where(Note.id == note_id))
        note = result.scalar_one_or_none()
        if note is None:
            logger.warning("Note %s not found for user %s", note_id, user_id)
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def tag_names_for(
        self, db: AsyncSession, note_ids: Sequence[int]
    ) -> Dict[int, List[str]]:
        """Resolve tag names for several notes in one query, sorted by name."""
        names: Dict[int, List[str]] = defaultdict(list)
        if not note_ids:
            return names
        result = await db.execute(
            select(NoteTag.note_id, Tag.name)
            .join(Tag, Tag.id == NoteTag.tag_id)
            .where(NoteTag.note_id.in_(note_ids))
            .order_by(NoteTag.note_id, Tag.name)
        )
        for note_id, name in result.all():
            names[note_id].append(name)
        return names

    async def get_note(self, db: AsyncSession, note_id: int, user_id: int) -> NoteResponse:
        """
        Retrieve one note with its tags.

        Raises:
            NotFoundError: Note not visible to this user (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            note = await self.find_owned_note(db, note_id, user_id)
            tags = await self.tag_names_for(db, [note.id])
            return to_note_response(note, tags[note.id])
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": note_id},
            ) from e

    async def list_notes(
        self,
        db: AsyncSession,
        user_id: int,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> NoteListResponse:
        """
        List the user's live notes, newest update first.

        Args:
            db: Request-scoped session
            user_id: Owner whose notes are listed
            page: 1-based page number
            page_size: Items per page
            search: Case-sensitive substring matched against title OR content
            tag: Exact tag name the note must carry

        Returns:
            NoteListResponse with the page slice and the filtered total count.
            An empty page is a normal result, not an error.
        """
        page = max(page, 1)
        page_size = max(page_size, 1)

        filters = [Note.user_id == user_id, Note.is_deleted.is_(False)]
        if search:
            filters.append(
                or_(
                    Note.title.contains(search, autoescape=True),
                    Note.content.contains(search, autoescape=True),
                )
            )
        if tag:
            filters.append(
                select(NoteTag.note_id)
                .join(Tag, Tag.id == NoteTag.tag_id)
                .where(NoteTag.note_id == Note.id, Tag.name == tag)
                .exists()
            )

        try:
            count_result = await db.execute(select(func.count(Note.id)).where(*filters))
            total_count = count_result.scalar() or 0

            result = await db.execute(
                select(Note)
                .where(*filters)
                .order_by(desc(Note.updated_at), desc(Note.id))
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            notes = list(result.scalars().all())

            tags_by_note = await self.tag_names_for(db, [note.id for note in notes])
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Retrieved %d notes for user %s", len(notes), user_id)
        return NoteListResponse(
            notes=[to_note_response(note, tags_by_note[note.id]) for note in notes],
            total_count=total_count,
            page=page,
            page_size=page_size,
        )


note_query_service = NoteQueryService()
