"""
Note Taking API — Tag Service
===============================

What:  Read side of the global tag vocabulary for GET /tags.
Who:   routes/tags.py.

Query plan:
    SELECT tags.id, tags.name, COUNT(notes.id)
    FROM tags
    LEFT JOIN note_tags ON note_tags.tag_id = tags.id
    LEFT JOIN notes     ON notes.id = note_tags.note_id
                       AND notes.user_id = :uid AND NOT notes.is_deleted
    GROUP BY tags.id, tags.name
    ORDER BY tags.name

    Every tag is listed, including those the caller never used (count 0).
"""

import logging

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notetaking.exceptions import DatabaseError
from notetaking.models import Note, NoteTag, Tag
from notetaking.schemas.tag import TagItem, TagListResponse

logger = logging.getLogger(__name__)


class TagService:
    """Read side of tags for GET /tags."""

    async def list_tags(self, db: AsyncSession, user_id: int) -> TagListResponse:
        """
        Every global tag, each with how many of the caller's live notes carry it.

        Outer joins keep tags the caller never used (count 0). The note join
        condition carries the owner and soft-delete filters so that other
        users' notes and deleted notes produce NULLs, which COUNT skips.
        """
        notes_count = func.count(Note.id)
        query = (
            select(Tag.id, Tag.name, notes_count)
            .outerjoin(NoteTag, NoteTag.tag_id == Tag.id)
            .outerjoin(
                Note,
                and_(
                    Note.id == NoteTag.note_id,
                    Note.user_id == user_id,
                    Note.is_deleted.is_(False),
                ),
            )
            .group_by(Tag.id, Tag.name)
            .order_by(Tag.name)
        )
        try:
            result = await db.execute(query)
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error listing tags: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve tags. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        tags = [TagItem(id=tag_id, name=name, notes_count=count) for tag_id, name, count in rows]
        logger.info("Retrieved %d tags for user %s", len(tags), user_id)
        return TagListResponse(tags=tags)


tag_service = TagService()
