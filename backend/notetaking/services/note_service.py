"""
Note Taking API — Note Service (Write Orchestrator)
=====================================================

What:  Create, update and soft-delete notes for their owner.
Why:   Keeps the write workflows (note row + tag reconciliation) out of the
       route handlers, so they can be tested without HTTP.
Who:   POST /notes, PUT /notes/{id}, DELETE /notes/{id}.

Orchestration Flow (PUT /notes/{id}):
    ┌──────────────┐    ┌──────────────┐    ┌────────────────┐    ┌──────────┐
    │ Find owned   │───▶│ Apply title, │───▶│ TagReconciler  │───▶│ Respond  │
    │ live note    │    │ content, ts  │    │ (replace=True) │    │          │
    └──────────────┘    └──────────────┘    └────────────────┘    └──────────┘

    The session passed in carries the request transaction; it commits after
    the handler returns, so the note and its tags are saved together.

Design Decision:
    NoteService is stateless — it receives the db session for each call.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notetaking.exceptions import DatabaseError, NoteTakingError
from notetaking.models import Note
from notetaking.models.note import utc_now
from notetaking.schemas.note import NoteResponse
from notetaking.services.note_query_service import note_query_service, to_note_response
from notetaking.services.tag_reconciler import tag_reconciler

logger = logging.getLogger(__name__)


class NoteService:
    """
    Business logic layer for note mutations.

    Responsibilities:
        - create_note(): insert note, attach deduplicated tags
        - update_note(): overwrite fields, replace the whole tag set
        - delete_note(): soft delete (flag flip, row kept)
    """

    async def create_note(
        self,
        db: AsyncSession,
        user_id: int,
        title: str,
        content: str,
        tags: List[str],
    ) -> NoteResponse:
        """
        Raises:
            DatabaseError: Any storage failure (nothing is committed)
        """
        try:
            now = utc_now()
            note = Note(
                user_id=user_id,
                title=title,
                content=content,
                is_deleted=False,
                created_at=now,
                updated_at=now,
            )
            db.add(note)
            await db.flush()  # assigns note.id

            tag_names = await tag_reconciler.reconcile(db, note.id, tags)
        except NoteTakingError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating note for user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"user_id": user_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Note %s created by user %s", note.id, user_id)
        return to_note_response(note, tag_names)

    async def update_note(
        self,
        db: AsyncSession,
        note_id: int,
        user_id: int,
        title: str,
        content: str,
        tags: List[str],
    ) -> NoteResponse:
        """
        Raises:
            NotFoundError: Note absent, deleted or not owned (→ 404)
            DatabaseError: Any storage failure
        """
        try:
            note = await note_query_service.find_owned_note(db, note_id, user_id)

            note.title = title
            note.content = content
            note.updated_at = utc_now()
            await db.flush()

            tag_names = await tag_reconciler.reconcile(db, note.id, tags, replace=True)
        except NoteTakingError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Note %s updated by user %s", note.id, user_id)
        return to_note_response(note, tag_names)

    async def delete_note(self, db: AsyncSession, note_id: int, user_id: int) -> None:
        """
        Soft delete: the row stays, is_deleted flips and updated_at moves.
        Tag associations are left in place.

        Raises:
            NotFoundError: Note absent, already deleted or not owned (→ 404)
            DatabaseError: Any storage failure
        """
        try:
            note = await note_query_service.find_owned_note(db, note_id, user_id)
            note.is_deleted = True
            note.updated_at = utc_now()
            await db.flush()
        except NoteTakingError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Note %s deleted by user %s", note_id, user_id)


note_service = NoteService()
