"""
Note Taking API — Tag Reconciler
==================================

What:  Makes a note's tag set equal to a requested list of tag names.
Why:   Tags are global rows shared by every note that uses the name, so
       saving a note is a find-or-create on `tags` followed by a rewrite of
       the note's rows in `note_tags`.
Who:   NoteService.create_note() and NoteService.update_note().

Algorithm:
    1. Deduplicate names exactly (case and whitespace significant), keeping
       first-occurrence order; this list is what the caller echoes back
    2. Look up existing tags with those names
    3. Insert the missing names inside a SAVEPOINT
    4. Update flow only: delete every join row of the note (full replace)
    5. Insert one join row per tag

    ┌──────────┐   ┌───────────────┐   ┌──────────────┐   ┌──────────────┐
    │  Dedupe  │──▶│ Lookup/insert │──▶│ Delete joins │──▶│ Insert joins │
    └──────────┘   │     tags      │   │ (update only)│   └──────────────┘
                   └───────────────┘   └──────────────┘

Concurrency:
    Two requests introducing the same new name race on uq_tags_name. The
    loser's savepoint is rolled back (its outer transaction survives) and
    tenacity re-runs lookup + insert, which now finds the winner's row.

Transactions:
    Everything runs on the caller's session, inside the request transaction.
    Nothing is committed here; a failure anywhere rolls back the note write
    together with its tag changes.
"""

import logging
from typing import Dict, Iterable, List

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from notetaking.config import settings
from notetaking.exceptions import DatabaseError
from notetaking.models import NoteTag, Tag

logger = logging.getLogger(__name__)


def dedupe_tag_names(names: Iterable[str]) -> List[str]:
    """Exact-match deduplication preserving first-occurrence order."""
    return list(dict.fromkeys(names))


class TagReconciler:
    """
    Find-or-create tags and rewrite a note's associations.

    Stateless; a single module-level instance is shared by all requests.
    """

    async def reconcile(
        self,
        db: AsyncSession,
        note_id: int,
        tag_names: Iterable[str],
        replace: bool = False,
    ) -> List[str]:
        """
        Make the note's tag set exactly equal to the deduplicated `tag_names`.

        Args:
            db: Request-scoped session (transaction owned by the caller)
            note_id: Note whose associations are written
            tag_names: Requested names, possibly with duplicates
            replace: True on update, drops the note's current joins first

        Returns:
            The deduplicated names, in the order the caller gave them

        Raises:
            DatabaseError: Any storage failure, including exhausted retries
        """
        names = dedupe_tag_names(tag_names)
        try:
            tag_ids = await self._resolve_tag_ids(db, names) if names else {}

            if replace:
                await db.execute(
                    delete(NoteTag)
                    .where(NoteTag.note_id == note_id)
                    .execution_options(synchronize_session=False)
                )

            if tag_ids:
                await db.execute(
                    insert(NoteTag),
                    [{"note_id": note_id, "tag_id": tag_id} for tag_id in tag_ids.values()],
                )
        except SQLAlchemyError as e:
            logger.error("Tag reconciliation failed for note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note's tags. Please try again.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            ) from e

        logger.debug("Note %s now tagged %s", note_id, names)
        return names

    async def _existing_tags(self, db: AsyncSession, names: List[str]) -> Dict[str, int]:
        result = await db.execute(select(Tag.name, Tag.id).where(Tag.name.in_(names)))
        return {name: tag_id for name, tag_id in result.all()}

    @retry(
        retry=retry_if_exception_type(IntegrityError),
        stop=stop_after_attempt(settings.tag_create_max_attempts),
        wait=wait_random(min=0, max=0.05),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _resolve_tag_ids(self, db: AsyncSession, names: List[str]) -> Dict[str, int]:
        """
        Map every requested name to a tag id, creating missing tags.

        The insert runs in a SAVEPOINT so a unique violation from a concurrent
        creator only discards that savepoint; the retry then sees the row.
        """
        tag_ids = await self._existing_tags(db, names)
        missing = [name for name in names if name not in tag_ids]
        if missing:
            new_tags = [Tag(name=name) for name in missing]
            async with db.begin_nested():
                db.add_all(new_tags)
                await db.flush()
            tag_ids.update({tag.name: tag.id for tag in new_tags})
            logger.info("Created %d new tag(s): %s", len(new_tags), missing)
        return tag_ids


tag_reconciler = TagReconciler()
