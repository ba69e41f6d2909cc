"""
Note Taking API — Note SQLAlchemy Model
=========================================

What:  ORM model for the `notes` table.
Who:   NoteService (create/update/soft-delete), NoteQueryService (fetch/list),
       TagService (per-user tag counts) and Alembic.

Table Design:
    - user_id: owner; every read filters on it, there is no shared note
    - is_deleted: soft-delete flag, rows are never removed
    - updated_at: drives the listing order (most recently updated first)

    Composite index (user_id, is_deleted, updated_at DESC) serves the listing
    query: equality on the first two columns, then an ordered range scan.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notetaking.database import Base, UTCDateTime

if TYPE_CHECKING:
    from notetaking.models.tag import NoteTag
    from notetaking.models.user import User


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A free-text note owned by exactly one user.

    Lifecycle:
        1. Created by POST /notes together with its tag associations
        2. Updated by PUT /notes/{id}: title, content, updated_at, full tag replace
        3. Soft-deleted by DELETE /notes/{id}: is_deleted flips, updated_at bumps
        4. Never hard-deleted
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # lazy="raise": async sessions cannot lazy-load; queries say what they need
    user: Mapped["User"] = relationship(back_populates="notes", lazy="raise")
    note_tags: Mapped[List["NoteTag"]] = relationship(back_populates="note", lazy="raise")

    __table_args__ = (
        Index("idx_notes_user_live_updated", "user_id", "is_deleted", updated_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, user_id={self.user_id}, "
            f"is_deleted={self.is_deleted}, updated_at='{self.updated_at}')>"
        )
