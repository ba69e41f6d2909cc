"""
Tag and NoteTag models.

Tags are global: one row per distinct name across all users, created the
first time anybody uses the name and never updated or deleted afterwards.
NoteTag is the join table; its composite primary key guarantees at most one
row per (note, tag) pair.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notetaking.database import Base

if TYPE_CHECKING:
    from notetaking.models.note import Note


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    note_tags: Mapped[List["NoteTag"]] = relationship(back_populates="tag", lazy="raise")

    # Concurrent creators of the same name collide here; TagReconciler retries.
    __table_args__ = (UniqueConstraint("name", name="uq_tags_name"),)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name!r})>"


class NoteTag(Base):
    __tablename__ = "note_tags"

    note_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("notes.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )

    note: Mapped["Note"] = relationship(back_populates="note_tags", lazy="raise")
    tag: Mapped["Tag"] = relationship(back_populates="note_tags", lazy="raise")

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, tag_id={self.tag_id})>"
