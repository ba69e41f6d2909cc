"""
ORM models. Importing this package registers every table on Base.metadata,
which is what Alembic autogenerate and the test schema setup rely on.
"""

from notetaking.models.note import Note
from notetaking.models.tag import NoteTag, Tag
from notetaking.models.user import User

__all__ = ["Note", "NoteTag", "Tag", "User"]
