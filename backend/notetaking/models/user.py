from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notetaking.database import Base, UTCDateTime
from notetaking.models.note import utc_now

if TYPE_CHECKING:
    from notetaking.models.note import Note


class User(Base):
    """
    A registered account. Created by POST /auth/register, never deleted.

    email is stored lower-cased and is unique; password_hash holds an argon2id
    encoded hash (parameters and salt included), never the password.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)

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

    notes: Mapped[List["Note"]] = relationship(back_populates="user", lazy="raise")

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"
