"""
TechNotes Backend - Note SQLAlchemy Model
==========================================

What:  ORM model representing the `notes` table.
Who:   Used by the SQL note repository and by `init_models`.

Table Design:
    - user_id: FOREIGN KEY to users.id with ON DELETE RESTRICT; a user row
      cannot disappear while a note still points at it, and a note cannot
      be inserted for a user that no longer exists
    - title, text: unbounded TEXT; the API puts no length limit on either
    - completed: defaults to false
    - version: optimistic-concurrency counter, never exposed over HTTP

Index on (user_id, created_at):
    Serves the only listing query, "notes of one user in creation order",
    and the existence check made before deleting a user.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Mapped, mapped_column

from technotes.database import Base
from technotes.models.user import utcnow


class Note(Base):
    """A note owned by exactly one user."""

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=sql_text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_notes_user_id_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id={self.user_id}, completed={self.completed})>"
