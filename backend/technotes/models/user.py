"""
TechNotes Backend - User SQLAlchemy Model
==========================================

What:  ORM model representing the `users` table.
Who:   Used by the SQL user repository and by `init_models`.

Table Design:
    - UUID primary key, generated client-side (portable across PostgreSQL/SQLite)
    - username: unbounded TEXT with a UNIQUE constraint, so the store itself
      rejects duplicates even when two requests pass the duplicate check
      concurrently
    - password: bcrypt hash (60 characters), never the plain text
    - roles: JSON array of role labels, order preserved
    - version: optimistic-concurrency counter (SQLAlchemy version_id_col);
      an UPDATE against a stale version raises StaleDataError
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from technotes.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A user account that owns notes.

    Lifecycle:
        1. Created by POST /users (active = true, created_at == updated_at)
        2. Mutated only by PATCH /users/{id} (updated_at refreshed)
        3. Deleted by DELETE /users/{id}, refused while notes reference it
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Login name, unique across users (case-sensitive)",
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the user's password",
    )

    roles: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        comment="Ordered list of role labels",
    )

    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', active={self.active})>"
