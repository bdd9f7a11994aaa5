"""
TechNotes Backend - Abstract Repository Interfaces
===================================================

What:  The storage contract the services are written against.
How:   Concrete implementations inherit from UserRepository / NoteRepository
       and return plain records (never ORM objects), so callers cannot tell
       which store backs them.
Who:   Injected into UserService and NoteService by dependencies.py.

Implementations:
    - SqlUserRepository / SqlNoteRepository: SQLAlchemy (PostgreSQL, SQLite)
    - InMemoryUserRepository / InMemoryNoteRepository: process-local dicts,
      used by the test-suite and by STORAGE_BACKEND=memory

Contract:
    - Identifiers are passed in as strings exactly as they arrived in the URL.
      A string that is not a valid identifier resolves to "not found" (None),
      it never raises.
    - create/update raise DuplicateKeyError when `username` collides with
      another user; the check is enforced by the store, atomically.
    - NoteRepository.create raises MissingReferenceError when the owning user
      no longer exists.
    - UserRepository.delete_if_unreferenced deletes a user only if no note
      references it, as one atomic operation.
    - Writes become durable on commit(), which services await before they
      return; a failing commit surfaces there as DatabaseError.
"""

import enum
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator


# Attributes addressable through find_by_field / update
USER_FIELDS = {"id", "username", "roles", "active", "created_at", "updated_at"}
USER_MUTABLE_FIELDS = {"username", "password", "roles", "active"}
NOTE_MUTABLE_FIELDS = {"title", "text", "completed"}


class _StoredRecord(BaseModel):
    @field_validator("created_at", "updated_at", mode="after", check_fields=False)
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands timestamps back without tzinfo; they were written as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class UserRecord(_StoredRecord):
    """Full stored user, including the password hash and version counter."""
    id: uuid.UUID
    username: str
    password: str
    roles: List[str]
    active: bool
    created_at: datetime
    updated_at: datetime
    version: int = 1


class NoteRecord(_StoredRecord):
    """Full stored note, including the owner reference and version counter."""
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    text: str
    completed: bool
    created_at: datetime
    updated_at: datetime
    version: int = 1


class DeleteOutcome(str, enum.Enum):
    """Result of UserRepository.delete_if_unreferenced."""
    DELETED = "deleted"
    MISSING = "missing"
    REFERENCED = "referenced"


def parse_identifier(raw: Any) -> Optional[uuid.UUID]:
    """Return the UUID for `raw`, or None if it is not a valid identifier."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError, AttributeError):
        return None


class UserRepository(ABC):
    """Storage operations for users."""

    @abstractmethod
    async def find_all(self) -> List[UserRecord]:
        """All users in creation order."""
        ...

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def find_by_field(self, field: str, value: Any) -> Optional[UserRecord]:
        """
        First user whose `field` equals `value` (exact, case-sensitive match).

        Raises:
            ValueError: `field` is not a user attribute.
        """
        ...

    @abstractmethod
    async def create(self, *, username: str, password: str, roles: List[str], active: bool = True) -> UserRecord:
        """
        Insert a user. created_at and updated_at are set to the same instant.

        Raises:
            DuplicateKeyError: username already belongs to another user.
        """
        ...

    @abstractmethod
    async def update(self, user_id: str, **changes: Any) -> Optional[UserRecord]:
        """
        Apply `changes` to a user and refresh updated_at.

        Returns:
            The updated record, or None if the user does not exist.

        Raises:
            DuplicateKeyError: the new username belongs to another user.
        """
        ...

    @abstractmethod
    async def delete_if_unreferenced(self, user_id: str) -> DeleteOutcome:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """True when the store answers. Used by the health check."""
        ...

    async def commit(self) -> None:
        """
        Make the writes so far durable. Called by services before they answer.

        Stores without transactions persist on every write; for them this
        is a no-op.
        """


class NoteRepository(ABC):
    """Storage operations for notes."""

    @abstractmethod
    async def find_by_user(self, user_id: str) -> List[NoteRecord]:
        """All notes of one user in creation order."""
        ...

    @abstractmethod
    async def find_by_id(self, note_id: str) -> Optional[NoteRecord]:
        ...

    @abstractmethod
    async def exists_for_user(self, user_id: str) -> bool:
        ...

    @abstractmethod
    async def create(self, *, user_id: str, title: str, text: str, completed: bool = False) -> NoteRecord:
        """
        Insert a note owned by `user_id`.

        Raises:
            MissingReferenceError: the user does not exist.
        """
        ...

    @abstractmethod
    async def update(self, note_id: str, **changes: Any) -> Optional[NoteRecord]:
        """Apply `changes` and refresh updated_at; None if the note does not exist."""
        ...

    @abstractmethod
    async def delete(self, note_id: str) -> bool:
        """Delete a note; False if it did not exist."""
        ...

    async def commit(self) -> None:
        """Same as UserRepository.commit; both share one transaction in SQL."""
