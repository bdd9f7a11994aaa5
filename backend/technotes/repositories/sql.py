"""
TechNotes Backend - SQLAlchemy Repositories
============================================

What:  UserRepository / NoteRepository backed by an AsyncSession.
How:   Every write is flushed immediately so constraint violations surface
       inside the request that caused them. Services call commit() before
       answering, so a failed commit becomes a 500 rather than a success
       response; the surrounding session scope (database.session_scope)
       rolls back on error.

Error translation:
    IntegrityError on users.username  → DuplicateKeyError("username")
    IntegrityError on notes.user_id   → MissingReferenceError("user_id")
    IntegrityError deleting a user    → DeleteOutcome.REFERENCED
    any other SQLAlchemyError         → DatabaseError (generic message)

Race handling:
    - Username uniqueness is the UNIQUE constraint on users.username.
    - User deletion is a single DELETE ... WHERE NOT EXISTS (notes of user);
      the ON DELETE RESTRICT foreign key backs it up against notes inserted
      by a concurrent, not-yet-committed transaction.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from sqlalchemy import delete, exists, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from technotes.exceptions import DatabaseError, DuplicateKeyError, MissingReferenceError
from technotes.models.note import Note
from technotes.models.user import User, utcnow
from technotes.repositories.base import (
    NOTE_MUTABLE_FIELDS,
    USER_FIELDS,
    USER_MUTABLE_FIELDS,
    DeleteOutcome,
    NoteRecord,
    NoteRepository,
    UserRecord,
    UserRepository,
    parse_identifier,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _translate_errors(operation: str) -> AsyncIterator[None]:
    """Wrap driver failures in DatabaseError; constraint errors are handled by callers."""
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(context={"operation": operation, "error_type": type(e).__name__})


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error("Database error during commit: %s", str(e), exc_info=True)
        raise DatabaseError(context={"operation": "commit", "error_type": type(e).__name__})


def _user_record(user: User) -> UserRecord:
    return UserRecord.model_validate(user, from_attributes=True)


def _note_record(note: Note) -> NoteRecord:
    return NoteRecord.model_validate(note, from_attributes=True)


class SqlUserRepository(UserRepository):
    """Users stored in the `users` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get(self, user_id: str) -> Optional[User]:
        uid = parse_identifier(user_id)
        if uid is None:
            return None
        return await self.session.get(User, uid)

    async def find_all(self) -> List[UserRecord]:
        async with _translate_errors("list users"):
            result = await self.session.execute(select(User).order_by(User.created_at, User.id))
            return [_user_record(user) for user in result.scalars().all()]

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        async with _translate_errors("get user"):
            user = await self._get(user_id)
            return _user_record(user) if user else None

    async def find_by_field(self, field: str, value: Any) -> Optional[UserRecord]:
        if field not in USER_FIELDS:
            raise ValueError(f"Unknown user field '{field}'")
        if field == "id":
            return await self.find_by_id(value)
        async with _translate_errors("find user"):
            result = await self.session.execute(
                select(User).where(getattr(User, field) == value).limit(1)
            )
            user = result.scalar_one_or_none()
            return _user_record(user) if user else None

    async def create(self, *, username: str, password: str, roles: List[str], active: bool = True) -> UserRecord:
        now = utcnow()
        user = User(
            username=username,
            password=password,
            roles=list(roles),
            active=active,
            created_at=now,
            updated_at=now,
        )
        async with _translate_errors("create user"):
            try:
                async with self.session.begin_nested():
                    self.session.add(user)
                    await self.session.flush()
            except IntegrityError:
                raise DuplicateKeyError("username", username)
            return _user_record(user)

    async def update(self, user_id: str, **changes: Any) -> Optional[UserRecord]:
        unknown = set(changes) - USER_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        async with _translate_errors("update user"):
            user = await self._get(user_id)
            if user is None:
                return None
            try:
                async with self.session.begin_nested():
                    for field, value in changes.items():
                        setattr(user, field, list(value) if field == "roles" else value)
                    user.updated_at = utcnow()
                    await self.session.flush()
            except IntegrityError:
                raise DuplicateKeyError("username", changes.get("username"))
            return _user_record(user)

    async def delete_if_unreferenced(self, user_id: str) -> DeleteOutcome:
        uid = parse_identifier(user_id)
        if uid is None:
            return DeleteOutcome.MISSING

        async with _translate_errors("delete user"):
            try:
                async with self.session.begin_nested():
                    result = await self.session.execute(
                        delete(User)
                        .where(User.id == uid)
                        .where(~exists().where(Note.user_id == uid))
                        .execution_options(synchronize_session="fetch")
                    )
            except IntegrityError:
                return DeleteOutcome.REFERENCED

            if result.rowcount:
                return DeleteOutcome.DELETED

            still_there = await self.session.execute(select(User.id).where(User.id == uid))
            if still_there.scalar_one_or_none() is None:
                return DeleteOutcome.MISSING
            return DeleteOutcome.REFERENCED

    async def ping(self) -> bool:
        async with _translate_errors("ping"):
            await self.session.execute(text("SELECT 1"))
            return True

    async def commit(self) -> None:
        await _commit(self.session)


class SqlNoteRepository(NoteRepository):
    """Notes stored in the `notes` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get(self, note_id: str) -> Optional[Note]:
        nid = parse_identifier(note_id)
        if nid is None:
            return None
        return await self.session.get(Note, nid)

    async def find_by_user(self, user_id: str) -> List[NoteRecord]:
        uid = parse_identifier(user_id)
        if uid is None:
            return []
        async with _translate_errors("list notes"):
            result = await self.session.execute(
                select(Note).where(Note.user_id == uid).order_by(Note.created_at, Note.id)
            )
            return [_note_record(note) for note in result.scalars().all()]

    async def find_by_id(self, note_id: str) -> Optional[NoteRecord]:
        async with _translate_errors("get note"):
            note = await self._get(note_id)
            return _note_record(note) if note else None

    async def exists_for_user(self, user_id: str) -> bool:
        uid = parse_identifier(user_id)
        if uid is None:
            return False
        async with _translate_errors("check notes"):
            result = await self.session.execute(select(exists().where(Note.user_id == uid)))
            return bool(result.scalar())

    async def create(self, *, user_id: str, title: str, text: str, completed: bool = False) -> NoteRecord:
        uid = parse_identifier(user_id)
        if uid is None:
            raise MissingReferenceError("user_id", user_id)

        now = utcnow()
        note = Note(
            user_id=uid,
            title=title,
            text=text,
            completed=completed,
            created_at=now,
            updated_at=now,
        )
        async with _translate_errors("create note"):
            try:
                async with self.session.begin_nested():
                    self.session.add(note)
                    await self.session.flush()
            except IntegrityError:
                raise MissingReferenceError("user_id", user_id)
            return _note_record(note)

    async def update(self, note_id: str, **changes: Any) -> Optional[NoteRecord]:
        unknown = set(changes) - NOTE_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update note fields: {sorted(unknown)}")

        async with _translate_errors("update note"):
            note = await self._get(note_id)
            if note is None:
                return None
            for field, value in changes.items():
                setattr(note, field, value)
            note.updated_at = utcnow()
            await self.session.flush()
            return _note_record(note)

    async def delete(self, note_id: str) -> bool:
        async with _translate_errors("delete note"):
            note = await self._get(note_id)
            if note is None:
                return False
            await self.session.delete(note)
            await self.session.flush()
            return True

    async def commit(self) -> None:
        await _commit(self.session)
