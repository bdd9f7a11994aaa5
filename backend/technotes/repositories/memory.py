"""
TechNotes Backend - In-Memory Repositories
===========================================

What:  UserRepository / NoteRepository kept in process-local dicts.
Who:   The test-suite, and deployments started with STORAGE_BACKEND=memory.

Both repositories share one MemoryStore so the user/note rules (unique
usernames, no orphan notes) hold across them exactly as they do in SQL.

Atomicity:
    None of the methods awaits between reading and writing the store, so on
    the single asyncio event loop each call runs to completion without
    interleaving. That makes the username check-and-insert and the
    notes-check-and-delete atomic, the same guarantees the SQL constraints give.

Records are copied on the way in and out; callers never hold a reference
into the store.
"""

import uuid
from typing import Any, Dict, List, Optional

from technotes.exceptions import DuplicateKeyError, MissingReferenceError
from technotes.models.user import utcnow
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


class MemoryStore:
    """Insertion-ordered tables shared by the in-memory repositories."""

    def __init__(self):
        self.users: Dict[uuid.UUID, UserRecord] = {}
        self.notes: Dict[uuid.UUID, NoteRecord] = {}

    def username_owner(self, username: str) -> Optional[uuid.UUID]:
        for user in self.users.values():
            if user.username == username:
                return user.id
        return None

    def has_notes(self, user_id: uuid.UUID) -> bool:
        return any(note.user_id == user_id for note in self.notes.values())


class InMemoryUserRepository(UserRepository):

    def __init__(self, store: MemoryStore):
        self.store = store

    async def find_all(self) -> List[UserRecord]:
        return [user.model_copy(deep=True) for user in self.store.users.values()]

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        uid = parse_identifier(user_id)
        user = self.store.users.get(uid) if uid else None
        return user.model_copy(deep=True) if user else None

    async def find_by_field(self, field: str, value: Any) -> Optional[UserRecord]:
        if field not in USER_FIELDS:
            raise ValueError(f"Unknown user field '{field}'")
        if field == "id":
            return await self.find_by_id(value)
        for user in self.store.users.values():
            if getattr(user, field) == value:
                return user.model_copy(deep=True)
        return None

    async def create(self, *, username: str, password: str, roles: List[str], active: bool = True) -> UserRecord:
        if self.store.username_owner(username) is not None:
            raise DuplicateKeyError("username", username)
        now = utcnow()
        user = UserRecord(
            id=uuid.uuid4(),
            username=username,
            password=password,
            roles=list(roles),
            active=active,
            created_at=now,
            updated_at=now,
        )
        self.store.users[user.id] = user
        return user.model_copy(deep=True)

    async def update(self, user_id: str, **changes: Any) -> Optional[UserRecord]:
        unknown = set(changes) - USER_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        uid = parse_identifier(user_id)
        current = self.store.users.get(uid) if uid else None
        if current is None:
            return None

        if "username" in changes:
            owner = self.store.username_owner(changes["username"])
            if owner is not None and owner != uid:
                raise DuplicateKeyError("username", changes["username"])

        if "roles" in changes:
            changes["roles"] = list(changes["roles"])
        updated = current.model_copy(
            update={**changes, "updated_at": utcnow(), "version": current.version + 1},
            deep=True,
        )
        self.store.users[uid] = updated
        return updated.model_copy(deep=True)

    async def delete_if_unreferenced(self, user_id: str) -> DeleteOutcome:
        uid = parse_identifier(user_id)
        if uid is None or uid not in self.store.users:
            return DeleteOutcome.MISSING
        if self.store.has_notes(uid):
            return DeleteOutcome.REFERENCED
        del self.store.users[uid]
        return DeleteOutcome.DELETED

    async def ping(self) -> bool:
        return True


class InMemoryNoteRepository(NoteRepository):

    def __init__(self, store: MemoryStore):
        self.store = store

    async def find_by_user(self, user_id: str) -> List[NoteRecord]:
        uid = parse_identifier(user_id)
        return [
            note.model_copy(deep=True)
            for note in self.store.notes.values()
            if note.user_id == uid
        ]

    async def find_by_id(self, note_id: str) -> Optional[NoteRecord]:
        nid = parse_identifier(note_id)
        note = self.store.notes.get(nid) if nid else None
        return note.model_copy(deep=True) if note else None

    async def exists_for_user(self, user_id: str) -> bool:
        uid = parse_identifier(user_id)
        return uid is not None and self.store.has_notes(uid)

    async def create(self, *, user_id: str, title: str, text: str, completed: bool = False) -> NoteRecord:
        uid = parse_identifier(user_id)
        if uid is None or uid not in self.store.users:
            raise MissingReferenceError("user_id", user_id)
        now = utcnow()
        note = NoteRecord(
            id=uuid.uuid4(),
            user_id=uid,
            title=title,
            text=text,
            completed=completed,
            created_at=now,
            updated_at=now,
        )
        self.store.notes[note.id] = note
        return note.model_copy(deep=True)

    async def update(self, note_id: str, **changes: Any) -> Optional[NoteRecord]:
        unknown = set(changes) - NOTE_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update note fields: {sorted(unknown)}")

        nid = parse_identifier(note_id)
        current = self.store.notes.get(nid) if nid else None
        if current is None:
            return None
        updated = current.model_copy(
            update={**changes, "updated_at": utcnow(), "version": current.version + 1},
        )
        self.store.notes[nid] = updated
        return updated.model_copy(deep=True)

    async def delete(self, note_id: str) -> bool:
        nid = parse_identifier(note_id)
        if nid is None or nid not in self.store.notes:
            return False
        del self.store.notes[nid]
        return True
