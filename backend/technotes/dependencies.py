"""
TechNotes Backend - FastAPI Dependencies
=========================================

What:  Builds the repositories and services each request works with.
How:   `get_repositories` yields SQL repositories bound to a per-request
       session, or the in-memory repositories over the store kept on
       `app.state` when STORAGE_BACKEND=memory. Services commit their writes
       before answering, because FastAPI may exit the session scope only
       after the response is sent; by then its final commit has nothing
       left to write. Tests override `get_repositories`.

Example usage in a route:
    @router.get("/users")
    async def list_users(service: UserService = Depends(get_user_service)):
        ...
"""

from typing import AsyncGenerator, NamedTuple

from fastapi import Depends, Request

from technotes.config import settings
from technotes.database import session_scope
from technotes.repositories.base import NoteRepository, UserRepository
from technotes.repositories.memory import InMemoryNoteRepository, InMemoryUserRepository, MemoryStore
from technotes.repositories.sql import SqlNoteRepository, SqlUserRepository
from technotes.services.note_service import NoteService
from technotes.services.user_service import UserService


class Repositories(NamedTuple):
    users: UserRepository
    notes: NoteRepository


def memory_repositories(store: MemoryStore) -> Repositories:
    return Repositories(users=InMemoryUserRepository(store), notes=InMemoryNoteRepository(store))


async def get_repositories(request: Request) -> AsyncGenerator[Repositories, None]:
    if not settings.uses_sql_storage:
        yield memory_repositories(request.app.state.memory_store)
        return

    async with session_scope() as session:
        yield Repositories(users=SqlUserRepository(session), notes=SqlNoteRepository(session))


def get_user_service(repos: Repositories = Depends(get_repositories)) -> UserService:
    return UserService(users=repos.users, notes=repos.notes)


def get_note_service(repos: Repositories = Depends(get_repositories)) -> NoteService:
    return NoteService(users=repos.users, notes=repos.notes)
