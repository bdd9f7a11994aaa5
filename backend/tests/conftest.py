"""
TechNotes Backend - Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, created fresh for each test):
    ├── store / repositories:  in-memory storage behind the services
    ├── user_service / note_service: services over the in-memory repositories
    ├── sql_engine / sql_session: in-memory SQLite with the real schema
    ├── test_client:  HTTPX AsyncClient over a fresh app (in-memory storage)
    └── sql_client:   HTTPX AsyncClient whose requests run against SQLite
                      (built by `sql_app`, also usable with other session factories)
"""

import os

# Override settings for testing BEFORE any technotes imports
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"  # Minimum cost keeps hashing fast
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from technotes.database import build_engine, init_models, session_scope  # noqa: E402
from technotes.dependencies import Repositories, get_repositories, memory_repositories  # noqa: E402
from technotes.main import create_app  # noqa: E402
from technotes.repositories.memory import MemoryStore  # noqa: E402
from technotes.repositories.sql import SqlNoteRepository, SqlUserRepository  # noqa: E402
from technotes.services.note_service import NoteService  # noqa: E402
from technotes.services.passwords import PasswordHasher  # noqa: E402
from technotes.services.user_service import UserService  # noqa: E402


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repositories(store) -> Repositories:
    return memory_repositories(store)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_service(repositories, hasher) -> UserService:
    return UserService(users=repositories.users, notes=repositories.notes, hasher=hasher)


@pytest.fixture
def note_service(repositories) -> NoteService:
    return NoteService(users=repositories.users, notes=repositories.notes)


@pytest.fixture
def user_payload() -> Dict[str, Any]:
    """A valid POST /users body."""
    return {"username": "dave", "password": "s3cret-pass", "roles": ["Employee"]}


@pytest_asyncio.fixture
async def sql_engine():
    """
    Fresh in-memory SQLite database with every table created.

    Foreign keys are enforced, so the notes → users reference behaves as it
    does on PostgreSQL.
    """
    engine = build_engine("sqlite+aiosqlite://")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sql_session_factory(sql_engine) -> async_sessionmaker:
    return async_sessionmaker(sql_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def sql_session(sql_session_factory):
    async with sql_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client():
    """
    HTTPX AsyncClient talking to a fresh app with empty in-memory storage.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def sql_app(session_factory: async_sessionmaker) -> FastAPI:
    """A fresh app whose requests use SQL repositories from `session_factory`."""
    app = create_app()

    async def sql_repositories():
        async with session_scope(session_factory) as session:
            yield Repositories(users=SqlUserRepository(session), notes=SqlNoteRepository(session))

    app.dependency_overrides[get_repositories] = sql_repositories
    return app


@pytest_asyncio.fixture
async def sql_client(sql_session_factory):
    """HTTPX AsyncClient whose requests use SQL repositories on in-memory SQLite."""
    transport = ASGITransport(app=sql_app(sql_session_factory))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def create_user(
    client: AsyncClient,
    username: str = "dave",
    password: str = "s3cret-pass",
    roles: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """POST a valid user and return the decoded body."""
    response = await client.post(
        "/users",
        json={"username": username, "password": password, "roles": roles or ["Employee"]},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_note(
    client: AsyncClient,
    user_id: str,
    title: str = "Fix printer",
    text: str = "Paper jam on floor 2",
) -> Dict[str, Any]:
    response = await client.post(f"/users/{user_id}/notes", json={"title": title, "text": text})
    assert response.status_code == 201, response.text
    return response.json()
