# Repositories package init
"""
TechNotes Backend - Storage Layer
==================================

Repository Inventory:
    - base.py:    abstract UserRepository / NoteRepository + record types
    - sql.py:     SQLAlchemy implementation (users/notes tables)
    - memory.py:  in-memory implementation sharing one MemoryStore
"""

from technotes.repositories.base import (
    DeleteOutcome,
    NoteRecord,
    NoteRepository,
    UserRecord,
    UserRepository,
)
from technotes.repositories.memory import InMemoryNoteRepository, InMemoryUserRepository, MemoryStore
from technotes.repositories.sql import SqlNoteRepository, SqlUserRepository

__all__ = [
    "DeleteOutcome",
    "InMemoryNoteRepository",
    "InMemoryUserRepository",
    "MemoryStore",
    "NoteRecord",
    "NoteRepository",
    "SqlNoteRepository",
    "SqlUserRepository",
    "UserRecord",
    "UserRepository",
]
