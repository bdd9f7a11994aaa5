"""
TechNotes Backend - Application Package Initializer
====================================================

What: Marks the `technotes` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, response contract
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Validation, orchestration
    ├─────────────────────────────────────┤
    │   Repositories (Storage Interface)  │  ← SQL or in-memory
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    Routes never touch the store directly; services never build HTTP responses.
"""

__version__ = "1.0.0"
