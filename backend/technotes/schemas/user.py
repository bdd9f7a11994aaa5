"""
TechNotes Backend - User Request/Response Schemas
==================================================

What:  Pydantic models for the /users API contract.

Request bodies are deliberately permissive (`Any`): the business rules
("All fields are required.", roles must be a non-empty list, active must
be a boolean) live in UserService so they answer with 400 and the exact
messages clients rely on, instead of FastAPI's generic 422.

Responses are the lean projection of a user: the password hash and the
internal version counter are never part of them.
"""

import uuid
from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from technotes.schemas.common import RecordSchema


class UserCreate(BaseModel):
    """Body of POST /users."""
    username: Any = None
    password: Any = None
    roles: Any = None

    model_config = ConfigDict(extra="ignore")


class UserUpdate(BaseModel):
    """Body of PATCH /users/{id}. An absent or empty password keeps the stored hash."""
    username: Any = None
    roles: Any = None
    active: Any = None
    password: Any = None

    model_config = ConfigDict(extra="ignore")


class UserResponse(RecordSchema):
    """A user as returned by every /users endpoint."""
    id: uuid.UUID = Field(serialization_alias="_id", description="Unique user identifier")
    username: str
    roles: List[str]
    active: bool
    created_at: datetime
    updated_at: datetime
