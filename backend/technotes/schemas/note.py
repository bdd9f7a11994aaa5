"""
TechNotes Backend - Note Request/Response Schemas
==================================================

What:  Pydantic models for the /users/{id}/notes API contract.

As with users, request bodies accept anything and NoteService applies the
presence rules. `completed` is checked for presence, not truthiness, so
`{"completed": false}` is a valid update.

Responses leave out the owning user reference and the version counter.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from technotes.schemas.common import RecordSchema


class NoteCreate(BaseModel):
    """Body of POST /users/{id}/notes. `completed` defaults to false."""
    title: Any = None
    text: Any = None
    completed: Any = None

    model_config = ConfigDict(extra="ignore")


class NoteUpdate(BaseModel):
    """Body of PATCH /users/{user_id}/notes/{note_id}. All three fields are required."""
    title: Any = None
    text: Any = None
    completed: Any = None

    model_config = ConfigDict(extra="ignore")


class NoteResponse(RecordSchema):
    """A note as returned by every notes endpoint."""
    id: uuid.UUID = Field(serialization_alias="_id", description="Unique note identifier")
    title: str
    text: str
    completed: bool
    created_at: datetime
    updated_at: datetime
