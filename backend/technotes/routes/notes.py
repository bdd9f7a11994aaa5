"""
TechNotes Backend - Note Route Handlers
========================================

What:  Notes nested under their owning user:
           GET/POST       /users/{user_id}/notes
           PATCH/DELETE   /users/{user_id}/notes/{note_id}
How:   Delegate to NoteService and answer through the response contract.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends

from technotes.dependencies import get_note_service
from technotes.responses import created_with_content, no_content, ok_with_content
from technotes.schemas.common import MessageResponse
from technotes.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from technotes.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{user_id}/notes", tags=["Notes"])

USER_NOT_FOUND_RESPONSE = {404: {"description": "User or note not found", "model": MessageResponse}}


@router.get(
    "",
    response_model=List[NoteResponse],
    responses=USER_NOT_FOUND_RESPONSE,
    summary="List a user's notes",
)
async def list_notes(user_id: str, service: NoteService = Depends(get_note_service)):
    return ok_with_content(await service.list_notes(user_id))


@router.post(
    "",
    status_code=201,
    response_model=NoteResponse,
    responses={
        **USER_NOT_FOUND_RESPONSE,
        400: {"description": "Title or text missing", "model": MessageResponse},
    },
    summary="Create a note for a user",
)
async def create_note(
    user_id: str,
    payload: Optional[NoteCreate] = Body(default=None),
    service: NoteService = Depends(get_note_service),
):
    """Create a note from `title` and `text`; `completed` defaults to false."""
    note = await service.create_note(user_id, payload or NoteCreate())
    return created_with_content(note)


@router.patch(
    "/{note_id}",
    response_model=NoteResponse,
    responses={
        **USER_NOT_FOUND_RESPONSE,
        400: {"description": "Missing or malformed fields", "model": MessageResponse},
    },
    summary="Update a user's note",
)
async def update_note(
    user_id: str,
    note_id: str,
    payload: Optional[NoteUpdate] = Body(default=None),
    service: NoteService = Depends(get_note_service),
):
    note = await service.update_note(user_id, note_id, payload or NoteUpdate())
    return ok_with_content(note)


@router.delete(
    "/{note_id}",
    status_code=204,
    responses=USER_NOT_FOUND_RESPONSE,
    summary="Delete a user's note",
)
async def delete_note(user_id: str, note_id: str, service: NoteService = Depends(get_note_service)):
    await service.delete_note(user_id, note_id)
    return no_content()
