"""
TechNotes Backend - Note Service (Business Logic)
==================================================

What:  Validation and persistence orchestration for notes, scoped to a user.
How:   Every operation first resolves the owning user (404 "User not found."),
       then validates, then touches the note store.
Who:   Called by the /users/{id}/notes route handlers.

Rules:
    Create: title and text non-empty strings; completed optional, boolean,
            default false.
    Update: title and text non-empty strings and completed present as a
            boolean. Presence, not truthiness: completed=false is accepted.
    A note that exists but belongs to another user is reported exactly like a
    note that does not exist.
"""

import logging
from typing import List

from technotes.exceptions import MissingReferenceError, NotFoundError, ValidationError
from technotes.repositories.base import NoteRecord, NoteRepository, UserRepository, parse_identifier
from technotes.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from technotes.services.user_service import FIELDS_REQUIRED, USER_NOT_FOUND, is_filled

logger = logging.getLogger(__name__)

TITLE_AND_TEXT_REQUIRED = "Title and text fields are required."
COMPLETED_NOT_BOOLEAN = "Completed must be a boolean."
NOTE_NOT_FOUND = "Note not found."


def to_response(record: NoteRecord) -> NoteResponse:
    return NoteResponse.model_validate(record, from_attributes=True)


class NoteService:
    """Business logic for a user's notes."""

    def __init__(self, users: UserRepository, notes: NoteRepository):
        self.users = users
        self.notes = notes

    async def _require_user(self, user_id: str) -> None:
        if await self.users.find_by_id(user_id) is None:
            raise NotFoundError(USER_NOT_FOUND, resource="user", resource_id=user_id)

    async def _require_note(self, user_id: str, note_id: str) -> NoteRecord:
        note = await self.notes.find_by_id(note_id)
        if note is None or note.user_id != parse_identifier(user_id):
            raise NotFoundError(NOTE_NOT_FOUND, resource="note", resource_id=note_id)
        return note

    async def list_notes(self, user_id: str) -> List[NoteResponse]:
        await self._require_user(user_id)
        records = await self.notes.find_by_user(user_id)
        return [to_response(record) for record in records]

    async def create_note(self, user_id: str, payload: NoteCreate) -> NoteResponse:
        """
        Create a note for an existing user.

        Raises:
            NotFoundError: the user does not exist (also when it vanishes mid-request)
            ValidationError: blank title/text, or non-boolean completed
        """
        await self._require_user(user_id)

        if not is_filled(payload.title) or not is_filled(payload.text):
            raise ValidationError(TITLE_AND_TEXT_REQUIRED)

        completed = False if payload.completed is None else payload.completed
        if not isinstance(completed, bool):
            raise ValidationError(COMPLETED_NOT_BOOLEAN, field="completed")

        try:
            record = await self.notes.create(
                user_id=user_id,
                title=payload.title,
                text=payload.text,
                completed=completed,
            )
        except MissingReferenceError:
            raise NotFoundError(USER_NOT_FOUND, resource="user", resource_id=user_id)
        await self.notes.commit()

        logger.info("Note %s created for user %s", record.id, user_id)
        return to_response(record)

    async def update_note(self, user_id: str, note_id: str, payload: NoteUpdate) -> NoteResponse:
        """
        Replace a note's title, text and completed flag.

        Raises:
            NotFoundError: unknown user, or unknown note for this user
            ValidationError: any of the three fields missing or malformed
        """
        await self._require_user(user_id)

        if (
            not is_filled(payload.title)
            or not is_filled(payload.text)
            or not isinstance(payload.completed, bool)
        ):
            raise ValidationError(FIELDS_REQUIRED)

        await self._require_note(user_id, note_id)

        record = await self.notes.update(
            note_id,
            title=payload.title,
            text=payload.text,
            completed=payload.completed,
        )
        if record is None:
            raise NotFoundError(NOTE_NOT_FOUND, resource="note", resource_id=note_id)
        await self.notes.commit()

        logger.info("Note %s updated (completed=%s)", record.id, record.completed)
        return to_response(record)

    async def delete_note(self, user_id: str, note_id: str) -> None:
        """
        Delete one of a user's notes.

        Raises:
            NotFoundError: unknown user, or unknown note for this user
        """
        await self._require_user(user_id)
        await self._require_note(user_id, note_id)

        if not await self.notes.delete(note_id):
            raise NotFoundError(NOTE_NOT_FOUND, resource="note", resource_id=note_id)
        await self.notes.commit()

        logger.info("Note %s of user %s deleted", note_id, user_id)
