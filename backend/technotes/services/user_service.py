"""
TechNotes Backend - User Service (Business Logic)
==================================================

What:  Validation and persistence orchestration for the user resource.
How:   Each operation is a linear validate → look up → mutate sequence over
       the injected repositories. Outcomes other than success are raised as
       ValidationError (400), NotFoundError (404) or ConflictError (409) and
       turned into responses by the global exception handlers.
Who:   Called by the /users route handlers.

Rules:
    Create: username a non-blank string, password a non-empty string (all
            whitespace still counts), roles a non-empty list of non-blank
            strings. Username must be free. Password stored as a
            bcrypt hash. New users are active.
    Update: username, roles as above plus `active` a boolean. A non-empty
            password is re-hashed; absent/empty keeps the current hash.
            Renaming to one's own username is allowed.
    Delete: refused while the user owns notes; deleting an unknown user is
            a no-op.

Duplicate usernames are checked up front for a clean 409, and again by the
repository's uniqueness guarantee for requests that race past the check.
"""

import logging
from typing import Any, List

from technotes.exceptions import ConflictError, DuplicateKeyError, NotFoundError, ValidationError
from technotes.repositories.base import DeleteOutcome, NoteRepository, UserRepository
from technotes.schemas.user import UserCreate, UserResponse, UserUpdate
from technotes.services.passwords import MAX_PASSWORD_BYTES, PasswordHasher, password_hasher

logger = logging.getLogger(__name__)

FIELDS_REQUIRED = "All fields are required."
USERNAME_TAKEN = "Username already taken."
USER_NOT_FOUND = "User not found."
USER_HAS_NOTES = "Cannot delete user because it has assigned notes."
PASSWORD_TOO_LONG = f"Password must be at most {MAX_PASSWORD_BYTES} bytes."
PASSWORD_NOT_STRING = "Password must be a string."


def is_filled(value: Any) -> bool:
    """True for a string with at least one non-whitespace character."""
    return isinstance(value, str) and bool(value.strip())


def is_given_password(value: Any) -> bool:
    """True for any non-empty string; whitespace is a legitimate password character."""
    return isinstance(value, str) and value != ""


def is_role_list(value: Any) -> bool:
    """True for a non-empty list whose entries are all filled strings."""
    return isinstance(value, list) and bool(value) and all(is_filled(role) for role in value)


def to_response(record) -> UserResponse:
    return UserResponse.model_validate(record, from_attributes=True)


class UserService:
    """
    Business logic for users.

    Dependencies are passed in per request (see dependencies.py), so the
    service holds no state of its own and works against any repository pair.
    """

    def __init__(
        self,
        users: UserRepository,
        notes: NoteRepository,
        hasher: PasswordHasher = password_hasher,
    ):
        self.users = users
        self.notes = notes
        self.hasher = hasher

    async def list_users(self) -> List[UserResponse]:
        """All users, password excluded. Empty list when there are none."""
        records = await self.users.find_all()
        return [to_response(record) for record in records]

    async def get_user(self, user_id: str) -> UserResponse:
        record = await self.users.find_by_id(user_id)
        if record is None:
            raise NotFoundError(USER_NOT_FOUND, resource="user", resource_id=user_id)
        return to_response(record)

    async def create_user(self, payload: UserCreate) -> UserResponse:
        """
        Register a new user.

        Raises:
            ValidationError: missing/empty username, password or roles
            ConflictError: username already taken
        """
        username, password, roles = payload.username, payload.password, payload.roles

        if not is_filled(username) or not is_given_password(password) or not is_role_list(roles):
            raise ValidationError(FIELDS_REQUIRED)
        if not self.hasher.fits(password):
            raise ValidationError(PASSWORD_TOO_LONG, field="password")

        duplicate = await self.users.find_by_field("username", username)
        if duplicate is not None:
            logger.info("Rejected new user: username '%s' already taken", username)
            raise ConflictError(USERNAME_TAKEN, context={"username": username})

        hashed = await self.hasher.hash(password)

        try:
            record = await self.users.create(username=username, password=hashed, roles=roles, active=True)
        except DuplicateKeyError:
            logger.info("Rejected new user: username '%s' claimed concurrently", username)
            raise ConflictError(USERNAME_TAKEN, context={"username": username})

        await self.users.commit()

        logger.info("User %s created (username=%s, roles=%s)", record.id, record.username, record.roles)
        return to_response(record)

    async def update_user(self, user_id: str, payload: UserUpdate) -> UserResponse:
        """
        Replace a user's username, roles and active flag; optionally the password.

        Raises:
            ValidationError: missing/malformed username, roles or active
            NotFoundError: no user with this id
            ConflictError: username belongs to a different user
        """
        username, roles, active, password = payload.username, payload.roles, payload.active, payload.password

        if not is_filled(username) or not is_role_list(roles) or not isinstance(active, bool):
            raise ValidationError(FIELDS_REQUIRED)
        if password is not None and not isinstance(password, str):
            raise ValidationError(PASSWORD_NOT_STRING, field="password")
        if is_given_password(password) and not self.hasher.fits(password):
            raise ValidationError(PASSWORD_TOO_LONG, field="password")

        current = await self.users.find_by_id(user_id)
        if current is None:
            raise NotFoundError(USER_NOT_FOUND, resource="user", resource_id=user_id)

        duplicate = await self.users.find_by_field("username", username)
        if duplicate is not None and duplicate.id != current.id:
            logger.info("Rejected rename of user %s: username '%s' already taken", user_id, username)
            raise ConflictError(USERNAME_TAKEN, context={"username": username})

        changes = {"username": username, "roles": roles, "active": active}
        if is_given_password(password):
            changes["password"] = await self.hasher.hash(password)

        try:
            record = await self.users.update(user_id, **changes)
        except DuplicateKeyError:
            raise ConflictError(USERNAME_TAKEN, context={"username": username})

        if record is None:
            # Deleted between the lookup and the write
            raise NotFoundError(USER_NOT_FOUND, resource="user", resource_id=user_id)

        await self.users.commit()

        logger.info(
            "User %s updated (username=%s, active=%s, password_changed=%s)",
            record.id, record.username, record.active, "password" in changes,
        )
        return to_response(record)

    async def delete_user(self, user_id: str) -> None:
        """
        Delete a user that owns no notes.

        Raises:
            ConflictError: the user still owns at least one note
        """
        if await self.notes.exists_for_user(user_id):
            logger.info("Refused to delete user %s: notes still assigned", user_id)
            raise ConflictError(USER_HAS_NOTES, context={"user_id": user_id})

        # A note may be created after the check; the conditional delete catches that
        outcome = await self.users.delete_if_unreferenced(user_id)

        if outcome is DeleteOutcome.REFERENCED:
            logger.info("Refused to delete user %s: notes still assigned", user_id)
            raise ConflictError(USER_HAS_NOTES, context={"user_id": user_id})
        if outcome is DeleteOutcome.MISSING:
            logger.debug("Delete of unknown user %s ignored", user_id)
            return

        await self.users.commit()
        logger.info("User %s deleted", user_id)
