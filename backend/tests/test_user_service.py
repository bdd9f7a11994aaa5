"""
TechNotes Backend - User Service Unit Tests
============================================

What:  UserService validation rules and store interaction.
How:   Real service over the in-memory repositories; a mock stands in for
       the repository where a race has to be simulated.

What we test:
    ✅ Create: required fields, roles shape, password hashing, duplicates
    ✅ Update: presence rules, optional password, rename rules, unknown id
    ✅ Delete: refused while notes exist, idempotent for unknown ids
    ✅ Writes are committed before the service answers
"""

from unittest.mock import AsyncMock

import pytest

from technotes.exceptions import (
    ConflictError,
    DatabaseError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from technotes.repositories.base import DeleteOutcome
from technotes.schemas.user import UserCreate, UserUpdate
from technotes.services.user_service import (
    FIELDS_REQUIRED,
    PASSWORD_TOO_LONG,
    USER_HAS_NOTES,
    USER_NOT_FOUND,
    USERNAME_TAKEN,
    UserService,
    is_role_list,
)


class TestRoleList:

    @pytest.mark.parametrize("roles", [["Employee"], ["Manager", "Admin"]])
    def test_accepts_non_empty_lists(self, roles):
        assert is_role_list(roles)

    @pytest.mark.parametrize("roles", [[], "Employee", None, [""], ["Admin", 3]])
    def test_rejects_everything_else(self, roles):
        assert not is_role_list(roles)


class TestUserServiceCreate:
    """Tests for create_user."""

    @pytest.mark.asyncio
    async def test_create_user_success(self, user_service, user_payload, store):
        """Valid payload creates an active user whose password is stored hashed."""
        user = await user_service.create_user(UserCreate(**user_payload))

        assert user.username == "dave"
        assert user.roles == ["Employee"]
        assert user.active is True
        assert user.created_at == user.updated_at

        stored = store.users[user.id]
        assert stored.password != user_payload["password"]
        assert user_service.hasher.verify_sync(user_payload["password"], stored.password)

    @pytest.mark.asyncio
    async def test_response_excludes_password_and_version(self, user_service, user_payload):
        user = await user_service.create_user(UserCreate(**user_payload))
        dumped = user.model_dump(by_alias=True)
        assert "password" not in dumped
        assert "version" not in dumped

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["username", "password", "roles"])
    async def test_missing_field_rejected(self, user_service, user_payload, missing):
        del user_payload[missing]
        with pytest.raises(ValidationError) as exc_info:
            await user_service.create_user(UserCreate(**user_payload))
        assert exc_info.value.message == FIELDS_REQUIRED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("roles", [[], "foo", {"role": "Employee"}])
    async def test_malformed_roles_rejected(self, user_service, user_payload, roles):
        user_payload["roles"] = roles
        with pytest.raises(ValidationError) as exc_info:
            await user_service.create_user(UserCreate(**user_payload))
        assert exc_info.value.message == FIELDS_REQUIRED

    @pytest.mark.asyncio
    async def test_overlong_password_rejected(self, user_service, user_payload):
        user_payload["password"] = "x" * 73
        with pytest.raises(ValidationError) as exc_info:
            await user_service.create_user(UserCreate(**user_payload))
        assert exc_info.value.message == PASSWORD_TOO_LONG

    @pytest.mark.asyncio
    async def test_duplicate_username_rejected(self, user_service, user_payload, store):
        await user_service.create_user(UserCreate(**user_payload))

        with pytest.raises(ConflictError) as exc_info:
            await user_service.create_user(UserCreate(**user_payload))

        assert exc_info.value.message == USERNAME_TAKEN
        assert len(store.users) == 1

    @pytest.mark.asyncio
    async def test_username_is_case_sensitive(self, user_service, user_payload):
        await user_service.create_user(UserCreate(**user_payload))
        user_payload["username"] = "Dave"
        user = await user_service.create_user(UserCreate(**user_payload))
        assert user.username == "Dave"

    @pytest.mark.asyncio
    async def test_store_level_duplicate_becomes_conflict(self, user_payload, hasher, repositories):
        """A duplicate that slips past the lookup is still answered with 409."""
        users = AsyncMock()
        users.find_by_field = AsyncMock(return_value=None)
        users.create = AsyncMock(side_effect=DuplicateKeyError("username", "dave"))
        service = UserService(users=users, notes=repositories.notes, hasher=hasher)

        with pytest.raises(ConflictError) as exc_info:
            await service.create_user(UserCreate(**user_payload))
        assert exc_info.value.message == USERNAME_TAKEN

    @pytest.mark.asyncio
    async def test_whitespace_password_accepted(self, user_service, user_payload, store):
        """Only the empty string counts as no password; spaces are characters."""
        user_payload["password"] = "   "
        user = await user_service.create_user(UserCreate(**user_payload))
        assert user_service.hasher.verify_sync("   ", store.users[user.id].password)

    @pytest.mark.asyncio
    async def test_empty_password_rejected(self, user_service, user_payload):
        user_payload["password"] = ""
        with pytest.raises(ValidationError) as exc_info:
            await user_service.create_user(UserCreate(**user_payload))
        assert exc_info.value.message == FIELDS_REQUIRED

    @pytest.mark.asyncio
    async def test_commits_before_answering(self, user_payload, hasher, repositories):
        users = AsyncMock()
        users.find_by_field = AsyncMock(return_value=None)
        users.create = AsyncMock(return_value=await repositories.users.create(
            username="dave", password="hash", roles=["Employee"], active=True
        ))
        service = UserService(users=users, notes=repositories.notes, hasher=hasher)

        await service.create_user(UserCreate(**user_payload))

        users.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_commit_propagates(self, user_payload, hasher, repositories):
        """A commit the store refuses is never reported as a created user."""
        users = AsyncMock()
        users.find_by_field = AsyncMock(return_value=None)
        users.create = AsyncMock(return_value=await repositories.users.create(
            username="dave", password="hash", roles=["Employee"], active=True
        ))
        users.commit = AsyncMock(side_effect=DatabaseError(context={"operation": "commit"}))
        service = UserService(users=users, notes=repositories.notes, hasher=hasher)

        with pytest.raises(DatabaseError):
            await service.create_user(UserCreate(**user_payload))


class TestUserServiceUpdate:
    """Tests for update_user."""

    @pytest.mark.asyncio
    async def test_update_without_password_keeps_hash(self, user_service, user_payload, store):
        user = await user_service.create_user(UserCreate(**user_payload))
        original_hash = store.users[user.id].password

        updated = await user_service.update_user(
            str(user.id),
            UserUpdate(username="dave", roles=["Manager"], active=False),
        )

        assert updated.roles == ["Manager"]
        assert updated.active is False
        assert updated.updated_at > user.updated_at
        assert store.users[user.id].password == original_hash

    @pytest.mark.asyncio
    async def test_update_with_password_rehashes(self, user_service, user_payload, store):
        user = await user_service.create_user(UserCreate(**user_payload))

        await user_service.update_user(
            str(user.id),
            UserUpdate(username="dave", roles=["Employee"], active=True, password="new-pass"),
        )

        assert user_service.hasher.verify_sync("new-pass", store.users[user.id].password)

    @pytest.mark.asyncio
    async def test_whitespace_password_rehashes(self, user_service, user_payload, store):
        """Update follows the create rule: a whitespace password is a new password."""
        user = await user_service.create_user(UserCreate(**user_payload))

        await user_service.update_user(
            str(user.id),
            UserUpdate(username="dave", roles=["Employee"], active=True, password="   "),
        )

        assert user_service.hasher.verify_sync("   ", store.users[user.id].password)

    @pytest.mark.asyncio
    async def test_empty_password_keeps_hash(self, user_service, user_payload, store):
        user = await user_service.create_user(UserCreate(**user_payload))
        original_hash = store.users[user.id].password

        await user_service.update_user(
            str(user.id),
            UserUpdate(username="dave", roles=["Employee"], active=True, password=""),
        )

        assert store.users[user.id].password == original_hash

    @pytest.mark.asyncio
    async def test_active_false_is_present(self, user_service, user_payload):
        """active=false is a value, not a missing field."""
        user = await user_service.create_user(UserCreate(**user_payload))
        updated = await user_service.update_user(
            str(user.id), UserUpdate(username="dave", roles=["Employee"], active=False)
        )
        assert updated.active is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("active", [None, "true", 1])
    async def test_active_must_be_boolean(self, user_service, user_payload, active):
        user = await user_service.create_user(UserCreate(**user_payload))
        with pytest.raises(ValidationError) as exc_info:
            await user_service.update_user(
                str(user.id), UserUpdate(username="dave", roles=["Employee"], active=active)
            )
        assert exc_info.value.message == FIELDS_REQUIRED

    @pytest.mark.asyncio
    async def test_unknown_user(self, user_service):
        with pytest.raises(NotFoundError) as exc_info:
            await user_service.update_user(
                "7b0c1f3e-9d0a-4a55-8c1e-2f6f1b9c0d11",
                UserUpdate(username="dave", roles=["Employee"], active=True),
            )
        assert exc_info.value.message == USER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_rename_to_own_username_allowed(self, user_service, user_payload):
        user = await user_service.create_user(UserCreate(**user_payload))
        updated = await user_service.update_user(
            str(user.id), UserUpdate(username="dave", roles=["Admin"], active=True)
        )
        assert updated.username == "dave"

    @pytest.mark.asyncio
    async def test_rename_to_taken_username_rejected(self, user_service, user_payload):
        await user_service.create_user(UserCreate(**user_payload))
        other = await user_service.create_user(
            UserCreate(username="erin", password="pw", roles=["Employee"])
        )

        with pytest.raises(ConflictError) as exc_info:
            await user_service.update_user(
                str(other.id), UserUpdate(username="dave", roles=["Employee"], active=True)
            )
        assert exc_info.value.message == USERNAME_TAKEN

    @pytest.mark.asyncio
    async def test_rename_to_free_username(self, user_service, user_payload):
        user = await user_service.create_user(UserCreate(**user_payload))
        updated = await user_service.update_user(
            str(user.id), UserUpdate(username="david", roles=["Employee"], active=True)
        )
        assert updated.username == "david"


class TestUserServiceDelete:
    """Tests for delete_user."""

    @pytest.mark.asyncio
    async def test_delete_user_without_notes(self, user_service, user_payload, store):
        user = await user_service.create_user(UserCreate(**user_payload))
        await user_service.delete_user(str(user.id))
        assert user.id not in store.users

    @pytest.mark.asyncio
    async def test_delete_refused_while_notes_exist(self, user_service, repositories, user_payload, store):
        user = await user_service.create_user(UserCreate(**user_payload))
        await repositories.notes.create(user_id=str(user.id), title="t", text="x")

        with pytest.raises(ConflictError) as exc_info:
            await user_service.delete_user(str(user.id))

        assert exc_info.value.message == USER_HAS_NOTES
        assert user.id in store.users

    @pytest.mark.asyncio
    async def test_delete_unknown_user_is_noop(self, user_service):
        await user_service.delete_user("7b0c1f3e-9d0a-4a55-8c1e-2f6f1b9c0d11")
        await user_service.delete_user("not-an-id")

    @pytest.mark.asyncio
    async def test_note_created_after_check_still_blocks_delete(self, hasher, repositories):
        """The conditional delete reports REFERENCED even when the earlier check saw no notes."""
        notes = AsyncMock()
        notes.exists_for_user = AsyncMock(return_value=False)
        users = AsyncMock()
        users.delete_if_unreferenced = AsyncMock(return_value=DeleteOutcome.REFERENCED)
        service = UserService(users=users, notes=notes, hasher=hasher)

        with pytest.raises(ConflictError) as exc_info:
            await service.delete_user("7b0c1f3e-9d0a-4a55-8c1e-2f6f1b9c0d11")
        assert exc_info.value.message == USER_HAS_NOTES
