"""
TechNotes Backend - User Route Handlers
========================================

What:  GET/POST /users and GET/PATCH/DELETE /users/{id}.
How:   Parse the body, delegate to UserService, answer through the response
       contract. Failures raised by the service are answered by the global
       exception handlers.

Bodies are optional at the HTTP level: a missing body is treated as an
empty object, so it fails the service's "All fields are required." rule
with 400 rather than FastAPI's 422.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends

from technotes.dependencies import get_user_service
from technotes.responses import created_with_content, no_content, ok_with_content
from technotes.schemas.common import MessageResponse
from technotes.schemas.user import UserCreate, UserResponse, UserUpdate
from technotes.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "",
    response_model=List[UserResponse],
    summary="List all users",
)
async def list_users(service: UserService = Depends(get_user_service)):
    """All users without their password hashes. An empty store yields []."""
    return ok_with_content(await service.list_users())


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": MessageResponse}},
    summary="Get a single user",
)
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return ok_with_content(await service.get_user(user_id))


@router.post(
    "",
    status_code=201,
    response_model=UserResponse,
    responses={
        400: {"description": "Missing or malformed fields", "model": MessageResponse},
        409: {"description": "Username already taken", "model": MessageResponse},
    },
    summary="Create a user",
)
async def create_user(
    payload: Optional[UserCreate] = Body(default=None),
    service: UserService = Depends(get_user_service),
):
    """
    Create a user from `username`, `password` and a non-empty `roles` list.

    The password is stored as a bcrypt hash; new users are active.
    """
    user = await service.create_user(payload or UserCreate())
    return created_with_content(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        400: {"description": "Missing or malformed fields", "model": MessageResponse},
        404: {"description": "User not found", "model": MessageResponse},
        409: {"description": "Username already taken", "model": MessageResponse},
    },
    summary="Update a user",
)
async def update_user(
    user_id: str,
    payload: Optional[UserUpdate] = Body(default=None),
    service: UserService = Depends(get_user_service),
):
    """
    Replace `username`, `roles` and `active`. A non-empty `password`
    replaces the stored hash; without one the old password stays valid.
    """
    user = await service.update_user(user_id, payload or UserUpdate())
    return ok_with_content(user)


@router.delete(
    "/{user_id}",
    status_code=204,
    responses={409: {"description": "User still has notes", "model": MessageResponse}},
    summary="Delete a user",
)
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    """Delete a user without notes. Deleting an unknown user also answers 204."""
    await service.delete_user(user_id)
    return no_content()
