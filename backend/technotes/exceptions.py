"""
TechNotes Backend - Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       answer through the response contract in responses.py.
Who:   Raised by services and repositories; caught by global handlers.

Exception Hierarchy:
    TechNotesError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── DatabaseError            → 500 Internal Server Error
    └── StorageError             (raised by repositories, translated by services)
        ├── DuplicateKeyError
        └── MissingReferenceError

Only `message` ever reaches the client. `context` is for server-side logs.
"""

from typing import Any, Dict, Optional


class TechNotesError(Exception):
    """
    Base exception for all TechNotes application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TechNotesError):
    """
    Raised when client input fails a business validation rule.

    HTTP: 400 Bad Request

    Example response:
        {"message": "All fields are required."}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(TechNotesError):
    """
    Raised when a referenced user or note does not exist.

    HTTP: 404 Not Found

    Repositories return None for missing records; services convert that
    None into this exception.
    """

    def __init__(
        self,
        message: str = "The requested resource was not found.",
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(TechNotesError):
    """
    Raised when an operation collides with the current state of the store.

    HTTP: 409 Conflict
    When: Duplicate username, or deleting a user that still owns notes.
    """

    def __init__(
        self,
        message: str = "The request conflicts with the current state of the resource.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TechNotesError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is always generic; the driver error
    is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(TechNotesError):
    """Base for constraint violations reported by a repository."""


class DuplicateKeyError(StorageError):
    """A write would break a uniqueness constraint."""

    def __init__(self, field: str, value: Any = None):
        super().__init__(
            message=f"Duplicate value for unique field '{field}'",
            context={"field": field},
        )
        self.field = field
        self.value = value


class MissingReferenceError(StorageError):
    """A write references a parent record that does not exist."""

    def __init__(self, field: str, value: Any = None):
        super().__init__(
            message=f"Referenced record for '{field}' does not exist",
            context={"field": field, "value": str(value)},
        )
        self.field = field
        self.value = value
