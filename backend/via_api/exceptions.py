"""
VIA Backend — Custom Exception Hierarchy
==========================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Services and repositories raise typed errors; a single set of handlers
       registered in main.py turns them into the JSON error envelope.
How:   Each exception class carries a message and optional context dict.
Who:   Raised by services, repositories and the auth dependency.

Exception Hierarchy:
    ViaError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   ├── MissingFieldsError   → 400, lists every absent required field
    │   └── InvalidFieldError    → 400, names the field with a bad value
    ├── AuthError                → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    └── StorageError             → 500 Internal Server Error

Security Note:
    `context` may hold raw storage error text (constraint names, SQL state).
    It is logged server-side and only returned to clients when
    EXPOSE_ERROR_DETAILS is switched on.
"""

from typing import Any, Dict, List, Optional, Sequence


class ViaError(Exception):
    """
    Base exception for all VIA application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ViaError):
    """
    Raised when client input fails validation.

    Always raised before any storage call, so a rejected request never
    leaves partial writes behind.
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


class MissingFieldsError(ValidationError):
    """
    Raised when one or more required fields are absent or empty.

    Every missing field is reported, not just the first one found:
        {"error": "validation_error",
         "message": "Missing required fields: title, points",
         "details": {"fields": ["title", "points"]}}
    """

    def __init__(self, fields: Sequence[str], context: Optional[Dict[str, Any]] = None):
        self.fields: List[str] = list(fields)
        ctx = context or {}
        ctx["fields"] = self.fields
        super().__init__(
            message=f"Missing required fields: {', '.join(self.fields)}",
            context=ctx,
        )


class InvalidFieldError(ValidationError):
    """Raised when a field is present but outside its allowed set of values."""

    def __init__(
        self,
        field: str,
        value: Any = None,
        allowed: Optional[Sequence[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        message = f"Invalid value for '{field}'"
        if allowed:
            ctx["allowed"] = list(allowed)
            message = f"Invalid value {value!r} for '{field}'. Must be one of: {', '.join(allowed)}"
        super().__init__(message=message, field=field, context=ctx)


class AuthError(ViaError):
    """
    Raised when the bearer token is missing, malformed, invalid or expired.

    Produced by the auth dependency; HTTP 401.
    """

    def __init__(
        self,
        message: str = "The provided token is invalid or has expired.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ViaError):
    """
    Raised when a referenced entity is absent or soft-deleted.

    Repositories return None for missing rows; services convert that into
    this exception so inactive routes and missing routes look identical.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageError(ViaError):
    """
    Raised when a storage collaborator call fails.

    No retry is attempted. The raw driver message is kept in
    `context["details"]` for operators.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if details:
            ctx["details"] = details
        super().__init__(message=message, context=ctx)
        self.details = details
