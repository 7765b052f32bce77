"""
Student API — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the three failure classes the
       gateway knows about.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by the CouchDB client and the services; caught by global handlers.

Exception Hierarchy:
    StudentApiError (base)   → 500 Internal Server Error
    ├── ValidationError      → 400 Bad Request (malformed JSON, missing field,
    │                              missing form file, non-integer query param)
    ├── NotFoundError        → 404 Not Found (store reports target absent)
    └── StoreError           → 500 Internal Server Error (store unreachable,
                                   write conflict, undecodable response)
"""

from typing import Any, Dict, Optional


class StudentApiError(Exception):
    """
    Base exception for all Student API errors.

    Attributes:
        message:  Error description returned in the API response
        context:  Additional debug info (logged, returned only for 400s)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StudentApiError):
    """
    Raised when client input fails the gateway's checks.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Document must contain '_id' field.",
            "details": {"field": "_id"}
        }
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


class NotFoundError(StudentApiError):
    """
    Raised when the store answers 404 for a document or attachment.

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        if resource_id:
            message = f"{resource.capitalize()} '{resource_id}' not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class StoreError(StudentApiError):
    """
    Raised when a store operation fails for any reason other than not-found.

    HTTP: 500 Internal Server Error

    The message includes the underlying store or transport error text so the
    caller sees why the operation failed (e.g. "Failed to update document:
    conflict: Document update conflict.").

    Attributes:
        status_code: HTTP status returned by CouchDB, None for transport errors
    """

    def __init__(
        self,
        message: str = "Document store operation failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code

    @classmethod
    def wrap(cls, action: str, exc: StudentApiError) -> "StoreError":
        """
        Re-raise a lower-level failure with operation context.

        Example:
            StoreError.wrap("Failed to insert document", exc)
            → "Failed to insert document: conflict: Document update conflict."
        """
        return cls(
            message=f"{action}: {exc.message}",
            status_code=getattr(exc, "status_code", None),
            context=dict(exc.context),
        )
