"""
Student API — Pydantic Response Schemas
=======================================

What:  Pydantic models for the write/delete envelope, upload status, error
       bodies and the health check.
How:   FastAPI serializes these and lists them in the OpenAPI document.

Documents themselves have no schema: read endpoints return the store's JSON
as plain dicts, so arbitrary fields round-trip untouched.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

# Schema-free CouchDB document
Document = Dict[str, Any]


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class ResponseEnvelope(BaseModel):
    """
    What:  Outcome of an update or delete.
    Who:   Returned by PUT /document/{docID} ({message, rev}) and
           DELETE /document/{docID} ({message}).

    Unset fields are left out of the JSON body (routes use
    `response_model_exclude_none=True`).
    """
    message: Optional[str] = Field(default=None, description="Human-readable outcome")
    rev: Optional[str] = Field(default=None, description="New revision token after a write")
    error: Optional[str] = Field(default=None, description="Error description, if any")


class UploadResponse(BaseModel):
    """Returned by POST /upload once the attachment is stored."""
    status: str = Field(
        default="File uploaded successfully",
        description="Upload outcome",
    )


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models — Consistent error format across all endpoints
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body produced by the global exception handlers.

    Fields:
        error: Machine-readable code (validation_error, not_found, store_error,
               server_error, internal_server_error)
        message: Human-readable description; for store failures it carries
                 the underlying CouchDB or transport error text
        details: Extra context for validation errors (e.g. offending field)
        request_id: Correlation ID matching the X-Request-ID response header

    Example:
        {
            "error": "store_error",
            "message": "Failed to update document: conflict: Document update conflict.",
            "request_id": "1f0c9a2b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    store: str = Field(description="CouchDB connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
