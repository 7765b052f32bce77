"""
Student API — Document Route Handlers
=====================================

What:  POST /insert, GET /documents, GET /document/{id},
       PUT /document/{docID}, DELETE /document/{docID}, GET /changes.
How:   Extracts path/query/body, delegates to DocumentService with the
       injected CouchDB client, returns JSON.

Bodies are read as raw bytes and decoded by the service so that malformed
JSON is a 400 with the gateway's own message rather than FastAPI's 422.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from student_api.database import CouchDBClient, get_couch
from student_api.schemas.document import ErrorResponse, ResponseEnvelope
from student_api.services.document_service import document_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["document"])

# Documents are free-form JSON objects; describe the body for Swagger since
# the handlers read it from the raw request.
JSON_OBJECT_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {
                "schema": {"type": "object", "additionalProperties": True},
            },
        },
    },
}


@router.post(
    "/insert",
    response_model=str,
    responses={
        200: {"description": "Document inserted successfully."},
        400: {"description": "Failed to decode JSON or missing _id", "model": ErrorResponse},
        500: {"description": "Failed to insert document", "model": ErrorResponse},
    },
    summary="Insert a document",
    description="Inserts a new document into the CouchDB database. The body must carry a string `_id`.",
    openapi_extra=JSON_OBJECT_BODY,
)
async def insert_document(
    request: Request,
    couch: CouchDBClient = Depends(get_couch),
) -> str:
    body = await request.body()
    return await document_service.insert_document(couch, body)


@router.get(
    "/documents",
    response_model=Dict[str, Any],
    responses={
        200: {"description": "Raw _all_docs response with include_docs=true"},
        500: {"description": "Failed to retrieve documents", "model": ErrorResponse},
    },
    summary="Get all documents",
    description="Retrieves all documents from the database, passing the store's response through unchanged.",
)
async def list_documents(
    couch: CouchDBClient = Depends(get_couch),
) -> Dict[str, Any]:
    return await document_service.list_documents(couch)


@router.get(
    "/document/{id}",
    response_model=Dict[str, Any],
    responses={
        200: {"description": "Document retrieved"},
        404: {"description": "Document not found", "model": ErrorResponse},
        500: {"description": "Failed to retrieve document", "model": ErrorResponse},
    },
    summary="Get a document by ID",
)
async def get_document(
    id: str,
    couch: CouchDBClient = Depends(get_couch),
) -> Dict[str, Any]:
    return await document_service.get_document(couch, id)


@router.get(
    "/changes",
    response_model=Dict[str, Any],
    tags=["changes"],
    responses={
        200: {"description": "Raw _changes response"},
        400: {"description": "Missing address/age or invalid age", "model": ErrorResponse},
        500: {"description": "Failed to retrieve changes", "model": ErrorResponse},
    },
    summary="Get changes filtered by address and age",
    description=(
        "Reads the database change feed through the server-side "
        "`filters/by_address_and_age` filter function."
    ),
)
async def get_changes(
    address: Optional[str] = Query(default=None, description="Address"),
    # Typed as str so a non-numeric value is reported as 400 by the service
    age: Optional[str] = Query(default=None, description="Age (integer)"),
    couch: CouchDBClient = Depends(get_couch),
) -> Dict[str, Any]:
    return await document_service.get_changes(couch, address, age)


@router.put(
    "/document/{docID}",
    response_model=ResponseEnvelope,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Document updated successfully", "model": ResponseEnvelope},
        400: {"description": "Invalid request body", "model": ErrorResponse},
        404: {"description": "Document not found", "model": ErrorResponse},
        500: {"description": "Failed to update document", "model": ErrorResponse},
    },
    summary="Update an existing document",
    description=(
        "Merges the body's top-level fields into the stored document and writes "
        "it back. Nested objects are replaced, not merged."
    ),
    openapi_extra=JSON_OBJECT_BODY,
)
async def update_document(
    docID: str,
    request: Request,
    couch: CouchDBClient = Depends(get_couch),
) -> ResponseEnvelope:
    body = await request.body()
    return await document_service.update_document(couch, docID, body)


@router.delete(
    "/document/{docID}",
    response_model=ResponseEnvelope,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Document deleted successfully", "model": ResponseEnvelope},
        404: {"description": "Document not found", "model": ErrorResponse},
        500: {"description": "Failed to delete document", "model": ErrorResponse},
    },
    summary="Delete a document",
)
async def delete_document(
    docID: str,
    couch: CouchDBClient = Depends(get_couch),
) -> ResponseEnvelope:
    return await document_service.delete_document(couch, docID)
