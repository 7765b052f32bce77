"""
Student API — Document Service
==============================

What:  One method per document operation: insert, get, list, changes,
       update (shallow merge) and delete.
How:   Each method issues the store call(s) through the injected
       CouchDBClient and converts failures into the application exceptions
       the global handlers understand.
Who:   Called by route handlers in routes/documents.py.

Multi-step operations (update, delete) read first and write second. The read
has no side effect, so a failed write needs no compensation.

Error mapping:
    input checks fail            → ValidationError (400)
    store says document absent   → NotFoundError (404), for get/update/delete
    anything else from the store → StoreError (500) prefixed with the action
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from student_api.config import settings
from student_api.database import CouchDBClient
from student_api.exceptions import NotFoundError, StoreError, ValidationError
from student_api.schemas.document import Document, ResponseEnvelope

logger = logging.getLogger(__name__)

INSERTED_MESSAGE = "Document inserted successfully."
UPDATED_MESSAGE = "Document updated successfully"
DELETED_MESSAGE = "Document deleted successfully"

# Optional sign and ASCII digits only; int() alone also takes spaces,
# underscores and non-ASCII digits
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def decode_document(body: bytes, message: str) -> Document:
    """
    Decode a request body into a JSON object.

    Raises:
        ValidationError(message) if the body is not valid JSON or not an object.
    """
    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationError(message=message, field="body")
    if not isinstance(data, dict):
        raise ValidationError(
            message=message,
            field="body",
            context={"received_type": type(data).__name__},
        )
    return data


def merge_fields(existing: Document, updates: Document) -> Document:
    """
    Shallow merge: top-level keys in `updates` replace those in `existing`.

    Keys absent from `updates` are kept. Nested objects are replaced
    wholesale, never merged recursively.
    """
    merged = dict(existing)
    merged.update(updates)
    return merged


class DocumentService:
    """
    Document CRUD and query operations over the `student` database.

    Stateless: the CouchDB client is passed in on every call.
    """

    def __init__(self, changes_filter: Optional[str] = None):
        """
        Args:
            changes_filter: Filter function used by get_changes
                            (defaults to settings.changes_filter)
        """
        self.changes_filter = changes_filter or settings.changes_filter

    async def insert_document(self, couch: CouchDBClient, body: bytes) -> str:
        """
        Create a document at the `_id` it carries.

        Raises:
            ValidationError: Body is not a JSON object, or `_id` is missing
                             or not a string
            StoreError: The store rejected the write (e.g. 409 on an
                        existing `_id` without `_rev`)
        """
        doc = decode_document(body, "Failed to decode JSON.")

        doc_id = doc.get("_id")
        if not isinstance(doc_id, str):
            raise ValidationError(
                message="Document must contain '_id' field.",
                field="_id",
            )

        try:
            rev = await couch.put_document(doc_id, doc)
        except (StoreError, NotFoundError) as e:
            logger.error("Insert of document %s failed: %s", doc_id, e.message)
            raise StoreError.wrap("Failed to insert document", e) from e

        logger.info("Document %s inserted (rev=%s)", doc_id, rev)
        return INSERTED_MESSAGE

    async def get_document(self, couch: CouchDBClient, doc_id: str) -> Document:
        """
        Fetch a document by ID, returned exactly as the store holds it.

        Raises:
            NotFoundError: No such document (→ 404)
            StoreError: Any other store failure (→ 500)
        """
        try:
            return await couch.get_document(doc_id)
        except StoreError as e:
            raise StoreError.wrap("Failed to retrieve document", e) from e

    async def list_documents(self, couch: CouchDBClient) -> Dict[str, Any]:
        """
        Return the raw `_all_docs?include_docs=true` response.

        The store's body is passed through untouched, whatever its status.
        """
        try:
            return await couch.get_json("_all_docs", params={"include_docs": "true"})
        except StoreError as e:
            logger.error("Listing documents failed: %s", e.message)
            raise StoreError.wrap("Failed to retrieve documents", e) from e

    async def get_changes(
        self,
        couch: CouchDBClient,
        address: Optional[str],
        age: Optional[str],
    ) -> Dict[str, Any]:
        """
        Return the change feed filtered server-side by address and age.

        Both parameters are validated before the store is contacted.

        Raises:
            ValidationError: A parameter is missing/empty or age is not an integer
            StoreError: Transport failure or undecodable store response
        """
        if not address or not age:
            raise ValidationError(
                message="Address and age are required.",
                context={"address": address, "age": age},
            )

        if not INTEGER_PATTERN.fullmatch(age):
            raise ValidationError(
                message="Invalid age format.",
                field="age",
                context={"age": age},
            )

        params = {
            "filter": self.changes_filter,
            "address": address,
            "age": int(age),
        }
        try:
            return await couch.get_json("_changes", params=params)
        except StoreError as e:
            logger.error("Change feed request failed: %s", e.message)
            raise StoreError.wrap("Failed to retrieve changes", e) from e

    async def update_document(
        self,
        couch: CouchDBClient,
        doc_id: str,
        body: bytes,
    ) -> ResponseEnvelope:
        """
        Merge the body's fields into the stored document and write it back.

        Order of checks: the document is fetched before the body is decoded,
        so a missing document is reported as 404 even for a malformed body.

        Raises:
            NotFoundError: Document absent (→ 404)
            ValidationError: Body is not a JSON object (→ 400)
            StoreError: Fetch or write failed (→ 500)
        """
        try:
            existing = await couch.get_document(doc_id)
        except StoreError as e:
            raise StoreError.wrap("Failed to retrieve document", e) from e

        updates = decode_document(body, "Invalid request body")
        merged = merge_fields(existing, updates)

        try:
            rev = await couch.put_document(doc_id, merged)
        except (StoreError, NotFoundError) as e:
            logger.error("Update of document %s failed: %s", doc_id, e.message)
            raise StoreError.wrap("Failed to update document", e) from e

        logger.info(
            "Document %s updated (%d fields changed, rev=%s)",
            doc_id,
            len(updates),
            rev,
        )
        return ResponseEnvelope(message=UPDATED_MESSAGE, rev=rev)

    async def delete_document(self, couch: CouchDBClient, doc_id: str) -> ResponseEnvelope:
        """
        Delete the current revision of a document.

        Raises:
            NotFoundError: Document absent (→ 404)
            StoreError: Fetch or delete failed (→ 500)
        """
        try:
            doc = await couch.get_document(doc_id)
        except StoreError as e:
            raise StoreError.wrap("Failed to retrieve document", e) from e

        rev = doc.get("_rev")
        if not isinstance(rev, str):
            raise StoreError(
                message="Failed to delete document: stored document has no revision",
                context={"doc_id": doc_id},
            )

        try:
            await couch.delete_document(doc_id, rev)
        except (StoreError, NotFoundError) as e:
            logger.error("Delete of document %s failed: %s", doc_id, e.message)
            raise StoreError.wrap("Failed to delete document", e) from e

        logger.info("Document %s deleted (rev=%s)", doc_id, rev)
        return ResponseEnvelope(message=DELETED_MESSAGE)


# ── Singleton Instance ────────────────────────────────────────────────────
document_service = DocumentService()
