"""
Student API — Attachment Service
================================

What:  Upload and download of document attachments.
How:   Upload looks up the document's current `_rev` and writes the file as
       an attachment of that revision. Download reads the attachment bytes
       and content type back from the store.
Who:   Called by routes/files.py.

Upload failure modes:
    document fetch fails (including "not found") → StoreError (500),
                                                   attachment write never attempted
    attachment write fails                        → StoreError (500)
"""

import logging

from student_api.database import Attachment, CouchDBClient
from student_api.exceptions import NotFoundError, StoreError, ValidationError
from student_api.schemas.document import UploadResponse

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class AttachmentService:
    """Attachment operations. Stateless; the client is passed per call."""

    async def upload_attachment(
        self,
        couch: CouchDBClient,
        doc_id: str,
        filename: str,
        content: bytes,
        content_type: str = "",
    ) -> UploadResponse:
        """
        Store `content` as attachment `filename` on document `doc_id`.

        Args:
            couch: Shared CouchDB client
            doc_id: Target document (the form's docID field)
            filename: Attachment name (the uploaded file's name)
            content: Raw file bytes
            content_type: MIME type from the upload part; empty means
                          application/octet-stream

        Raises:
            ValidationError: No filename
            StoreError: Document fetch or attachment write failed
        """
        if not filename:
            raise ValidationError(message="Uploaded file has no filename.", field="file")

        # The revision is required by CouchDB to add an attachment
        try:
            doc = await couch.get_document(doc_id)
        except (StoreError, NotFoundError) as e:
            logger.warning("Upload to %r aborted, document fetch failed: %s", doc_id, e.message)
            raise StoreError.wrap("Failed to get document", e) from e

        rev = doc.get("_rev", "")

        try:
            new_rev = await couch.put_attachment(
                doc_id=doc_id,
                filename=filename,
                content=content,
                content_type=content_type or DEFAULT_CONTENT_TYPE,
                rev=rev,
            )
        except (StoreError, NotFoundError) as e:
            logger.error("Attachment write %s/%s failed: %s", doc_id, filename, e.message)
            raise StoreError.wrap("Failed to upload file", e) from e

        logger.info(
            "Attachment %s stored on %s (%d bytes, rev=%s)",
            filename,
            doc_id,
            len(content),
            new_rev,
        )
        return UploadResponse()

    async def download_attachment(
        self,
        couch: CouchDBClient,
        doc_id: str,
        filename: str,
    ) -> Attachment:
        """
        Raises:
            NotFoundError: Document or attachment absent (→ 404)
            StoreError: Any other store failure (→ 500)
        """
        try:
            return await couch.get_attachment(doc_id, filename)
        except StoreError as e:
            raise StoreError.wrap("Failed to retrieve file", e) from e


# ── Singleton Instance ────────────────────────────────────────────────────
attachment_service = AttachmentService()
