"""
Student API — Attachment Route Handlers
=======================================

What:  POST /upload (multipart `file` + `docID`) and
       GET /file/{docID}/{filename}.
How:   Upload reads the whole part into memory and hands it to
       AttachmentService; download returns the attachment bytes with
       Content-Disposition and Content-Type taken from the store.
"""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from student_api.database import CouchDBClient, get_couch
from student_api.exceptions import ValidationError
from student_api.schemas.document import ErrorResponse, UploadResponse
from student_api.services.attachment_service import attachment_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["file"])


def content_disposition(filename: str) -> str:
    """
    Build an `attachment` Content-Disposition header for `filename`.

    Header values go out as Latin-1, so names that need escaping get an
    ASCII `filename=` fallback plus the RFC 6266 `filename*=UTF-8''...` form
    (the same split Starlette's FileResponse makes).
    """
    quoted = quote(filename)
    if quoted == filename:
        return f"attachment; filename={filename}"

    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    fallback = fallback.replace('"', "_").replace("\\", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        200: {"description": "File uploaded successfully", "model": UploadResponse},
        400: {"description": "No file in the form", "model": ErrorResponse},
        500: {"description": "Document fetch or attachment write failed", "model": ErrorResponse},
    },
    summary="Upload a file",
    description="Uploads a file to CouchDB as an attachment of the document `docID`.",
)
async def upload_file(
    # Optional so a missing part is our 400, not FastAPI's 422
    file: Optional[UploadFile] = File(default=None, description="File to upload"),
    doc_id: str = Form(default="", alias="docID", description="Document ID"),
    couch: CouchDBClient = Depends(get_couch),
) -> UploadResponse:
    if file is None:
        raise ValidationError(message="No file was uploaded.", field="file")

    try:
        content = await file.read()
        logger.info(
            "Received upload: docID=%s filename=%s size=%d bytes",
            doc_id,
            file.filename or "unknown",
            len(content),
        )
        return await attachment_service.upload_attachment(
            couch,
            doc_id=doc_id,
            filename=file.filename or "",
            content=content,
            content_type=file.content_type or "",
        )
    finally:
        await file.close()


@router.get(
    "/file/{docID}/{filename}",
    response_class=Response,
    responses={
        200: {"description": "Attachment content", "content": {"application/octet-stream": {}}},
        404: {"description": "File not found", "model": ErrorResponse},
        500: {"description": "Failed to retrieve file", "model": ErrorResponse},
    },
    summary="Get a file",
    description="Retrieves an attachment from a CouchDB document.",
)
async def get_file(
    docID: str,
    filename: str,
    couch: CouchDBClient = Depends(get_couch),
) -> Response:
    attachment = await attachment_service.download_attachment(couch, docID, filename)

    # Content-Type passed as a header, not media_type, so it is sent verbatim
    return Response(
        content=attachment.content,
        headers={
            "Content-Disposition": content_disposition(filename),
            "Content-Type": attachment.content_type,
        },
    )
