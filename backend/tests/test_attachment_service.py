"""
Student API — Attachment Service Unit Tests
===========================================

What:  Tests for AttachmentService upload/download.
How:   Mocked CouchDB client; checks the revision lookup, the no-write
       guarantee on failed lookups, and error mapping.
"""

import pytest

from student_api.database import Attachment
from student_api.exceptions import NotFoundError, StoreError, ValidationError
from student_api.services.attachment_service import AttachmentService


class TestUpload:

    def setup_method(self):
        self.service = AttachmentService()

    @pytest.mark.asyncio
    async def test_upload_writes_under_current_revision(self, mock_couch, sample_document):
        mock_couch.get_document.return_value = sample_document
        mock_couch.put_attachment.return_value = "2-b"

        result = await self.service.upload_attachment(
            mock_couch,
            doc_id="s1",
            filename="report.pdf",
            content=b"%PDF-1.4",
            content_type="application/pdf",
        )

        assert result.status == "File uploaded successfully"
        mock_couch.put_attachment.assert_awaited_once_with(
            doc_id="s1",
            filename="report.pdf",
            content=b"%PDF-1.4",
            content_type="application/pdf",
            rev=sample_document["_rev"],
        )

    @pytest.mark.asyncio
    async def test_missing_content_type_defaults_to_octet_stream(self, mock_couch, sample_document):
        mock_couch.get_document.return_value = sample_document

        await self.service.upload_attachment(mock_couch, "s1", "blob.bin", b"\x00\x01")

        kwargs = mock_couch.put_attachment.await_args.kwargs
        assert kwargs["content_type"] == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_nonexistent_document_is_store_error_without_write(self, mock_couch):
        mock_couch.get_document.side_effect = NotFoundError(resource="document", resource_id="ghost")

        with pytest.raises(StoreError, match="Failed to get document"):
            await self.service.upload_attachment(mock_couch, "ghost", "a.txt", b"hi", "text/plain")

        mock_couch.put_attachment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attachment_write_failure(self, mock_couch, sample_document):
        mock_couch.get_document.return_value = sample_document
        mock_couch.put_attachment.side_effect = StoreError(
            message="conflict: Document update conflict.", status_code=409
        )

        with pytest.raises(StoreError, match="Failed to upload file: conflict"):
            await self.service.upload_attachment(mock_couch, "s1", "a.txt", b"hi", "text/plain")

    @pytest.mark.asyncio
    async def test_filename_required(self, mock_couch):
        with pytest.raises(ValidationError):
            await self.service.upload_attachment(mock_couch, "s1", "", b"hi")

        mock_couch.get_document.assert_not_awaited()


class TestDownload:

    def setup_method(self):
        self.service = AttachmentService()

    @pytest.mark.asyncio
    async def test_download_returns_attachment(self, mock_couch):
        attachment = Attachment(filename="a.txt", content_type="text/plain", content=b"hi")
        mock_couch.get_attachment.return_value = attachment

        assert await self.service.download_attachment(mock_couch, "s1", "a.txt") is attachment

    @pytest.mark.asyncio
    async def test_download_not_found_propagates(self, mock_couch):
        mock_couch.get_attachment.side_effect = NotFoundError(resource="file", resource_id="s1/a.txt")

        with pytest.raises(NotFoundError):
            await self.service.download_attachment(mock_couch, "s1", "a.txt")

    @pytest.mark.asyncio
    async def test_download_store_failure(self, mock_couch):
        mock_couch.get_attachment.side_effect = StoreError(message="Connection refused")

        with pytest.raises(StoreError, match="Failed to retrieve file: Connection refused"):
            await self.service.download_attachment(mock_couch, "s1", "a.txt")
