"""
Student API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the whole test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    ├── mock_couch: AsyncMock standing in for CouchDBClient (unit tests)
    ├── memory_couch: dict-backed CouchDB double with real revision semantics
    ├── couch_client: real CouchDBClient over httpx, for respx-mocked tests
    ├── test_client: HTTPX AsyncClient bound to the app, get_couch -> mock_couch
    └── store_client: HTTPX AsyncClient bound to the app, get_couch -> memory_couch
"""

import os
import uuid
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Override settings for testing BEFORE any app imports
os.environ["COUCHDB_URL"] = "http://couch.test:5984"
os.environ["COUCHDB_DATABASE"] = "student"
os.environ["LOG_LEVEL"] = "WARNING"

from student_api.database import Attachment, CouchDBClient, get_couch  # noqa: E402
from student_api.exceptions import NotFoundError, StoreError  # noqa: E402

COUCH_URL = "http://couch.test:5984"


# ══════════════════════════════════════════════════════════════════════════
# In-memory CouchDB double
# ══════════════════════════════════════════════════════════════════════════

class InMemoryCouch:
    """
    Dict-backed stand-in for CouchDBClient.

    Implements the revision rules the gateway relies on: every write bumps
    `_rev`, writes to an existing document need the current `_rev`, and
    stale revisions are rejected with a 409-style StoreError.
    """

    database = "student"

    def __init__(self) -> None:
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.attachments: Dict[tuple, Attachment] = {}

    @staticmethod
    def _next_rev(current: Optional[str]) -> str:
        generation = int(current.split("-", 1)[0]) if current else 0
        return f"{generation + 1}-{uuid.uuid4().hex}"

    def _conflict(self) -> StoreError:
        return StoreError(message="conflict: Document update conflict.", status_code=409)

    async def get_document(self, doc_id: str) -> Dict[str, Any]:
        if doc_id not in self.docs:
            raise NotFoundError(resource="document", resource_id=doc_id)
        return dict(self.docs[doc_id])

    async def put_document(self, doc_id: str, doc: Dict[str, Any]) -> str:
        current = self.docs.get(doc_id, {}).get("_rev")
        if doc.get("_rev") != current:
            raise self._conflict()
        rev = self._next_rev(current)
        self.docs[doc_id] = {**doc, "_id": doc_id, "_rev": rev}
        return rev

    async def delete_document(self, doc_id: str, rev: str) -> str:
        if doc_id not in self.docs:
            raise NotFoundError(resource="document", resource_id=doc_id)
        if self.docs[doc_id]["_rev"] != rev:
            raise self._conflict()
        del self.docs[doc_id]
        return self._next_rev(rev)

    async def put_attachment(
        self, doc_id: str, filename: str, content: bytes, content_type: str, rev: str
    ) -> str:
        if doc_id not in self.docs:
            raise NotFoundError(resource="document", resource_id=doc_id)
        if self.docs[doc_id]["_rev"] != rev:
            raise self._conflict()
        self.attachments[(doc_id, filename)] = Attachment(filename, content_type, content)
        new_rev = self._next_rev(rev)
        self.docs[doc_id]["_rev"] = new_rev
        return new_rev

    async def get_attachment(self, doc_id: str, filename: str) -> Attachment:
        try:
            return self.attachments[(doc_id, filename)]
        except KeyError:
            raise NotFoundError(resource="file", resource_id=f"{doc_id}/{filename}")

    async def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = params or {}
        if endpoint == "_all_docs":
            rows = [
                {"id": doc_id, "key": doc_id, "value": {"rev": doc["_rev"]}, "doc": dict(doc)}
                for doc_id, doc in sorted(self.docs.items())
            ]
            return {"total_rows": len(rows), "offset": 0, "rows": rows}
        if endpoint == "_changes":
            results = [
                {"seq": str(i), "id": doc_id, "changes": [{"rev": doc["_rev"]}]}
                for i, (doc_id, doc) in enumerate(sorted(self.docs.items()), start=1)
                if doc.get("address") == params.get("address") and doc.get("age") == params.get("age")
            ]
            return {"results": results, "last_seq": str(len(self.docs)), "pending": 0}
        return {"error": "not_found", "reason": "missing"}

    async def server_info(self) -> Dict[str, Any]:
        return {"couchdb": "Welcome", "version": "3.3.3"}


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_couch():
    """
    AsyncMock mirroring CouchDBClient's async API.

    Usage:
        mock_couch.get_document.return_value = {"_id": "s1", "_rev": "1-a"}
    """
    couch = AsyncMock(spec=CouchDBClient)
    couch.database = "student"
    return couch


@pytest.fixture
def memory_couch():
    return InMemoryCouch()


@pytest.fixture
def sample_document():
    return {
        "_id": "s1",
        "_rev": "1-967a00dff5e02add41819138abb3284d",
        "name": "Ann",
        "address": "Main St 1",
        "age": 21,
        "grades": {"math": "A", "art": "B"},
    }


@pytest_asyncio.fixture
async def couch_client():
    """Real CouchDBClient whose HTTP traffic is intercepted by respx."""
    http_client = httpx.AsyncClient(
        base_url=COUCH_URL,
        auth=httpx.BasicAuth("admin", "123"),
    )
    client = CouchDBClient(http_client, "student")
    yield client
    await client.aclose()


async def _client_for(couch) -> AsyncClient:
    from student_api.main import app

    app.dependency_overrides[get_couch] = lambda: couch
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def test_client(mock_couch):
    """
    HTTPX AsyncClient talking to the app, with the store replaced by mock_couch.

    The lifespan does not run under ASGITransport, so no CouchDB is needed.
    """
    from student_api.main import app

    async with await _client_for(mock_couch) as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def store_client(memory_couch):
    """Same as test_client, backed by the in-memory store."""
    from student_api.main import app

    async with await _client_for(memory_couch) as client:
        yield client
    app.dependency_overrides.clear()
