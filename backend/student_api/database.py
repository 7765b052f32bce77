"""
Student API — Document Store Client
===================================

What:  Async CouchDB client, database bootstrap, and the FastAPI dependency
       that hands the shared client to request handlers.
How:   Wraps one shared `httpx.AsyncClient` (basic auth, base URL, timeout).
       Every method issues exactly one HTTP request against the `student`
       database and translates the outcome:
           2xx                → decoded result
           404                → NotFoundError
           other status       → StoreError (with CouchDB's error/reason text)
           transport failure  → StoreError
Who:   Created once in the application lifespan (main.py), stored on
       `app.state.couch`, injected into routes via `Depends(get_couch)`.
When:  Client lives for the process lifetime; closed on shutdown.

CouchDB endpoints used:
    HEAD   /{db}                        database exists?
    PUT    /{db}                        create database
    GET    /{db}/{id}                   fetch document
    PUT    /{db}/{id}                   create/update document
    DELETE /{db}/{id}?rev=              delete revision
    PUT    /{db}/{id}/{name}?rev=       write attachment
    GET    /{db}/{id}/{name}            read attachment
    GET    /{db}/_all_docs, /_changes   raw JSON pass-through
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from fastapi import Request

from student_api.config import Settings, settings
from student_api.exceptions import NotFoundError, StoreError

logger = logging.getLogger(__name__)

DESIGN_PREFIX = "_design/"


@dataclass
class Attachment:
    """Attachment bytes plus the metadata the download route needs."""

    filename: str
    content_type: str
    content: bytes


def _quote_doc_id(doc_id: str) -> str:
    """
    Percent-encode a document ID for use as a single path segment.

    Design document IDs keep their literal `_design/` prefix, which CouchDB
    requires unescaped.
    """
    if doc_id.startswith(DESIGN_PREFIX):
        return DESIGN_PREFIX + quote(doc_id[len(DESIGN_PREFIX):], safe="")
    return quote(doc_id, safe="")


def _error_text(response: httpx.Response) -> str:
    """Render CouchDB's `{"error": ..., "reason": ...}` body as one line."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and "error" in body:
        reason = body.get("reason")
        return f"{body['error']}: {reason}" if reason else str(body["error"])
    return response.text or f"HTTP {response.status_code}"


class CouchDBClient:
    """
    Thin async client for a single CouchDB database.

    Stateless apart from the pooled httpx client, so one instance is shared
    by all in-flight requests.
    """

    def __init__(self, http_client: httpx.AsyncClient, database: str):
        """
        Args:
            http_client: Shared AsyncClient already configured with base URL and auth
            database:    Name of the database every call targets
        """
        self._client = http_client
        self.database = database

    # ── Internal helpers ──────────────────────────────────────────────────

    def _db_path(self, *segments: str) -> str:
        return "/".join([f"/{quote(self.database, safe='')}", *segments])

    def _doc_path(self, doc_id: str, *segments: str) -> str:
        if not doc_id:
            raise StoreError(message="Document ID must not be empty")
        return self._db_path(_quote_doc_id(doc_id), *segments)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            detail = str(e) or type(e).__name__
            logger.error("CouchDB %s %s failed: %s", method, path, detail)
            raise StoreError(
                message=detail,
                context={"method": method, "path": path},
            ) from e

    def _check(
        self,
        response: httpx.Response,
        resource: str,
        resource_id: Optional[str] = None,
    ) -> None:
        if response.status_code == 404:
            raise NotFoundError(resource=resource, resource_id=resource_id)
        if response.is_error:
            raise StoreError(
                message=_error_text(response),
                status_code=response.status_code,
                context={"resource": resource, "resource_id": resource_id},
            )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(
                message=f"Failed to parse JSON response: {e}",
                status_code=response.status_code,
            ) from e

    # ── Server / database ─────────────────────────────────────────────────

    async def server_info(self) -> Dict[str, Any]:
        """GET / — CouchDB welcome document, used by the health check."""
        response = await self._request("GET", "/")
        self._check(response, "server")
        return self._json(response)

    async def database_exists(self) -> bool:
        response = await self._request("HEAD", self._db_path())
        if response.status_code == 404:
            return False
        self._check(response, "database", self.database)
        return True

    async def create_database(self) -> None:
        response = await self._request("PUT", self._db_path())
        # 412: created concurrently by someone else, which is what we wanted
        if response.status_code == 412:
            return
        self._check(response, "database", self.database)

    async def ensure_database(self) -> bool:
        """
        Create the database if it does not exist yet.

        Returns:
            True if the database was created, False if it already existed.
        """
        if await self.database_exists():
            return False
        await self.create_database()
        return True

    # ── Documents ─────────────────────────────────────────────────────────

    async def get_document(self, doc_id: str) -> Dict[str, Any]:
        response = await self._request("GET", self._doc_path(doc_id))
        self._check(response, "document", doc_id)
        return self._json(response)

    async def put_document(self, doc_id: str, doc: Dict[str, Any]) -> str:
        """
        Write a document at `doc_id`.

        The body must carry the current `_rev` when the document already
        exists; CouchDB answers 409 otherwise.

        Returns:
            The new revision token.
        """
        response = await self._request("PUT", self._doc_path(doc_id), json=doc)
        self._check(response, "document", doc_id)
        return self._json(response).get("rev", "")

    async def delete_document(self, doc_id: str, rev: str) -> str:
        response = await self._request(
            "DELETE", self._doc_path(doc_id), params={"rev": rev}
        )
        self._check(response, "document", doc_id)
        return self._json(response).get("rev", "")

    # ── Attachments ───────────────────────────────────────────────────────

    async def put_attachment(
        self,
        doc_id: str,
        filename: str,
        content: bytes,
        content_type: str,
        rev: str,
    ) -> str:
        response = await self._request(
            "PUT",
            self._doc_path(doc_id, quote(filename, safe="")),
            params={"rev": rev},
            content=content,
            headers={"Content-Type": content_type},
        )
        self._check(response, "attachment", f"{doc_id}/{filename}")
        return self._json(response).get("rev", "")

    async def get_attachment(self, doc_id: str, filename: str) -> Attachment:
        response = await self._request(
            "GET", self._doc_path(doc_id, quote(filename, safe=""))
        )
        self._check(response, "file", f"{doc_id}/{filename}")
        return Attachment(
            filename=filename,
            content_type=response.headers.get("content-type", "application/octet-stream"),
            content=response.content,
        )

    # ── Raw REST pass-through ─────────────────────────────────────────────

    async def get_json(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        GET `/{db}/{endpoint}` and return the decoded JSON object as-is.

        The store's HTTP status is not inspected: an error body from CouchDB
        is handed back to the caller unchanged. Only transport failures and
        bodies that are not a JSON object raise StoreError.
        """
        response = await self._request("GET", self._db_path(endpoint), params=params)
        body = self._json(response)
        if not isinstance(body, dict):
            raise StoreError(
                message=f"Failed to parse JSON response: expected an object, got {type(body).__name__}",
                status_code=response.status_code,
            )
        return body

    async def aclose(self) -> None:
        await self._client.aclose()


# ── Construction & lifecycle ──────────────────────────────────────────────

def create_couch_client(config: Settings = settings) -> CouchDBClient:
    """Build the shared client from settings. Does not touch the network."""
    http_client = httpx.AsyncClient(
        base_url=config.couchdb_url,
        auth=httpx.BasicAuth(config.couchdb_username, config.couchdb_password),
        timeout=config.couchdb_timeout,
    )
    return CouchDBClient(http_client, config.couchdb_database)


async def bootstrap_database(couch: CouchDBClient) -> None:
    """
    One-time idempotent startup step: make sure the database exists.

    Any StoreError propagates and aborts application startup.
    """
    created = await couch.ensure_database()
    if created:
        logger.info("Database '%s' created successfully.", couch.database)
    else:
        logger.info("Database '%s' already exists.", couch.database)


# ── FastAPI Dependency ────────────────────────────────────────────────────

def get_couch(request: Request) -> CouchDBClient:
    """
    FastAPI dependency returning the process-wide CouchDB client.

    Tests replace it through `app.dependency_overrides[get_couch]`.
    """
    return request.app.state.couch
