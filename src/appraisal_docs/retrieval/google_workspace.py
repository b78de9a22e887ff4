"""Google Workspace client — Docs and Drive over raw httpx with OAuth2 refresh-token auth.

One client owns one httpx.AsyncClient. Call connect() (or use it as an async
context manager) before any request; close() releases the connection pool.
Access tokens are cached on the instance and refreshed 60 seconds early.

API Reference:
  - Docs: https://developers.google.com/workspace/docs/api/reference/rest
  - Drive: https://developers.google.com/drive/api/reference/rest/v3
"""

import json
import logging
import time
import uuid

import httpx

from appraisal_docs.config import settings
from appraisal_docs.core.errors import ClientNotConnectedError
from appraisal_docs.core.types import FileLink

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TOKEN_URL = "https://oauth2.googleapis.com/token"
DOCS_API = "https://docs.googleapis.com/v1/documents"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
DRIVE_PERMISSIONS_URL = "https://www.googleapis.com/drive/v3/files/{file_id}/permissions"

PDF_MIME_TYPE = "application/pdf"


def _auth_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


def _doc_url(document_id: str) -> str:
    return f"https://docs.google.com/document/d/{document_id}/edit"


def _multipart_related(metadata: dict, content: bytes, mime_type: str) -> tuple[bytes, str]:
    """Encode a Drive multipart upload body. Returns (body, content type)."""
    boundary = f"appraisal_docs_{uuid.uuid4().hex}"
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode()
    tail = f"\r\n--{boundary}--\r\n".encode()
    return head + content + tail, f"multipart/related; boundary={boundary}"


class GoogleWorkspaceClient:
    """Docs/Drive operations used by the report pipeline."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._http: httpx.AsyncClient | None = None
        self._cached_token: str = ""
        self._token_expiry: float = 0.0

    # -- lifecycle ----------------------------------------------------------

    async def connect(self) -> "GoogleWorkspaceClient":
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "GoogleWorkspaceClient":
        return await self.connect()

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise ClientNotConnectedError("GoogleWorkspaceClient.connect() must be awaited before use")
        return self._http

    # -- auth ---------------------------------------------------------------

    async def _access_token(self) -> str:
        """Get a valid access token, refreshing when within 60s of expiry."""
        if self._cached_token and time.time() < self._token_expiry - 60:
            return self._cached_token

        if not all([settings.google_client_id, settings.google_client_secret, settings.google_refresh_token]):
            raise ValueError(
                "Google Workspace credentials not configured. "
                "Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN in .env."
            )

        resp = await self.http.post(TOKEN_URL, data={
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "refresh_token": settings.google_refresh_token,
            "grant_type": "refresh_token",
        })
        resp.raise_for_status()
        data = resp.json()

        self._cached_token = data["access_token"]
        self._token_expiry = time.time() + data.get("expires_in", 3600)
        logger.info("Refreshed Google access token (expires in %ds)", data.get("expires_in", 3600))
        return self._cached_token

    async def _headers(self) -> dict[str, str]:
        return _auth_headers(await self._access_token())

    # -- Docs ---------------------------------------------------------------

    async def get_document(self, document_id: str) -> dict:
        resp = await self.http.get(f"{DOCS_API}/{document_id}", headers=await self._headers())
        resp.raise_for_status()
        return resp.json()

    async def batch_update(self, document_id: str, requests: list[dict]) -> dict:
        """Apply a batch atomically, in order. An empty batch sends nothing."""
        if not requests:
            return {}
        resp = await self.http.post(
            f"{DOCS_API}/{document_id}:batchUpdate",
            headers=await self._headers(),
            json={"requests": requests},
        )
        resp.raise_for_status()
        logger.debug("Applied %d requests to document %s", len(requests), document_id)
        return resp.json()

    async def create_document(self, title: str, content: str = "") -> FileLink:
        """Create a Doc, insert content at index 1, share via link."""
        resp = await self.http.post(DOCS_API, headers=await self._headers(), json={"title": title})
        resp.raise_for_status()
        document_id = resp.json()["documentId"]

        if content.strip():
            await self.batch_update(document_id, [
                {"insertText": {"location": {"index": 1}, "text": content}},
            ])

        await self.share_file(document_id)
        link = FileLink(id=document_id, link=_doc_url(document_id))
        logger.info("Created document '%s': %s", title, link.link)
        return link

    # -- Drive --------------------------------------------------------------

    async def copy_file(self, file_id: str, name: str) -> FileLink:
        resp = await self.http.post(
            f"{DRIVE_FILES_URL}/{file_id}/copy",
            headers=await self._headers(),
            params={"supportsAllDrives": "true", "fields": "id,webViewLink"},
            json={"name": name},
        )
        resp.raise_for_status()
        data = resp.json()
        logger.info("Copied file %s to %s ('%s')", file_id, data["id"], name)
        return FileLink(id=data["id"], link=data.get("webViewLink") or _doc_url(data["id"]))

    async def move_file(self, file_id: str, folder_id: str) -> None:
        """Reparent a file: add folder_id, remove every current parent."""
        headers = await self._headers()
        resp = await self.http.get(
            f"{DRIVE_FILES_URL}/{file_id}",
            headers=headers,
            params={"fields": "parents", "supportsAllDrives": "true"},
        )
        resp.raise_for_status()
        previous = ",".join(resp.json().get("parents", []))

        resp = await self.http.patch(
            f"{DRIVE_FILES_URL}/{file_id}",
            headers=headers,
            params={
                "addParents": folder_id,
                "removeParents": previous,
                "fields": "id,parents",
                "supportsAllDrives": "true",
            },
            json={},
        )
        resp.raise_for_status()
        logger.info("Moved file %s to folder %s", file_id, folder_id)

    async def export_pdf(self, file_id: str) -> bytes:
        resp = await self.http.get(
            f"{DRIVE_FILES_URL}/{file_id}/export",
            headers=await self._headers(),
            params={"mimeType": PDF_MIME_TYPE},
        )
        resp.raise_for_status()
        return resp.content

    async def upload_pdf(self, content: bytes, name: str, folder_id: str | None = None) -> FileLink:
        """Upload PDF bytes to Drive, share via link, return its view link."""
        metadata: dict = {"name": name, "mimeType": PDF_MIME_TYPE}
        if folder_id:
            metadata["parents"] = [folder_id]
        body, content_type = _multipart_related(metadata, content, PDF_MIME_TYPE)

        headers = await self._headers()
        headers["Content-Type"] = content_type
        resp = await self.http.post(
            DRIVE_UPLOAD_URL,
            headers=headers,
            params={"uploadType": "multipart", "fields": "id,webViewLink", "supportsAllDrives": "true"},
            content=body,
        )
        resp.raise_for_status()
        data = resp.json()

        await self.share_file(data["id"])
        logger.info("Uploaded PDF '%s' (%d bytes): %s", name, len(content), data.get("webViewLink"))
        return FileLink(id=data["id"], link=data.get("webViewLink", ""))

    async def share_file(self, file_id: str) -> None:
        """Share a file as 'anyone with link can view'."""
        resp = await self.http.post(
            DRIVE_PERMISSIONS_URL.format(file_id=file_id),
            headers=await self._headers(),
            params={"supportsAllDrives": "true"},
            json={"type": "anyone", "role": "reader"},
        )
        resp.raise_for_status()
        logger.info("Shared file %s with 'anyone with link'", file_id)
