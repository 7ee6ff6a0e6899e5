"""Async HTTP client for the bookmark service API.

Every endpoint of the service is exposed as one coroutine. Non-success
statuses and network failures are raised as TransportError; nothing is
retried. Callers decide whether a failure is logged and swallowed.

The base URL defaults to http://localhost:8080/api and can be overridden
with the BOOKMARK_VAULT_API_URL environment variable or the config file.
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

import httpx

from .errors import TransportError
from .models import (
    Bookmark,
    BookmarkPage,
    BookmarkQuery,
    Statistics,
    Tag,
    UploadResult,
)
from .parser import (
    parse_bookmark,
    parse_bookmark_page,
    parse_statistics,
    parse_tag,
    parse_tags,
    parse_upload_result,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.environ.get(
    "BOOKMARK_VAULT_API_URL", "http://localhost:8080/api"
)

# Archive imports can take a while on the server side
UPLOAD_TIMEOUT = 300.0


class VaultClient:
    """Client for the bookmark service REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    # ── Bookmarks ──

    async def list_bookmarks(self, query: BookmarkQuery) -> BookmarkPage:
        """Fetch one page of bookmarks matching the query."""
        data = await self._request("GET", "/bookmarks", params=query.to_params())
        return parse_bookmark_page(data or {})

    async def get_bookmark(self, bookmark_id: str) -> Bookmark:
        data = await self._request("GET", f"/bookmarks/{_seg(bookmark_id)}")
        try:
            return parse_bookmark(data or {})
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Malformed bookmark in response: {e}") from e

    async def update_bookmark_tags(self, bookmark_id: str, tags: list[str]) -> dict:
        """Replace the tag set of a bookmark with the given names."""
        return await self._request(
            "PUT", f"/bookmarks/{_seg(bookmark_id)}", json={"tags": tags}
        )

    async def delete_bookmark(self, bookmark_id: str) -> None:
        await self._request("DELETE", f"/bookmarks/{_seg(bookmark_id)}")

    async def toggle_archive(self, bookmark_id: str) -> dict:
        return await self._request(
            "POST", f"/bookmarks/{_seg(bookmark_id)}/toggle-archive"
        )

    async def toggle_tag_completion(self, bookmark_id: str, tag_name: str) -> bool:
        """Flip the completion flag of a task-marker tag on one bookmark."""
        data = await self._request(
            "POST",
            f"/bookmarks/{_seg(bookmark_id)}/tags/{_seg(tag_name)}/toggle-completion",
        )
        return bool((data or {}).get("completed", False))

    # ── Tags ──

    async def list_tags(self) -> list[Tag]:
        data = await self._request("GET", "/tags")
        return parse_tags(data if isinstance(data, list) else [])

    async def create_tag(self, name: str) -> Tag:
        data = await self._request("POST", "/tags", json={"name": name})
        return self._parse_tag_response(data)

    async def rename_tag(self, tag_id: int, name: str) -> Tag:
        data = await self._request("PUT", f"/tags/{tag_id}", json={"name": name})
        return self._parse_tag_response(data)

    async def delete_tag(self, tag_id: int) -> None:
        await self._request("DELETE", f"/tags/{tag_id}")

    async def tag_bookmark_count(self, tag_id: int) -> int:
        """Number of bookmarks currently referencing the tag."""
        data = await self._request("GET", f"/tags/{tag_id}/count")
        return int((data or {}).get("count") or 0)

    # ── Statistics & import ──

    async def get_statistics(self) -> Statistics:
        data = await self._request("GET", "/statistics")
        return parse_statistics(data or {})

    async def upload(self, json_file: Path, zip_file: Path) -> UploadResult:
        """Import a bookmarks export (JSON) together with its media bundle (ZIP)."""
        files = {
            "jsonFile": (json_file.name, json_file.read_bytes(), "application/json"),
            "zipFile": (zip_file.name, zip_file.read_bytes(), "application/zip"),
        }
        logger.info("Uploading %s and %s...", json_file.name, zip_file.name)
        data = await self._request("POST", "/upload", files=files, timeout=UPLOAD_TIMEOUT)
        return parse_upload_result(data or {})

    # ── Plumbing ──

    async def _request(self, method: str, path: str, **kwargs):
        """Send a request and return the decoded JSON body (None when empty)."""
        logger.debug("%s %s", method, path)
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(
                f"Could not reach the bookmark service at {self.base_url}: {e}"
            ) from e

        if response.status_code == 404:
            raise TransportError(
                f"Not found (404): {method} {path}. "
                f"{_error_detail(response)}".strip(),
                status_code=404,
            )

        if response.status_code == 400:
            raise TransportError(
                f"Bad request (400): {_error_detail(response) or 'rejected by server'}",
                status_code=400,
            )

        if response.status_code >= 400:
            raise TransportError(
                f"{method} {path} failed with status {response.status_code}. "
                f"{_error_detail(response)}".strip(),
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON in response to {method} {path}",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _parse_tag_response(data) -> Tag:
        try:
            return parse_tag(data or {})
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Malformed tag in response: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()


def _seg(value: str) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(str(value), safe="")


def _error_detail(response: httpx.Response) -> str:
    """Extract the service's {"error": ...} message, if any."""
    try:
        data = response.json()
    except ValueError:
        return ""
    if isinstance(data, dict):
        return str(data.get("error", ""))
    return ""
