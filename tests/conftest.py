"""Shared test fixtures."""

import asyncio
import copy
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from bookmark_vault.errors import TransportError
from bookmark_vault.models import (
    Bookmark,
    BookmarkPage,
    Statistics,
    Tag,
    TopTag,
    UploadResult,
)
from bookmark_vault.notifier import Notifier
from bookmark_vault.parser import parse_bookmark_page, parse_tags
from bookmark_vault.store import BookmarkStore
from bookmark_vault.tags import TagRegistry

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def bookmarks_response() -> dict:
    """Load the sample GET /bookmarks response."""
    with open(FIXTURES_DIR / "bookmarks_response.json") as f:
        return json.load(f)


@pytest.fixture
def tags_response() -> list[dict]:
    with open(FIXTURES_DIR / "tags_response.json") as f:
        return json.load(f)


@pytest.fixture
def sample_bookmarks(bookmarks_response) -> list[Bookmark]:
    return parse_bookmark_page(bookmarks_response).bookmarks


@pytest.fixture
def sample_tags(tags_response) -> list[Tag]:
    return parse_tags(tags_response)


def make_bookmark(
    bookmark_id: str,
    text: str = "hello world",
    tags: list[str] | None = None,
    archived: bool = False,
) -> Bookmark:
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return Bookmark(
        id=bookmark_id,
        name=f"Author {bookmark_id}",
        screen_name=f"user{bookmark_id}",
        full_text=text,
        created_at=created + timedelta(minutes=int(bookmark_id)),
        url=f"https://x.com/user{bookmark_id}/status/{bookmark_id}",
        tags=[Tag(i + 100, n, created) for i, n in enumerate(tags or [])],
        archived=archived,
    )


class FakeGateway:
    """In-memory stand-in for VaultClient.

    Requests can be held back with hold(key) and released later to control
    the order in which responses arrive. Keys are ("list", search),
    ("tags", tuple_of_names) and ("delete", bookmark_id).
    """

    def __init__(self, bookmarks: list[Bookmark], tags: list[Tag] | None = None):
        self.server = {b.id: copy.deepcopy(b) for b in bookmarks}
        self.server_tags = list(tags or [])
        self.calls: list[tuple] = []
        self.failing: set[str] = set()
        self.fail_delete_ids: set[str] = set()
        self._held: dict[tuple, asyncio.Event] = {}
        self._next_tag_id = 1000

    def hold(self, key: tuple) -> asyncio.Event:
        event = asyncio.Event()
        self._held[key] = event
        return event

    async def _enter(self, method: str, key: tuple | None = None) -> None:
        event = self._held.get(key) if key else None
        if event is not None:
            await event.wait()
        if method in self.failing:
            raise TransportError(f"{method} failed", status_code=500)

    async def list_bookmarks(self, query):
        self.calls.append(("list_bookmarks", query))
        await self._enter("list_bookmarks", ("list", query.search))
        matches = [
            b
            for b in self.server.values()
            if b.archived == query.archived
            and (not query.tag or b.has_tag(query.tag))
            and (not query.search or b.matches_text(query.search))
        ]
        start = (query.page - 1) * query.limit
        chunk = matches[start:start + query.limit]
        return BookmarkPage(copy.deepcopy(chunk), total=len(matches))

    async def get_bookmark(self, bookmark_id):
        self.calls.append(("get_bookmark", bookmark_id))
        await self._enter("get_bookmark")
        if bookmark_id not in self.server:
            raise TransportError("Not found (404)", status_code=404)
        return copy.deepcopy(self.server[bookmark_id])

    async def update_bookmark_tags(self, bookmark_id, tags):
        self.calls.append(("update_bookmark_tags", bookmark_id, list(tags)))
        await self._enter("update_bookmark_tags", ("tags", tuple(tags)))
        resolved = []
        for name in tags:
            tag = next((t for t in self.server_tags if t.name == name), None)
            if tag is None:
                tag = Tag(self._next_tag_id, name, datetime.now(timezone.utc))
                self._next_tag_id += 1
                self.server_tags.append(tag)
            resolved.append(tag)
        self.server[bookmark_id].tags = resolved
        return {"message": "Tags updated successfully"}

    async def delete_bookmark(self, bookmark_id):
        self.calls.append(("delete_bookmark", bookmark_id))
        await self._enter("delete_bookmark", ("delete", bookmark_id))
        if bookmark_id in self.fail_delete_ids:
            raise TransportError(f"delete {bookmark_id} failed", status_code=500)
        self.server.pop(bookmark_id, None)

    async def toggle_archive(self, bookmark_id):
        self.calls.append(("toggle_archive", bookmark_id))
        await self._enter("toggle_archive")
        bookmark = self.server[bookmark_id]
        bookmark.archived = not bookmark.archived
        return {"message": "Bookmark archive status toggled successfully"}

    async def toggle_tag_completion(self, bookmark_id, tag_name):
        self.calls.append(("toggle_tag_completion", bookmark_id, tag_name))
        await self._enter("toggle_tag_completion")
        bookmark = self.server[bookmark_id]
        for tag in bookmark.tags:
            if tag.name == tag_name:
                tag.completed = not tag.completed
                return tag.completed
        raise TransportError("Tag not found", status_code=404)

    async def list_tags(self):
        self.calls.append(("list_tags",))
        await self._enter("list_tags")
        return copy.deepcopy(self.server_tags)

    async def create_tag(self, name):
        self.calls.append(("create_tag", name))
        await self._enter("create_tag")
        tag = Tag(self._next_tag_id, name, datetime.now(timezone.utc))
        self._next_tag_id += 1
        self.server_tags.append(tag)
        return copy.deepcopy(tag)

    async def rename_tag(self, tag_id, name):
        self.calls.append(("rename_tag", tag_id, name))
        await self._enter("rename_tag")
        for tag in self.server_tags:
            if tag.id == tag_id:
                tag.name = name
                return copy.deepcopy(tag)
        raise TransportError("Tag not found", status_code=404)

    async def delete_tag(self, tag_id):
        self.calls.append(("delete_tag", tag_id))
        await self._enter("delete_tag")
        doomed = next((t for t in self.server_tags if t.id == tag_id), None)
        if doomed is None:
            raise TransportError("Tag not found", status_code=404)
        self.server_tags.remove(doomed)
        for bookmark in self.server.values():
            bookmark.tags = [t for t in bookmark.tags if t.name != doomed.name]

    async def tag_bookmark_count(self, tag_id):
        self.calls.append(("tag_bookmark_count", tag_id))
        await self._enter("tag_bookmark_count")
        tag = next(t for t in self.server_tags if t.id == tag_id)
        return sum(1 for b in self.server.values() if b.has_tag(tag.name))

    async def get_statistics(self):
        self.calls.append(("get_statistics",))
        await self._enter("get_statistics")
        archived = sum(1 for b in self.server.values() if b.archived)
        counts = {}
        for b in self.server.values():
            for t in b.tags:
                counts[t.name] = counts.get(t.name, 0) + 1
        top = sorted(counts.items(), key=lambda kv: -kv[1])[:5]
        return Statistics(
            total_bookmarks=len(self.server),
            active_bookmarks=len(self.server) - archived,
            archived_bookmarks=archived,
            total_tags=len(self.server_tags),
            top_tags=[TopTag(name, count) for name, count in top],
        )

    async def upload(self, json_file, zip_file):
        self.calls.append(("upload", json_file.name, zip_file.name))
        await self._enter("upload")
        return UploadResult(message="Upload successful", count=0)

    async def close(self):
        self.calls.append(("close",))

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c[0] == method)


@pytest.fixture
def gateway(sample_bookmarks, sample_tags) -> FakeGateway:
    return FakeGateway(sample_bookmarks, sample_tags)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def notices() -> list[str]:
    return []


@pytest.fixture
def registry(gateway, notifier, notices) -> TagRegistry:
    return TagRegistry(gateway, notifier, notice=notices.append)


@pytest.fixture
def store(gateway, registry, notifier) -> BookmarkStore:
    return BookmarkStore(gateway, registry, notifier)


@pytest.fixture
def bookmark_factory():
    """Build Bookmark objects with numeric string ids."""
    return make_bookmark


@pytest.fixture
def gateway_factory():
    return FakeGateway
