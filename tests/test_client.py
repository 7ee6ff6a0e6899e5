"""Tests for the bookmark service API client."""

import json

import httpx
import pytest
import respx

from bookmark_vault.client import VaultClient
from bookmark_vault.errors import TransportError
from bookmark_vault.models import BookmarkQuery

BASE_URL = "http://vault.test/api"


@pytest.fixture
def stats_response() -> dict:
    return {
        "total_bookmarks": 10,
        "active_bookmarks": 7,
        "archived_bookmarks": 3,
        "total_tags": 4,
        "top_tags": [
            {"name": "todo", "count": 5, "completed_count": 2},
            {"name": "python", "count": 3},
        ],
    }


class TestListBookmarks:
    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_page(self, bookmarks_response):
        respx.get(f"{BASE_URL}/bookmarks").mock(
            return_value=httpx.Response(200, json=bookmarks_response)
        )

        async with VaultClient(BASE_URL) as client:
            page = await client.list_bookmarks(BookmarkQuery())

        assert page.total == 3
        assert [b.id for b in page.bookmarks] == [
            "1234567890",
            "9876543210",
            "5555555555",
        ]

    @pytest.mark.asyncio
    @respx.mock
    async def test_query_parameters(self, bookmarks_response):
        route = respx.get(f"{BASE_URL}/bookmarks").mock(
            return_value=httpx.Response(200, json=bookmarks_response)
        )

        query = BookmarkQuery(tag="python", search="hello", page=2, limit=20)
        async with VaultClient(BASE_URL) as client:
            await client.list_bookmarks(query)

        params = route.calls.last.request.url.params
        assert params["tag"] == "python"
        assert params["search"] == "hello"
        assert params["page"] == "2"
        assert params["limit"] == "20"
        assert params["archived"] == "false"

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_filters_omitted(self, bookmarks_response):
        route = respx.get(f"{BASE_URL}/bookmarks").mock(
            return_value=httpx.Response(200, json=bookmarks_response)
        )

        async with VaultClient(BASE_URL) as client:
            await client.list_bookmarks(BookmarkQuery(archived=True))

        params = route.calls.last.request.url.params
        assert "tag" not in params
        assert "search" not in params
        assert params["archived"] == "true"

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_raises(self):
        respx.get(f"{BASE_URL}/bookmarks").mock(
            return_value=httpx.Response(500, json={"error": "database is down"})
        )

        async with VaultClient(BASE_URL) as client:
            with pytest.raises(TransportError, match="database is down") as exc:
                await client.list_bookmarks(BookmarkQuery())

        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    @respx.mock
    async def test_network_failure_raises(self):
        respx.get(f"{BASE_URL}/bookmarks").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        async with VaultClient(BASE_URL) as client:
            with pytest.raises(TransportError, match="Could not reach") as exc:
                await client.list_bookmarks(BookmarkQuery())

        assert exc.value.status_code is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json_raises(self):
        respx.get(f"{BASE_URL}/bookmarks").mock(
            return_value=httpx.Response(200, text="<html>oops</html>")
        )

        async with VaultClient(BASE_URL) as client:
            with pytest.raises(TransportError, match="Invalid JSON"):
                await client.list_bookmarks(BookmarkQuery())


class TestBookmarkMutations:
    @pytest.mark.asyncio
    @respx.mock
    async def test_update_tags_sends_names(self):
        route = respx.put(f"{BASE_URL}/bookmarks/123").mock(
            return_value=httpx.Response(200, json={"message": "Tags updated successfully"})
        )

        async with VaultClient(BASE_URL) as client:
            await client.update_bookmark_tags("123", ["python", "todo"])

        assert json.loads(route.calls.last.request.content) == {
            "tags": ["python", "todo"]
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete(self):
        route = respx.delete(f"{BASE_URL}/bookmarks/123").mock(
            return_value=httpx.Response(200, json={"message": "Bookmark deleted successfully"})
        )

        async with VaultClient(BASE_URL) as client:
            await client.delete_bookmark("123")

        assert route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete_missing_raises(self):
        respx.delete(f"{BASE_URL}/bookmarks/404").mock(
            return_value=httpx.Response(404, json={"error": "Bookmark not found"})
        )

        async with VaultClient(BASE_URL) as client:
            with pytest.raises(TransportError, match="Not found") as exc:
                await client.delete_bookmark("404")

        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    @respx.mock
    async def test_toggle_archive(self):
        route = respx.post(f"{BASE_URL}/bookmarks/123/toggle-archive").mock(
            return_value=httpx.Response(200, json={"message": "ok"})
        )

        async with VaultClient(BASE_URL) as client:
            await client.toggle_archive("123")

        assert route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_toggle_completion_quotes_tag_name(self):
        route = respx.post(url__regex=r".*/tags/.*/toggle-completion$").mock(
            return_value=httpx.Response(200, json={"completed": True})
        )

        async with VaultClient(BASE_URL) as client:
            completed = await client.toggle_tag_completion("123", "to do")

        assert completed is True
        assert route.calls.last.request.url.raw_path == (
            b"/api/bookmarks/123/tags/to%20do/toggle-completion"
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_bookmark(self, bookmarks_response):
        respx.get(f"{BASE_URL}/bookmarks/9876543210").mock(
            return_value=httpx.Response(200, json=bookmarks_response["bookmarks"][1])
        )

        async with VaultClient(BASE_URL) as client:
            bookmark = await client.get_bookmark("9876543210")

        assert bookmark.screen_name == "photouser"
        assert len(bookmark.media) == 1


class TestTags:
    @pytest.mark.asyncio
    @respx.mock
    async def test_list_tags(self, tags_response):
        respx.get(f"{BASE_URL}/tags").mock(
            return_value=httpx.Response(200, json=tags_response)
        )

        async with VaultClient(BASE_URL) as client:
            tags = await client.list_tags()

        assert [t.name for t in tags] == ["python", "todo", "done", "Pythonic", "rust"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_tag(self):
        route = respx.post(f"{BASE_URL}/tags").mock(
            return_value=httpx.Response(
                201,
                json={"id": 9, "name": "new", "created_at": "2025-03-01T00:00:00Z"},
            )
        )

        async with VaultClient(BASE_URL) as client:
            tag = await client.create_tag("new")

        assert tag.id == 9
        assert json.loads(route.calls.last.request.content) == {"name": "new"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_rename_tag(self):
        route = respx.put(f"{BASE_URL}/tags/4").mock(
            return_value=httpx.Response(
                200,
                json={"id": 4, "name": "py", "created_at": "2025-01-04T00:00:00Z"},
            )
        )

        async with VaultClient(BASE_URL) as client:
            tag = await client.rename_tag(4, "py")

        assert tag.name == "py"
        assert json.loads(route.calls.last.request.content) == {"name": "py"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_tag_response_raises(self):
        respx.post(f"{BASE_URL}/tags").mock(
            return_value=httpx.Response(200, json={"message": "created"})
        )

        async with VaultClient(BASE_URL) as client:
            with pytest.raises(TransportError, match="Malformed tag"):
                await client.create_tag("new")

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete_tag(self):
        route = respx.delete(f"{BASE_URL}/tags/4").mock(
            return_value=httpx.Response(200, json={"message": "Tag deleted successfully"})
        )

        async with VaultClient(BASE_URL) as client:
            await client.delete_tag(4)

        assert route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_tag_bookmark_count(self):
        respx.get(f"{BASE_URL}/tags/4/count").mock(
            return_value=httpx.Response(200, json={"count": 17})
        )

        async with VaultClient(BASE_URL) as client:
            assert await client.tag_bookmark_count(4) == 17


class TestStatisticsAndUpload:
    @pytest.mark.asyncio
    @respx.mock
    async def test_statistics(self, stats_response):
        respx.get(f"{BASE_URL}/statistics").mock(
            return_value=httpx.Response(200, json=stats_response)
        )

        async with VaultClient(BASE_URL) as client:
            stats = await client.get_statistics()

        assert stats.total_bookmarks == 10
        assert stats.archived_bookmarks == 3
        assert stats.top_tags[0].name == "todo"
        assert stats.top_tags[0].completed_count == 2
        assert stats.top_tags[1].completed_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_upload_sends_both_files(self, tmp_path):
        json_file = tmp_path / "bookmarks.json"
        json_file.write_text("[]")
        zip_file = tmp_path / "media.zip"
        zip_file.write_bytes(b"PK\x05\x06" + b"\x00" * 18)

        route = respx.post(f"{BASE_URL}/upload").mock(
            return_value=httpx.Response(
                200, json={"message": "Upload successful", "count": 42}
            )
        )

        async with VaultClient(BASE_URL) as client:
            result = await client.upload(json_file, zip_file)

        assert result.count == 42
        body = route.calls.last.request.content
        assert b'name="jsonFile"' in body
        assert b'name="zipFile"' in body
        assert b'filename="bookmarks.json"' in body

    @pytest.mark.asyncio
    @respx.mock
    async def test_upload_rejected(self, tmp_path):
        json_file = tmp_path / "bookmarks.json"
        json_file.write_text("not json")
        zip_file = tmp_path / "media.zip"
        zip_file.write_bytes(b"")

        respx.post(f"{BASE_URL}/upload").mock(
            return_value=httpx.Response(400, json={"error": "invalid JSON file"})
        )

        async with VaultClient(BASE_URL) as client:
            with pytest.raises(TransportError, match="invalid JSON file"):
                await client.upload(json_file, zip_file)
