"""A browsing session against the bookmark service.

VaultSession owns one instance of every component and connects them:
filters and paging drive fetches into the store, tag deletions reach the
store through the notifier, and bulk actions go through the selection.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from .client import VaultClient
from .config import AppConfig
from .errors import TransportError
from .models import Bookmark, UploadResult
from .notifier import BOOKMARKS_CHANGED, TAG_DELETED, Notifier
from .pagination import Paginator
from .query import QueryController
from .selection import SelectionManager
from .state import ClientState
from .statistics import StatisticsPanel
from .store import BookmarkStore
from .tags import TagRegistry

logger = logging.getLogger(__name__)


class VaultSession:
    def __init__(
        self,
        client: VaultClient,
        state: ClientState | None = None,
        protected_tags=None,
        notice: Callable[[str], None] | None = None,
        notifier: Notifier | None = None,
    ):
        self.client = client
        self.notifier = notifier or Notifier()
        registry_kwargs = {}
        if protected_tags is not None:
            registry_kwargs["protected"] = protected_tags
        if notice is not None:
            registry_kwargs["notice"] = notice
        self.tags = TagRegistry(client, self.notifier, **registry_kwargs)
        self.store = BookmarkStore(client, self.tags, self.notifier)
        self.paginator = Paginator(state)
        self.query = QueryController(self.paginator)
        self.selection = SelectionManager()
        self.statistics = StatisticsPanel(client, self.notifier)
        self._tag_deleted = self.notifier.subscribe(TAG_DELETED, self._on_tag_deleted)

    @classmethod
    def from_config(
        cls, config: AppConfig, notice: Callable[[str], None] | None = None
    ) -> "VaultSession":
        client = VaultClient(config.base_url, timeout=config.timeout)
        return cls(
            client,
            state=ClientState(config.state_dir),
            protected_tags=config.protected_tags,
            notice=notice,
        )

    # ── Reading ──

    async def refresh(self) -> bool:
        """Fetch the page described by the current filters and paging.

        Returns False when the fetch failed (the list is then empty).
        """
        query = self.query.effective_query()
        try:
            page = await self.store.load(query)
        except TransportError as e:
            logger.error("Failed to load bookmarks: %s", e)
            # Only the count is cleared; the page index is kept
            self.paginator.total = 0
            return False
        if page is None:
            # Superseded by a newer refresh
            return True
        self.paginator.set_total(page.total)
        if self.paginator.page != query.page:
            # Requested page no longer exists; fetch the last one instead
            return await self.refresh()
        return True

    def visible(self) -> list[Bookmark]:
        """Bookmarks on the current page that match the search text."""
        return self.query.apply(self.store.bookmarks)

    # ── Filters & paging ──

    def set_search(self, text: str) -> list[Bookmark]:
        """Update the search text and re-filter the loaded page. No fetch."""
        self.query.set_search(text)
        return self.visible()

    async def search_now(self) -> bool:
        return await self.refresh()

    async def set_tag_filter(self, tag: str | None) -> bool:
        self.query.set_tag(tag)
        return await self.refresh()

    async def set_archived(self, archived: bool) -> bool:
        self.query.set_archived(archived)
        return await self.refresh()

    async def set_page_size(self, size: int) -> bool:
        self.paginator.set_page_size(size)
        return await self.refresh()

    async def go_to_page(self, page: int) -> bool:
        self.paginator.go_to(page)
        return await self.refresh()

    async def next_page(self) -> bool:
        if not self.paginator.next():
            return False
        return await self.refresh()

    async def previous_page(self) -> bool:
        if not self.paginator.previous():
            return False
        return await self.refresh()

    # ── Bookmark mutations ──

    async def open_bookmark(self, bookmark_id: str) -> Bookmark | None:
        """Hold just this bookmark, for editing it outside a listing."""
        try:
            return await self.store.load_one(bookmark_id)
        except TransportError as e:
            logger.error("Failed to load bookmark %s: %s", bookmark_id, e)
            return None

    async def toggle_archive(self, bookmark_id: str) -> bool:
        ok = await self.store.toggle_archive(bookmark_id)
        if ok:
            await self._sync_total()
            self.notifier.publish(BOOKMARKS_CHANGED)
        return ok

    async def delete_bookmark(self, bookmark_id: str) -> bool:
        ok = await self.store.remove(bookmark_id)
        if ok:
            self.selection.discard(bookmark_id)
            await self._sync_total()
            self.notifier.publish(BOOKMARKS_CHANGED)
        return ok

    async def delete_selected(self) -> list[str]:
        """Delete every selected bookmark, then leave select mode.

        Select mode is left even when some deletes failed; those bookmarks
        stay in the list.
        """
        ids = sorted(self.selection.ids)
        if not ids:
            return []
        try:
            removed = await self.store.remove_many(ids)
        finally:
            self.selection.exit()
        await self._sync_total()
        if removed:
            self.notifier.publish(BOOKMARKS_CHANGED)
        if len(removed) < len(ids):
            logger.warning(
                "%d of %d selected bookmarks could not be deleted",
                len(ids) - len(removed),
                len(ids),
            )
        return removed

    async def _sync_total(self) -> None:
        """Take over the store's count; refetch if the current page vanished."""
        page = self.paginator.page
        self.paginator.set_total(self.store.total)
        if self.paginator.page != page:
            await self.refresh()

    # ── Tags ──

    async def delete_tag(self, tag_id: int) -> bool:
        tag = await self.tags.resolve(tag_id)
        ok = await self.tags.delete(tag_id)
        if ok and tag is not None and self.query.tag == tag.name:
            await self.set_tag_filter(None)
        return ok

    def _on_tag_deleted(self, tag_name: str) -> None:
        changed = self.store.remove_tag_everywhere(tag_name)
        logger.debug("Removed deleted tag %r from %d bookmarks", tag_name, changed)

    # ── Import ──

    async def upload(self, json_file: Path, zip_file: Path) -> UploadResult | None:
        try:
            result = await self.client.upload(json_file, zip_file)
        except TransportError as e:
            logger.error("Upload failed: %s", e)
            return None
        logger.info("Imported %d bookmarks", result.count)
        self.paginator.reset()
        await self.tags.refresh()
        await self.refresh()
        self.notifier.publish(BOOKMARKS_CHANGED)
        return result

    async def close(self) -> None:
        self._tag_deleted.cancel()
        self.statistics.close()
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
