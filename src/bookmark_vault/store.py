"""The page of bookmarks currently held by the client.

Tag edits are applied locally before the request is sent and are never
rolled back when the request fails (rollback_on_failure). The next reload
replaces the page with server state, which also supersedes any provisional
tags (negative ids) created here.

Every load() takes a new generation number. Only the newest load may
replace the page or clear it on failure, so a slow response to an older
query can never overwrite the result of a newer one.
"""

import asyncio
import itertools
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from .client import VaultClient
from .errors import TransportError
from .models import Bookmark, BookmarkPage, BookmarkQuery, Tag
from .notifier import TAG_UPDATED, Notifier
from .tags import TagRegistry

logger = logging.getLogger(__name__)


class BookmarkStore:
    rollback_on_failure = False

    def __init__(self, client: VaultClient, registry: TagRegistry, notifier: Notifier):
        self._client = client
        self._registry = registry
        self._notifier = notifier
        self._bookmarks: list[Bookmark] = []
        self._total = 0
        self._generation = 0
        self._last_query: BookmarkQuery | None = None
        self._provisional_ids = itertools.count(-1, -1)

    @property
    def bookmarks(self) -> list[Bookmark]:
        return list(self._bookmarks)

    @property
    def total(self) -> int:
        return self._total

    @property
    def last_query(self) -> BookmarkQuery | None:
        return self._last_query

    def get(self, bookmark_id: str) -> Bookmark | None:
        for b in self._bookmarks:
            if b.id == bookmark_id:
                return b
        return None

    def known_tags(self) -> dict[str, Tag]:
        """Tags by name, from the registry and from every held bookmark."""
        known: dict[str, Tag] = {}
        for bookmark in self._bookmarks:
            for tag in bookmark.tags:
                known.setdefault(tag.name, tag)
        for tag in self._registry.tags:
            known[tag.name] = tag
        return known

    # ── Loading ──

    async def load(self, query: BookmarkQuery) -> BookmarkPage | None:
        """Replace the held page with the result of query.

        Returns None when a newer load started while this one was in flight;
        the response is then discarded. Raises TransportError (after clearing
        the page) when this is still the newest load.
        """
        self._generation += 1
        generation = self._generation
        self._last_query = query
        try:
            page = await self._client.list_bookmarks(query)
        except TransportError:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded load #%d", generation)
                return None
            self._bookmarks = []
            self._total = 0
            raise

        if generation != self._generation:
            logger.debug("Discarding stale response for load #%d", generation)
            return None

        self._bookmarks = list(page.bookmarks)
        self._total = page.total
        logger.info(
            "Loaded %d bookmarks (page %d, %d total)",
            len(page.bookmarks),
            query.page,
            page.total,
        )
        return page

    async def load_one(self, bookmark_id: str) -> Bookmark | None:
        """Replace the held page with the single bookmark bookmark_id."""
        self._generation += 1
        generation = self._generation
        self._last_query = None
        try:
            bookmark = await self._client.get_bookmark(bookmark_id)
        except TransportError:
            if generation == self._generation:
                self.clear()
            raise
        if generation != self._generation:
            return None
        self._bookmarks = [bookmark]
        self._total = 1
        return bookmark

    async def reload(self) -> BookmarkPage | None:
        """Repeat the last query. Errors are logged, not raised."""
        if self._last_query is None:
            return None
        try:
            return await self.load(self._last_query)
        except TransportError as e:
            logger.error("Failed to reload bookmarks: %s", e)
            return None

    def clear(self) -> None:
        self._bookmarks = []
        self._total = 0

    # ── Tag mutations ──

    async def set_tags(self, bookmark_id: str, tag_names: Iterable[str]) -> bool:
        """Apply a new tag list locally, then send it to the server.

        Returns whether the server accepted it. The local list is kept either
        way.
        """
        bookmark = self.get(bookmark_id)
        if bookmark is None:
            logger.warning("Cannot tag unknown bookmark %s", bookmark_id)
            return False

        names = list(dict.fromkeys(n.strip() for n in tag_names if n.strip()))
        previous = list(bookmark.tags)
        bookmark.tags = self._resolve_tags(names)

        try:
            await self._client.update_bookmark_tags(bookmark_id, names)
        except TransportError as e:
            logger.error("Failed to update tags of %s: %s", bookmark_id, e)
            if self.rollback_on_failure:
                bookmark.tags = previous
            return False

        await self._registry.refresh()
        self._notifier.publish(TAG_UPDATED)
        return True

    async def add_tag(self, bookmark_id: str, name: str) -> bool:
        bookmark = self.get(bookmark_id)
        if bookmark is None:
            logger.warning("Cannot tag unknown bookmark %s", bookmark_id)
            return False
        return await self.set_tags(bookmark_id, bookmark.tag_names + [name])

    async def remove_tag(self, bookmark_id: str, name: str) -> bool:
        bookmark = self.get(bookmark_id)
        if bookmark is None:
            logger.warning("Cannot untag unknown bookmark %s", bookmark_id)
            return False
        return await self.set_tags(
            bookmark_id, [n for n in bookmark.tag_names if n != name]
        )

    async def toggle_tag(self, bookmark_id: str, name: str) -> bool:
        bookmark = self.get(bookmark_id)
        if bookmark is None:
            logger.warning("Cannot tag unknown bookmark %s", bookmark_id)
            return False
        if bookmark.has_tag(name):
            return await self.remove_tag(bookmark_id, name)
        return await self.add_tag(bookmark_id, name)

    def remove_tag_everywhere(self, tag_name: str) -> int:
        """Strip tag_name from every held bookmark. Returns how many changed."""
        changed = 0
        for bookmark in self._bookmarks:
            if bookmark.has_tag(tag_name):
                bookmark.tags = [t for t in bookmark.tags if t.name != tag_name]
                changed += 1
        return changed

    async def toggle_completion(self, bookmark_id: str, tag_name: str) -> bool | None:
        """Flip a task-marker tag's completion flag. Returns the new flag."""
        try:
            completed = await self._client.toggle_tag_completion(bookmark_id, tag_name)
        except TransportError as e:
            logger.error(
                "Failed to toggle completion of %r on %s: %s", tag_name, bookmark_id, e
            )
            return None

        bookmark = self.get(bookmark_id)
        if bookmark is not None:
            bookmark.tags = [
                Tag(t.id, t.name, t.created_at, completed) if t.name == tag_name else t
                for t in bookmark.tags
            ]
        self._notifier.publish(TAG_UPDATED)
        return completed

    def _resolve_tags(self, names: list[str]) -> list[Tag]:
        known = self.known_tags()
        tags = []
        for name in names:
            tag = known.get(name)
            if tag is None:
                tag = Tag(
                    id=next(self._provisional_ids),
                    name=name,
                    created_at=datetime.now(timezone.utc),
                )
                logger.debug("Provisional tag %r (id %d)", name, tag.id)
            tags.append(tag)
        return tags

    # ── Archive & delete ──

    async def toggle_archive(self, bookmark_id: str) -> bool:
        """Toggle archived state, then reload so the filtered view is correct."""
        try:
            await self._client.toggle_archive(bookmark_id)
        except TransportError as e:
            logger.error("Failed to toggle archive of %s: %s", bookmark_id, e)
            return False
        await self.reload()
        return True

    async def remove(self, bookmark_id: str) -> bool:
        try:
            await self._client.delete_bookmark(bookmark_id)
        except TransportError as e:
            logger.error("Failed to delete bookmark %s: %s", bookmark_id, e)
            return False
        self._drop([bookmark_id])
        return True

    async def remove_many(self, bookmark_ids: Iterable[str]) -> list[str]:
        """Delete bookmarks concurrently. Returns the ids that were deleted.

        Failures are independent: a failed delete leaves that bookmark in
        place and does not affect the others.
        """
        ids = list(dict.fromkeys(bookmark_ids))
        if not ids:
            return []
        results = await asyncio.gather(
            *(self._client.delete_bookmark(i) for i in ids),
            return_exceptions=True,
        )
        removed = []
        unexpected = None
        for bookmark_id, result in zip(ids, results):
            if isinstance(result, TransportError):
                logger.error("Failed to delete bookmark %s: %s", bookmark_id, result)
            elif isinstance(result, BaseException):
                unexpected = unexpected or result
            else:
                removed.append(bookmark_id)
        self._drop(removed)
        if unexpected is not None:
            raise unexpected
        logger.info("Deleted %d of %d bookmarks", len(removed), len(ids))
        return removed

    def _drop(self, bookmark_ids: list[str]) -> None:
        doomed = set(bookmark_ids)
        kept = [b for b in self._bookmarks if b.id not in doomed]
        self._total = max(self._total - (len(self._bookmarks) - len(kept)), 0)
        self._bookmarks = kept
