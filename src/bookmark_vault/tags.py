"""The set of tags known to the bookmark service.

The registry holds the tag list from the last refresh() and never
invalidates it on its own: callers refresh before suggest() whenever a
tag may have been created elsewhere.

Tag names are matched by name, not id. Creating a tag whose name already
exists returns the existing tag instead of sending a request, which is how
duplicate tags are avoided without a client-side uniqueness constraint.

Protected names (task markers such as "todo" and "done") cannot be renamed
or deleted; such attempts are refused before any request is made and
reported through the notice callback.
"""

import logging
from collections.abc import Callable, Iterable

from .client import VaultClient
from .errors import TransportError, ValidationRejection
from .models import Tag
from .notifier import TAG_DELETED, TAG_UPDATED, Notifier

logger = logging.getLogger(__name__)

DEFAULT_PROTECTED_TAGS = frozenset({"todo", "done"})


def _log_notice(message: str) -> None:
    logger.warning("%s", message)


class TagRegistry:
    def __init__(
        self,
        client: VaultClient,
        notifier: Notifier,
        protected: Iterable[str] = DEFAULT_PROTECTED_TAGS,
        notice: Callable[[str], None] = _log_notice,
    ):
        self._client = client
        self._notifier = notifier
        self._tags: list[Tag] = []
        self.protected = frozenset(protected)
        self._notice = notice

    @property
    def tags(self) -> list[Tag]:
        return list(self._tags)

    def names(self) -> list[str]:
        return [t.name for t in self._tags]

    def find(self, name: str) -> Tag | None:
        for tag in self._tags:
            if tag.name == name:
                return tag
        return None

    def get(self, tag_id: int) -> Tag | None:
        for tag in self._tags:
            if tag.id == tag_id:
                return tag
        return None

    def is_protected(self, name: str) -> bool:
        return name in self.protected

    async def refresh(self) -> list[Tag]:
        """Replace the held tag set with the server's. Keeps the old set on failure."""
        try:
            tags = await self._client.list_tags()
        except TransportError as e:
            logger.error("Failed to load tags: %s", e)
            return self.tags
        self._tags = tags
        logger.debug("Loaded %d tags", len(tags))
        return self.tags

    def suggest(self, prefix: str, exclude: Iterable[str] = ()) -> list[Tag]:
        """Tags whose name contains prefix (case-insensitive), minus excluded names."""
        needle = prefix.strip().lower()
        if not needle:
            return []
        excluded = set(exclude)
        return [
            t
            for t in self._tags
            if needle in t.name.lower() and t.name not in excluded
        ]

    async def create(self, name: str) -> Tag | None:
        """Create a tag, or return the existing one with the same name."""
        name = name.strip()
        if not name:
            return None
        existing = self.find(name)
        if existing is not None:
            logger.debug("Tag %r already exists, selecting it", name)
            return existing
        try:
            tag = await self._client.create_tag(name)
        except TransportError as e:
            logger.error("Failed to create tag %r: %s", name, e)
            return None
        await self.refresh()
        self._notifier.publish(TAG_UPDATED)
        return tag

    async def rename(self, tag_id: int, new_name: str) -> bool:
        tag = await self.resolve(tag_id)
        if tag is None or not self._allowed(tag, "rename"):
            return False
        new_name = new_name.strip()
        if not new_name:
            return False
        try:
            await self._client.rename_tag(tag_id, new_name)
        except TransportError as e:
            logger.error("Failed to rename tag %d: %s", tag_id, e)
            return False
        await self.refresh()
        self._notifier.publish(TAG_UPDATED)
        return True

    async def delete(self, tag_id: int) -> bool:
        tag = await self.resolve(tag_id)
        if tag is None or not self._allowed(tag, "delete"):
            return False
        try:
            await self._client.delete_tag(tag_id)
        except TransportError as e:
            logger.error("Failed to delete tag %d: %s", tag_id, e)
            return False
        await self.refresh()
        self._notifier.publish(TAG_DELETED, tag.name)
        self._notifier.publish(TAG_UPDATED)
        return True

    async def bookmark_count(self, tag_id: int) -> int | None:
        try:
            return await self._client.tag_bookmark_count(tag_id)
        except TransportError as e:
            logger.error("Failed to count bookmarks for tag %d: %s", tag_id, e)
            return None

    async def resolve(self, tag_id: int) -> Tag | None:
        """Look a tag up by id, refreshing once if it is not known yet."""
        tag = self.get(tag_id)
        if tag is None:
            await self.refresh()
            tag = self.get(tag_id)
        if tag is None:
            logger.warning("Unknown tag id %d", tag_id)
        return tag

    def check_mutable(self, tag: Tag | None, action: str) -> None:
        """Raise ValidationRejection if the tag is protected."""
        if tag is not None and self.is_protected(tag.name):
            raise ValidationRejection(
                f"The tag {tag.name!r} is reserved and cannot be {action}d."
            )

    def _allowed(self, tag: Tag | None, action: str) -> bool:
        try:
            self.check_mutable(tag, action)
        except ValidationRejection as e:
            self._notice(str(e))
            return False
        return True
