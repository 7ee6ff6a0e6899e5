"""Dashboard statistics, refetched lazily after tag or bookmark changes."""

import logging

from .client import VaultClient
from .errors import TransportError
from .models import Statistics
from .notifier import BOOKMARKS_CHANGED, TAG_UPDATED, Notifier

logger = logging.getLogger(__name__)


class StatisticsPanel:
    def __init__(self, client: VaultClient, notifier: Notifier):
        self._client = client
        self._stats: Statistics | None = None
        self.stale = True
        self._subscriptions = [
            notifier.subscribe(TAG_UPDATED, self._invalidate),
            notifier.subscribe(BOOKMARKS_CHANGED, self._invalidate),
        ]

    def _invalidate(self, _payload=None) -> None:
        self.stale = True

    async def current(self) -> Statistics | None:
        """Return statistics, fetching them first if anything changed since."""
        if self.stale or self._stats is None:
            await self.refresh()
        return self._stats

    async def refresh(self) -> Statistics | None:
        try:
            self._stats = await self._client.get_statistics()
        except TransportError as e:
            logger.error("Failed to load statistics: %s", e)
            return self._stats
        self.stale = False
        return self._stats

    def close(self) -> None:
        for sub in self._subscriptions:
            sub.cancel()
