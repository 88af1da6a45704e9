"""
Feed and category repositories.
"""

from typing import Any

from .collections import CATEGORIES_FILE, FEEDS_FILE
from .converters import utc_now_iso
from .document_store import DocumentStore, StoreResult

FEED_STATUSES = ("healthy", "error")


class FeedRepository:
    """Repository for the feed list."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_all(self) -> StoreResult:
        return await self._store.read(FEEDS_FILE)

    async def save_all(self, feeds: list[dict[str, Any]]) -> StoreResult:
        return await self._store.write(FEEDS_FILE, feeds)

    async def set_status(
        self,
        feed_id: str,
        status: str,
        touch: bool = False,
    ) -> StoreResult:
        """
        Record the outcome of the last fetch for a feed.

        Args:
            feed_id: Feed to update
            status: "healthy" or "error"
            touch: Also stamp lastUpdated with the current time
        """
        if status not in FEED_STATUSES:
            return StoreResult.fail(f"Invalid feed status: {status}")

        def mutate(feeds):
            if not isinstance(feeds, list):
                raise ValueError("feeds collection is not a list")
            for feed in feeds:
                if isinstance(feed, dict) and feed.get("id") == feed_id:
                    feed["status"] = status
                    if touch:
                        feed["lastUpdated"] = utc_now_iso()
            return feeds

        return await self._store.update(FEEDS_FILE, mutate)


class CategoryRepository:
    """Repository for the flat category list."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_all(self) -> StoreResult:
        return await self._store.read(CATEGORIES_FILE)

    async def save_all(self, categories: list[dict[str, Any]]) -> StoreResult:
        return await self._store.write(CATEGORIES_FILE, categories)
