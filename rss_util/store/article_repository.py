"""
Article repository - one article set per feed.
"""

from typing import Any

from ..exceptions import InvalidCollectionName
from .collections import articles_filename
from .document_store import DocumentStore, StoreResult


class ArticleRepository:
    """Repository for per-feed article sets."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get(self, feed_id: str) -> StoreResult:
        try:
            filename = articles_filename(feed_id)
        except InvalidCollectionName as e:
            return StoreResult.fail(str(e))
        return await self._store.read(filename)

    async def save(self, feed_id: str, article_set: dict[str, Any]) -> StoreResult:
        """Persist an article set. The stored feedId is always feed_id."""
        try:
            filename = articles_filename(feed_id)
        except InvalidCollectionName as e:
            return StoreResult.fail(str(e))
        return await self._store.write(filename, article_set)

    async def feed_ids(self) -> list[str]:
        return await self._store.list_article_feed_ids()
