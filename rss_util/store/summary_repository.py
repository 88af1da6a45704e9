"""
AI summary repository - article id -> {summary, footnotes, generatedAt}.
"""

from typing import Any

from .collections import AI_SUMMARIES_FILE
from .converters import utc_now_iso
from .document_store import DocumentStore, StoreResult


class SummaryRepository:
    """Repository for generated article summaries."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_all(self) -> StoreResult:
        return await self._store.read(AI_SUMMARIES_FILE)

    async def get(self, article_id: str) -> StoreResult:
        """Summary for one article, or None when none was generated."""
        result = await self._store.read(AI_SUMMARIES_FILE)
        if not result.success:
            return result
        summaries = result.data if isinstance(result.data, dict) else {}
        return StoreResult.ok(summaries.get(article_id))

    async def save(self, article_id: str, summary: dict[str, Any]) -> StoreResult:
        entry = dict(summary)
        entry.setdefault("footnotes", [])
        entry.setdefault("generatedAt", utc_now_iso())

        def mutate(summaries):
            if not isinstance(summaries, dict):
                raise ValueError("ai-summaries collection is not an object")
            summaries[article_id] = entry
            return summaries

        result = await self._store.update(AI_SUMMARIES_FILE, mutate)
        return StoreResult.ok(entry) if result.success else result

    async def delete(self, article_id: str) -> StoreResult:
        def mutate(summaries):
            if not isinstance(summaries, dict):
                raise ValueError("ai-summaries collection is not an object")
            summaries.pop(article_id, None)
            return summaries

        return await self._store.update(AI_SUMMARIES_FILE, mutate)
