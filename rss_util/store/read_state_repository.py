"""
Read state repository - article id -> {read, readAt}.

Absence of an article id means unread.
"""

from .collections import READ_STATES_FILE
from .converters import utc_now_iso
from .document_store import DocumentStore, StoreResult


class ReadStateRepository:
    """Repository for per-article read states."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_all(self) -> StoreResult:
        return await self._store.read(READ_STATES_FILE)

    async def save_all(self, read_states: dict) -> StoreResult:
        return await self._store.write(READ_STATES_FILE, read_states)

    async def mark(self, article_id: str, read: bool = True) -> StoreResult:
        """Set one article's read flag without clobbering concurrent marks."""
        def mutate(states):
            if not isinstance(states, dict):
                raise ValueError("read-states collection is not an object")
            states[article_id] = {
                "read": read,
                "readAt": utc_now_iso() if read else None,
            }
            return states

        return await self._store.update(READ_STATES_FILE, mutate)
