"""
Calendar repository - events extracted from articles.
"""

from .collections import CALENDAR_EVENTS_FILE
from .document_store import DocumentStore, StoreResult


class CalendarRepository:
    """Repository for the calendar event set."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get(self) -> StoreResult:
        return await self._store.read(CALENDAR_EVENTS_FILE)

    async def save(self, event_set: dict) -> StoreResult:
        return await self._store.write(CALENDAR_EVENTS_FILE, event_set)

    async def delete_event(self, event_id: str) -> StoreResult:
        """Remove one event; the whole set is rewritten."""
        def mutate(event_set):
            if not isinstance(event_set, dict):
                raise ValueError("calendar-events collection is not an object")
            events = event_set.get("events")
            if not isinstance(events, list):
                events = []
            event_set["events"] = [
                e for e in events
                if not (isinstance(e, dict) and e.get("id") == event_id)
            ]
            return event_set

        return await self._store.update(CALENDAR_EVENTS_FILE, mutate)
