"""
Collection routes: generic JSON files and the specialized collections.
"""

from typing import Any

from fastapi import APIRouter, Body

from ..schemas import (
    AISummary,
    ArticleSet,
    CalendarEventSet,
    Category,
    Feed,
    MarkReadRequest,
    StoreResponse,
    dump,
)
from ..store.collections import CollectionKind, kind_of
from .deps import (
    ArticleRepoDep,
    CalendarRepoDep,
    CategoryRepoDep,
    FeedRepoDep,
    ReadStateRepoDep,
    SettingsRepoDep,
    StoreDep,
    SummaryRepoDep,
)

router = APIRouter(tags=["collections"])


# ─────────────────────────────────────────────────────────────
# Generic JSON files
# ─────────────────────────────────────────────────────────────

@router.get("/json/{filename}")
async def read_json(filename: str, store: StoreDep) -> StoreResponse:
    """Read any collection file by name."""
    return StoreResponse.from_result(await store.read(filename))


@router.put("/json/{filename}")
async def write_json(filename: str, store: StoreDep, data: Any = Body(...)) -> StoreResponse:
    """Replace any collection file by name. The schema version marker is read-only."""
    if kind_of(filename) is CollectionKind.SCHEMA_VERSION:
        return StoreResponse(success=False, error=f"{filename} is managed by migrations")
    return StoreResponse.from_result(await store.write(filename, data))


# ─────────────────────────────────────────────────────────────
# Feeds & categories
# ─────────────────────────────────────────────────────────────

@router.get("/feeds")
async def read_feeds(feeds: FeedRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await feeds.get_all())


@router.put("/feeds")
async def write_feeds(request: list[Feed], feeds: FeedRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await feeds.save_all([dump(f) for f in request]))


@router.get("/categories")
async def read_categories(categories: CategoryRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await categories.get_all())


@router.put("/categories")
async def write_categories(request: list[Category], categories: CategoryRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await categories.save_all([dump(c) for c in request]))


# ─────────────────────────────────────────────────────────────
# Read states
# ─────────────────────────────────────────────────────────────

@router.get("/read-states")
async def read_read_states(read_states: ReadStateRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await read_states.get_all())


@router.put("/read-states")
async def write_read_states(
    request: dict[str, Any],
    read_states: ReadStateRepoDep
) -> StoreResponse:
    return StoreResponse.from_result(await read_states.save_all(request))


@router.put("/read-states/{article_id:path}")
async def mark_read_state(
    article_id: str,
    request: MarkReadRequest,
    read_states: ReadStateRepoDep
) -> StoreResponse:
    """Mark one article read or unread."""
    return StoreResponse.from_result(await read_states.mark(article_id, request.read))


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────

@router.get("/settings")
async def read_settings(settings: SettingsRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await settings.get_all())


@router.put("/settings")
async def write_settings(request: dict[str, Any], settings: SettingsRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await settings.save_all(request))


# ─────────────────────────────────────────────────────────────
# Articles
# ─────────────────────────────────────────────────────────────

@router.get("/articles/{feed_id}")
async def read_articles(feed_id: str, articles: ArticleRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await articles.get(feed_id))


@router.put("/articles/{feed_id}")
async def write_articles(
    feed_id: str,
    request: ArticleSet,
    articles: ArticleRepoDep
) -> StoreResponse:
    """Store a feed's articles. The stored feedId always matches the path."""
    return StoreResponse.from_result(await articles.save(feed_id, dump(request)))


# ─────────────────────────────────────────────────────────────
# AI summaries
# ─────────────────────────────────────────────────────────────

@router.get("/ai-summaries/{article_id:path}")
async def read_ai_summary(article_id: str, summaries: SummaryRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await summaries.get(article_id))


@router.put("/ai-summaries/{article_id:path}")
async def write_ai_summary(
    article_id: str,
    request: AISummary,
    summaries: SummaryRepoDep
) -> StoreResponse:
    return StoreResponse.from_result(await summaries.save(article_id, dump(request)))


@router.delete("/ai-summaries/{article_id:path}")
async def delete_ai_summary(article_id: str, summaries: SummaryRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await summaries.delete(article_id))


# ─────────────────────────────────────────────────────────────
# Calendar events
# ─────────────────────────────────────────────────────────────

@router.get("/calendar-events")
async def read_calendar_events(calendar: CalendarRepoDep) -> StoreResponse:
    return StoreResponse.from_result(await calendar.get())


@router.put("/calendar-events")
async def write_calendar_events(
    request: CalendarEventSet,
    calendar: CalendarRepoDep
) -> StoreResponse:
    return StoreResponse.from_result(await calendar.save(dump(request)))


@router.delete("/calendar-events/{event_id}")
async def delete_calendar_event(event_id: str, calendar: CalendarRepoDep) -> StoreResponse:
    """Remove one event from the calendar set."""
    return StoreResponse.from_result(await calendar.delete_event(event_id))
