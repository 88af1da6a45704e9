"""
Feed routes: fetch a feed URL and refresh subscribed feeds.
"""

from fastapi import APIRouter, BackgroundTasks

from ..config import state
from ..schemas import FetchFeedRequest, StoreResponse
from ..tasks import refresh_all_feeds

router = APIRouter(prefix="/feeds", tags=["feeds"])


@router.post("/fetch")
async def fetch_feed(request: FetchFeedRequest) -> StoreResponse:
    """Fetch and parse a feed without storing it."""
    if not state.feed_parser:
        return StoreResponse(success=False, error="Feed parser not initialized")

    try:
        feed = await state.feed_parser.fetch(request.url)
    except Exception as e:
        return StoreResponse(success=False, error=str(e) or "Failed to fetch feed")

    return StoreResponse(success=True, data=feed.to_dict())


@router.post("/refresh")
async def refresh_feeds(background_tasks: BackgroundTasks) -> StoreResponse:
    """Refresh all feeds in the background."""
    if state.refresh_in_progress:
        return StoreResponse(success=True, data={"started": False})

    background_tasks.add_task(refresh_all_feeds)
    return StoreResponse(success=True, data={"started": True})
