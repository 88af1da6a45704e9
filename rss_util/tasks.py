"""
Background tasks for feed fetching.
"""

import asyncio
import logging

from .config import state
from .store import ArticleRepository, FeedRepository
from .store.converters import utc_now_iso

logger = logging.getLogger(__name__)


async def refresh_feed(feed: dict) -> bool:
    """
    Fetch one feed, store its articles and record the outcome on the feed.

    Returns True on success.
    """
    if not state.store or not state.feed_parser:
        return False

    feeds = FeedRepository(state.store)
    articles = ArticleRepository(state.store)
    feed_id = str(feed.get("id"))

    try:
        fetched = await state.feed_parser.fetch(feed["url"])
    except Exception as e:
        logger.error(f"Error fetching feed {feed_id}: {e}")
        await feeds.set_status(feed_id, "error")
        return False

    saved = await articles.save(feed_id, {
        "lastFetched": utc_now_iso(),
        "articles": fetched.articles,
    })
    if not saved.success:
        logger.error(f"Error saving articles for feed {feed_id}: {saved.error}")
        await feeds.set_status(feed_id, "error")
        return False

    await feeds.set_status(feed_id, "healthy", touch=True)
    return True


async def refresh_all_feeds():
    """Background task to refresh every feed concurrently."""
    if not state.store or not state.feed_parser:
        return

    result = await FeedRepository(state.store).get_all()
    if not result.success:
        logger.error(f"Error reading feeds for refresh: {result.error}")
        return

    feed_list = [
        f for f in result.data
        if isinstance(f, dict) and f.get("id") is not None and f.get("url")
    ] if isinstance(result.data, list) else []
    if not feed_list:
        return

    state.refresh_in_progress = True
    try:
        outcomes = await asyncio.gather(*(refresh_feed(f) for f in feed_list))
        logger.info(f"Refreshed {sum(outcomes)}/{len(feed_list)} feeds")
    finally:
        state.refresh_in_progress = False
