"""
RSS Util API Server

FastAPI application providing endpoints for:
- Collection storage (feeds, categories, read states, settings, articles,
  AI summaries, calendar events)
- Encrypted API key and feature flags
- Data mirror configuration and sync
- Feed fetching
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import config, state
from .feeds import FeedParser
from .migrations import run_migrations
from .mirror import MirrorSyncEngine
from .store import DocumentStore
from .tasks import refresh_all_feeds
from .vault import SecretVault
from .routes import (
    collections_router,
    settings_router,
    feeds_router,
    misc_router,
)

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    startup_fetch: asyncio.Task | None = None

    # Startup - skip if already initialized (e.g., by tests)
    if state.store is None:
        store = DocumentStore(config.DATA_DIR)
        try:
            store.ensure_data_dir()
        except OSError as e:
            logger.error(f"Error creating data directory: {e}")

        # Collections are trusted to have current shape only after this
        report = await run_migrations(store, config.APP_VERSION)
        if not report.success:
            logger.warning(f"Continuing with partially migrated data: {report.error}")
        state.schema_version = report.to_version

        state.store = store
        state.vault = SecretVault(config.DATA_DIR, config.install_path())
        state.mirror = MirrorSyncEngine(store, prune_orphans=config.MIRROR_PRUNE_ORPHANS)
        state.mirror.attach()
        state.feed_parser = FeedParser()

        if config.FETCH_ON_STARTUP:
            startup_fetch = asyncio.create_task(refresh_all_feeds())

    yield

    # Shutdown
    if startup_fetch and not startup_fetch.done():
        startup_fetch.cancel()
    if state.mirror:
        try:
            await state.mirror.drain()
        except Exception as e:
            logger.warning(f"Error finishing mirror sync: {e}")


app = FastAPI(
    title="RSS Util API",
    version=config.APP_VERSION,
    lifespan=lifespan
)

# Include routers
app.include_router(misc_router)
app.include_router(collections_router)
app.include_router(settings_router)
app.include_router(feeds_router)
