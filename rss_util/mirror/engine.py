"""
Mirror Sync Engine - keeps a user-chosen directory in step with the store.

Every committed store write schedules a full pass. Triggers that arrive
while a pass is running collapse into one pending pass, so a burst of writes
costs at most two passes. Each pass re-reads the mirror settings, then
regenerates the mirror from scratch:

    raw mode         <mirror>/<collection>.json, verbatim copies
    structured mode  <mirror>/feeds/<title>.md
                     <mirror>/categories/<name>.md
                     <mirror>/articles/<feed title>/<article title>.md
                     <mirror>/calendar/<YYYY-MM|no-date>/<title>.md

Item failures are logged and counted; the pass keeps going.
"""

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import MirrorError
from ..store import ArticleRepository, DocumentStore, SettingsRepository
from ..store.collections import (
    CALENDAR_EVENTS_FILE,
    CATEGORIES_FILE,
    FEEDS_FILE,
    JSON_SUFFIX,
    is_store_file,
)
from ..store.converters import as_list, as_text
from .render import (
    display_title,
    event_folder,
    render_article,
    render_category,
    render_event,
    render_feed,
)
from .text import sanitize_filename, unique_name

logger = logging.getLogger(__name__)

FEEDS_DIR = "feeds"
CATEGORIES_DIR = "categories"
ARTICLES_DIR = "articles"
CALENDAR_DIR = "calendar"
MANAGED_DIRS = (FEEDS_DIR, CATEGORIES_DIR, ARTICLES_DIR, CALENDAR_DIR)
MARKDOWN_SUFFIX = ".md"

MODE_RAW = "raw"
MODE_STRUCTURED = "structured"


@dataclass
class MirrorSyncResult:
    """Outcome of one mirror pass."""
    success: bool
    skipped: bool = False
    mode: str | None = None
    written: int = 0
    failed: int = 0
    removed: int = 0
    errors: list[str] = field(default_factory=list)
    message: str | None = None


@dataclass
class _Plan:
    """Files a structured pass intends to produce."""
    files: dict[Path, str] = field(default_factory=dict)
    taken: dict[Path, set[str]] = field(default_factory=dict)
    # Managed directories whose source could not be read; never pruned
    unreadable: set[str] = field(default_factory=set)
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def add(self, directory: Path, display_name: str, text: str) -> Path:
        taken = self.taken.setdefault(directory, set())
        name = unique_name(sanitize_filename(display_name), taken)
        path = directory / f"{name}{MARKDOWN_SUFFIX}"
        self.files[path] = text
        return path

    def folder(self, parent: Path, display_name: str) -> Path:
        taken = self.taken.setdefault(parent, set())
        return parent / unique_name(sanitize_filename(display_name), taken)

    def fail(self, message: str):
        logger.warning(f"Mirror item skipped: {message}")
        self.failed += 1
        self.errors.append(message)


def _lookup_key(value):
    """Scalar ids usable as dict keys; anything else has no key."""
    if isinstance(value, (str, int, float)):
        return value
    return None


def _check_mirror_dir(mirror_dir: Path, data_dir: Path):
    mirror = mirror_dir.resolve()
    data = data_dir.resolve()
    if mirror == data or data in mirror.parents:
        raise MirrorError("Mirror directory must be outside the data directory")


class MirrorSyncEngine:
    """Regenerates the data mirror after store writes."""

    def __init__(self, store: DocumentStore, prune_orphans: bool = True):
        self.store = store
        self.settings = SettingsRepository(store)
        self.articles = ArticleRepository(store)
        self.prune_orphans = prune_orphans
        self.last_result: MirrorSyncResult | None = None
        self._task: asyncio.Task | None = None
        self._pending = False
        self._pass_lock = asyncio.Lock()

    # ─────────────────────────────────────────────────────────────
    # Scheduling
    # ─────────────────────────────────────────────────────────────

    def attach(self):
        """Start mirroring after every store write."""
        self.store.add_listener(self.on_write)

    def detach(self):
        self.store.remove_listener(self.on_write)

    def on_write(self, filename: str):
        logger.debug(f"Mirror sync triggered by write to {filename}")
        self.schedule()

    def schedule(self):
        """Request a pass without waiting for it."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; mirror sync not scheduled")
            return

        if self._task is not None and not self._task.done():
            self._pending = True
            return
        self._task = loop.create_task(self._run_scheduled())

    async def _run_scheduled(self):
        while True:
            self._pending = False
            try:
                await self.sync()
            except Exception as e:
                logger.exception(f"Mirror sync crashed: {e}")
            if not self._pending:
                break

    async def drain(self):
        """Wait until no scheduled pass is running or pending."""
        while self._task is not None and not self._task.done():
            await self._task

    async def sync_now(self) -> MirrorSyncResult:
        """Run a pass immediately (explicit sync request)."""
        return await self.sync()

    # ─────────────────────────────────────────────────────────────
    # Pass
    # ─────────────────────────────────────────────────────────────

    async def sync(self) -> MirrorSyncResult:
        """Run one full pass. Never raises."""
        async with self._pass_lock:
            try:
                result = await self._sync_pass()
            except MirrorError as e:
                logger.error(f"Mirror sync failed: {e}")
                result = MirrorSyncResult(success=False, message=str(e), errors=[str(e)])
            except Exception as e:
                logger.exception(f"Mirror sync crashed: {e}")
                message = f"Mirror sync failed: {e}"
                result = MirrorSyncResult(success=False, message=message, errors=[message])
            self.last_result = result
            return result

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def _sync_pass(self) -> MirrorSyncResult:
        settings_result = await self.settings.get_mirror_settings()
        if not settings_result.success:
            raise MirrorError(f"Cannot read settings: {settings_result.error}")
        mirror_settings = settings_result.data

        if not mirror_settings.enabled or not mirror_settings.directory:
            return MirrorSyncResult(
                success=True,
                skipped=True,
                message="Data mirror is disabled or no directory is configured",
            )

        mirror_dir = Path(mirror_settings.directory).expanduser()
        _check_mirror_dir(mirror_dir, self.store.data_dir)
        try:
            await self._run(lambda: mirror_dir.mkdir(parents=True, exist_ok=True))
        except OSError as e:
            raise MirrorError(f"Cannot create mirror directory {mirror_dir}: {e}") from e

        mode = MODE_STRUCTURED if mirror_settings.structured else MODE_RAW
        logger.info(f"Mirror sync started ({mode}) -> {mirror_dir}")
        if mirror_settings.structured:
            result = await self._sync_structured(mirror_dir)
        else:
            result = await self._sync_raw(mirror_dir)

        logger.info(
            f"Mirror sync finished ({mode}): {result.written} written, "
            f"{result.failed} failed, {result.removed} removed"
        )
        return result

    # ─────────────────────────────────────────────────────────────
    # Raw mode
    # ─────────────────────────────────────────────────────────────

    def _copy_raw_sync(self, mirror_dir: Path, names: list[str]) -> MirrorSyncResult:
        result = MirrorSyncResult(success=True, mode=MODE_RAW)
        for name in names:
            try:
                shutil.copyfile(self.store.data_dir / name, mirror_dir / name)
                result.written += 1
            except OSError as e:
                logger.warning(f"Failed to mirror {name}: {e}")
                result.failed += 1
                result.errors.append(f"{name}: {e}")

        if self.prune_orphans:
            keep = set(names)
            for path in mirror_dir.iterdir():
                if (
                    path.is_file()
                    and path.name.endswith(JSON_SUFFIX)
                    and is_store_file(path.name)
                    and path.name not in keep
                ):
                    try:
                        path.unlink()
                        result.removed += 1
                    except OSError as e:
                        logger.warning(f"Failed to remove stale mirror file {path}: {e}")
        return result

    async def _sync_raw(self, mirror_dir: Path) -> MirrorSyncResult:
        names = await self.store.list_collections()
        result = await self._run(self._copy_raw_sync, mirror_dir, names)
        result.success = result.failed == 0
        return result

    # ─────────────────────────────────────────────────────────────
    # Structured mode
    # ─────────────────────────────────────────────────────────────

    async def _read_list(self, filename: str, key: str | None, plan: _Plan, directory: str) -> list:
        result = await self.store.read(filename)
        if not result.success:
            plan.unreadable.add(directory)
            plan.fail(f"{filename}: {result.error}")
            return []
        data = result.data
        if key is not None:
            data = data.get(key) if isinstance(data, dict) else None
        if not isinstance(data, list):
            plan.unreadable.add(directory)
            plan.fail(f"{filename}: unexpected shape")
            return []
        return data

    async def _plan_structured(self, mirror_dir: Path) -> _Plan:
        plan = _Plan()

        feeds = await self._read_list(FEEDS_FILE, None, plan, FEEDS_DIR)
        categories = await self._read_list(CATEGORIES_FILE, None, plan, CATEGORIES_DIR)
        events = await self._read_list(CALENDAR_EVENTS_FILE, "events", plan, CALENDAR_DIR)

        category_names = {}
        for category in categories:
            key = _lookup_key(category.get("id")) if isinstance(category, dict) else None
            if key is not None:
                category_names.setdefault(key, display_title(category, key="name"))

        feeds_dir = mirror_dir / FEEDS_DIR
        for feed in feeds:
            try:
                text = render_feed(feed, category_names.get(_lookup_key(feed.get("category"))))
                plan.add(feeds_dir, display_title(feed), text)
            except Exception as e:
                plan.fail(f"feed {feed.get('id') if isinstance(feed, dict) else feed!r}: {e}")

        categories_dir = mirror_dir / CATEGORIES_DIR
        for category in categories:
            try:
                text = render_category(category, feeds)
                plan.add(categories_dir, display_title(category, key="name"), text)
            except Exception as e:
                plan.fail(f"category {category.get('id') if isinstance(category, dict) else category!r}: {e}")

        calendar_dir = mirror_dir / CALENDAR_DIR
        for event in events:
            try:
                text = render_event(event)
                plan.add(calendar_dir / event_folder(event), display_title(event), text)
            except Exception as e:
                plan.fail(f"event {event.get('id') if isinstance(event, dict) else event!r}: {e}")

        await self._plan_articles(mirror_dir / ARTICLES_DIR, feeds, plan)
        return plan

    async def _plan_articles(self, articles_dir: Path, feeds: list, plan: _Plan):
        feed_titles: dict[str, str] = {}
        ordered_ids: list[str] = []
        for feed in feeds:
            if isinstance(feed, dict) and feed.get("id") is not None:
                feed_id = as_text(feed.get("id"))
                feed_titles.setdefault(feed_id, display_title(feed))
                ordered_ids.append(feed_id)

        stored_ids = await self.articles.feed_ids()
        # Feeds in list order first, then article sets for feeds no longer listed
        feed_ids = [f for f in ordered_ids if f in stored_ids]
        feed_ids += [f for f in stored_ids if f not in feed_titles]

        for feed_id in feed_ids:
            result = await self.articles.get(feed_id)
            if not result.success or not isinstance(result.data, dict):
                plan.unreadable.add(ARTICLES_DIR)
                plan.fail(f"articles for {feed_id}: {result.error or 'unexpected shape'}")
                continue

            feed_title = feed_titles.get(feed_id, feed_id)
            folder = plan.folder(articles_dir, feed_title)
            for article in as_list(result.data.get("articles")):
                try:
                    text = render_article(article, feed_title, feed_id)
                    plan.add(folder, display_title(article), text)
                except Exception as e:
                    article_id = article.get("id") if isinstance(article, dict) else article
                    plan.fail(f"article {article_id!r} in {feed_id}: {e}")

    def _write_plan_sync(self, mirror_dir: Path, plan: _Plan) -> MirrorSyncResult:
        result = MirrorSyncResult(
            success=True,
            mode=MODE_STRUCTURED,
            failed=plan.failed,
            errors=list(plan.errors),
        )
        for path, text in plan.files.items():
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(text, encoding="utf-8")
                result.written += 1
            except OSError as e:
                logger.warning(f"Failed to write mirror file {path}: {e}")
                result.failed += 1
                result.errors.append(f"{path.relative_to(mirror_dir)}: {e}")

        if self.prune_orphans:
            keep = set(plan.files)
            for directory in MANAGED_DIRS:
                if directory not in plan.unreadable:
                    result.removed += self._prune_sync(mirror_dir / directory, keep)
        return result

    def _prune_sync(self, root: Path, keep: set[Path]) -> int:
        """Delete markdown files under root that the pass did not produce."""
        if not root.is_dir():
            return 0
        removed = 0
        for dirpath, _dirnames, filenames in os.walk(root, topdown=False):
            current = Path(dirpath)
            for filename in filenames:
                path = current / filename
                if filename.endswith(MARKDOWN_SUFFIX) and path not in keep:
                    try:
                        path.unlink()
                        removed += 1
                    except OSError as e:
                        logger.warning(f"Failed to remove stale mirror file {path}: {e}")
            try:
                if not any(current.iterdir()):
                    current.rmdir()
            except OSError:
                logger.debug(f"Could not remove mirror directory {current}")
        return removed

    async def _sync_structured(self, mirror_dir: Path) -> MirrorSyncResult:
        plan = await self._plan_structured(mirror_dir)
        result = await self._run(self._write_plan_sync, mirror_dir, plan)
        result.success = result.failed == 0
        return result
