"""
Schema Migrations - bring a data directory up to the running app version.

Each migration is tagged with the app version that introduced its data shape.
At startup every migration newer than the stored schema version and not newer
than the running version is applied in ascending order. The marker in
schema-version.json advances after each successful step.

A failed step is logged and reported; startup continues with whatever was
migrated so far, and the next boot retries from the last good version.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from .exceptions import MigrationError
from .store import DocumentStore
from .store.collections import (
    FEEDS_FILE,
    READ_STATES_FILE,
    SCHEMA_VERSION_FILE,
    SETTINGS_FILE,
    articles_filename,
)
from .store.feed_repository import FEED_STATUSES
from .store.settings_repository import FEATURE_FLAGS_KEY

logger = logging.getLogger(__name__)

BASE_VERSION = "0.0.0"


def parse_version(version: str) -> tuple[int, ...]:
    """
    Parse a dotted numeric version ("1.10.2") into a comparable tuple.

    Raises:
        ValueError: If the version is not dotted integers
    """
    parts = tuple(int(p) for p in str(version).strip().lstrip("v").split("."))
    if not parts or any(p < 0 for p in parts):
        raise ValueError(f"Invalid version: {version!r}")
    # Pad so "1.2" == "1.2.0"
    return parts + (0,) * max(0, 3 - len(parts))


@dataclass
class Migration:
    """A single schema migration step."""
    version: str
    description: str
    apply: Callable[[DocumentStore], Awaitable[None]]


@dataclass
class MigrationReport:
    """Outcome of a migration run."""
    success: bool
    from_version: str
    to_version: str
    applied: list[str] = field(default_factory=list)
    error: str | None = None


async def _rewrite(store: DocumentStore, filename: str, mutate: Callable[[Any], Any]):
    """Rewrite an existing collection in place; missing collections are left alone."""
    if not await store.exists(filename):
        return
    result = await store.update(filename, mutate, notify=False)
    if not result.success:
        raise MigrationError(result.error or f"Failed to migrate {filename}")


# ─────────────────────────────────────────────────────────────
# Migration steps (each must tolerate re-application)
# ─────────────────────────────────────────────────────────────

async def normalize_feeds(store: DocumentStore):
    """Give every feed a valid status and an explicit category."""
    def mutate(feeds):
        if not isinstance(feeds, list):
            raise ValueError("feeds collection is not a list")
        for feed in feeds:
            if not isinstance(feed, dict):
                continue
            if "status" not in feed:
                feed["status"] = "healthy"
            elif feed["status"] not in FEED_STATUSES:
                feed["status"] = "error"
            feed.setdefault("category", None)
        return feeds

    await _rewrite(store, FEEDS_FILE, mutate)


LEGACY_FLAG_KEYS = ("aiArticleSummary", "dataMirror")


async def move_feature_flags(store: DocumentStore):
    """Move top-level boolean feature toggles into the featureFlags map."""
    def mutate(settings):
        if not isinstance(settings, dict):
            raise ValueError("settings collection is not an object")
        flags = settings.get(FEATURE_FLAGS_KEY)
        if not isinstance(flags, dict):
            flags = {}
        for key in LEGACY_FLAG_KEYS:
            if isinstance(settings.get(key), bool):
                flags.setdefault(key, settings.pop(key))
        settings[FEATURE_FLAGS_KEY] = flags
        return settings

    await _rewrite(store, SETTINGS_FILE, mutate)


async def expand_read_states(store: DocumentStore):
    """Turn bare boolean read states into {read, readAt} records."""
    def mutate(states):
        if not isinstance(states, dict):
            raise ValueError("read-states collection is not an object")
        for article_id, value in list(states.items()):
            if isinstance(value, bool):
                states[article_id] = {"read": value, "readAt": None}
        return states

    await _rewrite(store, READ_STATES_FILE, mutate)


async def repair_article_sets(store: DocumentStore):
    """Force every article set into {feedId, lastFetched, articles: [...]}."""
    def mutate(article_set):
        if isinstance(article_set, list):
            article_set = {"lastFetched": None, "articles": article_set}
        elif not isinstance(article_set, dict):
            article_set = {"lastFetched": None, "articles": []}
        if not isinstance(article_set.get("articles"), list):
            article_set["articles"] = []
        article_set.setdefault("lastFetched", None)
        # feedId is stamped by the store from the file name
        return article_set

    for feed_id in await store.list_article_feed_ids():
        await _rewrite(store, articles_filename(feed_id), mutate)


MIGRATIONS: list[Migration] = [
    Migration("1.1.0", "Normalize feed status and category", normalize_feeds),
    Migration("1.2.0", "Move feature flags into featureFlags", move_feature_flags),
    Migration("1.3.0", "Expand boolean read states", expand_read_states),
    Migration("1.4.0", "Repair article set shape", repair_article_sets),
]


class MigrationRunner:
    """Applies pending migrations once per version transition."""

    def __init__(
        self,
        store: DocumentStore,
        target_version: str,
        migrations: list[Migration] | None = None,
    ):
        self.store = store
        self.target_version = target_version
        self.migrations = sorted(
            MIGRATIONS if migrations is None else migrations,
            key=lambda m: parse_version(m.version),
        )

    async def read_version(self) -> str | None:
        """Stored schema version, or None when no marker exists or it is unreadable."""
        result = await self.store.read(SCHEMA_VERSION_FILE)
        if not result.success:
            logger.warning(f"Schema version marker unreadable: {result.error}")
            return None
        version = result.data
        if not isinstance(version, str):
            return None
        try:
            parse_version(version)
        except ValueError:
            logger.warning(f"Ignoring invalid schema version marker: {version!r}")
            return None
        return version

    async def _write_version(self, version: str):
        result = await self.store.write(SCHEMA_VERSION_FILE, version, notify=False)
        if not result.success:
            raise MigrationError(f"Failed to record schema version {version}: {result.error}")

    def pending(self, stored_version: str) -> list[Migration]:
        current = parse_version(stored_version)
        target = parse_version(self.target_version)
        return [
            m for m in self.migrations
            if current < parse_version(m.version) <= target
        ]

    async def run(self) -> MigrationReport:
        """
        Run pending migrations.

        Never raises: failures are logged and reflected in the report.
        """
        stored = await self.read_version() or BASE_VERSION
        report = MigrationReport(success=True, from_version=stored, to_version=stored)

        try:
            target = parse_version(self.target_version)
        except ValueError as e:
            logger.error(f"Cannot migrate: {e}")
            report.success = False
            report.error = str(e)
            return report

        if parse_version(stored) >= target:
            logger.debug(f"Schema version {stored} is current")
            return report

        for migration in self.pending(stored):
            logger.info(f"Applying migration {migration.version}: {migration.description}")
            try:
                await migration.apply(self.store)
                await self._write_version(migration.version)
            except Exception as e:
                logger.exception(f"Migration {migration.version} failed: {e}")
                report.success = False
                report.error = f"Migration {migration.version} failed: {e}"
                return report
            report.applied.append(migration.version)
            report.to_version = migration.version

        try:
            await self._write_version(self.target_version)
        except MigrationError as e:
            logger.error(str(e))
            report.success = False
            report.error = str(e)
            return report

        report.to_version = self.target_version
        logger.info(
            f"Schema migrated from {report.from_version} to {report.to_version} "
            f"({len(report.applied)} steps)"
        )
        return report


async def run_migrations(store: DocumentStore, app_version: str) -> MigrationReport:
    """Run migrations at startup."""
    return await MigrationRunner(store, app_version).run()
