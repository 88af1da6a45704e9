"""
Document store - collection-addressed JSON persistence.

One file per collection under the data root. Writes to the same collection
are serialized with a per-collection lock; writes to different collections
run in parallel. Every committed write notifies the registered listeners
(the mirror engine) without waiting for them.
"""

import asyncio
import copy
import json
import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from ..exceptions import CollectionReadError, CollectionWriteError, StoreError
from .collections import (
    ARTICLES_PREFIX,
    JSON_SUFFIX,
    CollectionKind,
    default_value,
    feed_id_from_filename,
    is_store_file,
    kind_of,
    validate_filename,
)

logger = logging.getLogger(__name__)

WriteListener = Callable[[str], None]


@dataclass
class StoreResult:
    """Result of a store operation."""
    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "StoreResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "StoreResult":
        return cls(success=False, error=error)


def _serialize(data: Any) -> str:
    """Serialize to JSON text before anything touches disk."""
    try:
        return json.dumps(data, indent=2, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise CollectionWriteError(f"Value is not JSON-serializable: {e}") from e


def _stamp_feed_id(filename: str, data: Any) -> Any:
    """Article sets always carry the feed id of the file they live in."""
    if kind_of(filename) is not CollectionKind.ARTICLES:
        return data
    if not isinstance(data, dict):
        raise CollectionWriteError("Article set must be a JSON object")
    return {**data, "feedId": feed_id_from_filename(filename)}


class DocumentStore:
    """Durable JSON persistence for named collections."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._locks: dict[str, asyncio.Lock] = {}
        self._listeners: list[WriteListener] = []

    def ensure_data_dir(self):
        """Create the data directory if needed."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        return self.data_dir / validate_filename(filename)

    # ─────────────────────────────────────────────────────────────
    # Listeners
    # ─────────────────────────────────────────────────────────────

    def add_listener(self, listener: WriteListener):
        """Register a callback run after every committed write."""
        self._listeners.append(listener)

    def remove_listener(self, listener: WriteListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, filename: str):
        for listener in list(self._listeners):
            try:
                listener(filename)
            except Exception as e:
                logger.error(f"Write listener failed for {filename}: {e}")

    def lock_for(self, filename: str) -> asyncio.Lock:
        lock = self._locks.get(filename)
        if lock is None:
            lock = self._locks[filename] = asyncio.Lock()
        return lock

    # ─────────────────────────────────────────────────────────────
    # Blocking file operations (run in the default executor)
    # ─────────────────────────────────────────────────────────────

    def _load_sync(self, filename: str) -> Any:
        path = self.path_for(filename)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return default_value(filename)
        except OSError as e:
            raise CollectionReadError(f"Failed to read {filename}: {e}") from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CollectionReadError(f"Failed to parse {filename}: {e}") from e

    def _persist_sync(self, filename: str, text: str):
        path = self.path_for(filename)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise CollectionWriteError(f"Failed to write {filename}: {e}") from e

    async def _run(self, func: Callable, *args) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def read(self, filename: str) -> StoreResult:
        """
        Load a collection.

        A collection that was never written yields its default value.
        """
        try:
            data = await self._run(self._load_sync, filename)
        except StoreError as e:
            logger.error(f"Error reading {filename}: {e}")
            return StoreResult.fail(str(e))
        return StoreResult.ok(data)

    async def write(self, filename: str, data: Any, notify: bool = True) -> StoreResult:
        """
        Replace a collection's contents.

        The value is serialized in memory first, so a bad value never
        touches the previous file. On success a mirror sync is scheduled
        unless notify is False.
        """
        try:
            validate_filename(filename)
            data = _stamp_feed_id(filename, data)
            text = _serialize(data)
            async with self.lock_for(filename):
                await self._run(self._persist_sync, filename, text)
        except StoreError as e:
            logger.error(f"Error writing {filename}: {e}")
            return StoreResult.fail(str(e))

        if notify:
            self._notify(filename)
        return StoreResult.ok()

    async def update(
        self,
        filename: str,
        mutate: Callable[[Any], Any],
        notify: bool = True,
    ) -> StoreResult:
        """
        Read-modify-write a collection under its lock.

        mutate receives a private copy of the current value and returns the
        new value. The result carries the value that was written.
        """
        try:
            validate_filename(filename)
            async with self.lock_for(filename):
                current = await self._run(self._load_sync, filename)
                try:
                    updated = mutate(copy.deepcopy(current))
                except (TypeError, ValueError, KeyError, AttributeError) as e:
                    raise CollectionWriteError(f"Cannot update {filename}: {e}") from e
                updated = _stamp_feed_id(filename, updated)
                text = _serialize(updated)
                await self._run(self._persist_sync, filename, text)
        except StoreError as e:
            logger.error(f"Error updating {filename}: {e}")
            return StoreResult.fail(str(e))

        if notify:
            self._notify(filename)
        return StoreResult.ok(updated)

    def _list_sync(self) -> list[str]:
        if not self.data_dir.is_dir():
            return []
        return sorted(
            p.name for p in self.data_dir.iterdir()
            if p.is_file() and p.name.endswith(JSON_SUFFIX) and not p.name.startswith(".")
        )

    async def list_collections(self) -> list[str]:
        """File names of every persisted collection the store recognizes."""
        names = await self._run(self._list_sync)
        return [name for name in names if is_store_file(name)]

    async def list_article_feed_ids(self) -> list[str]:
        """Feed ids that have a persisted article set."""
        names = await self._run(self._list_sync)
        return [
            feed_id_from_filename(name) for name in names
            if name.startswith(ARTICLES_PREFIX) and feed_id_from_filename(name)
        ]

    async def exists(self, filename: str) -> bool:
        path = self.path_for(filename)
        return await self._run(path.is_file)
