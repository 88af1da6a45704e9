"""
Tests for the document store: defaults, atomic writes, locking.
"""

import asyncio
import json

import pytest

from rss_util.store import (
    ArticleRepository,
    DocumentStore,
    FeedRepository,
    ReadStateRepository,
)
from rss_util.store.collections import (
    CollectionKind,
    articles_filename,
    default_value,
    kind_of,
    validate_filename,
)
from rss_util.exceptions import InvalidCollectionName


class TestCollectionNames:
    """Tests for collection naming helpers."""

    def test_kinds(self):
        assert kind_of("feeds.json") is CollectionKind.FEEDS
        assert kind_of("articles-f1.json") is CollectionKind.ARTICLES
        assert kind_of("notes.json") is CollectionKind.UNKNOWN

    def test_articles_filename(self):
        assert articles_filename("f1") == "articles-f1.json"

    @pytest.mark.parametrize("name", ["", "feeds", "../feeds.json", "a/b.json", ".hidden.json"])
    def test_rejects_unsafe_names(self, name):
        with pytest.raises(InvalidCollectionName):
            validate_filename(name)

    def test_defaults_are_fresh_copies(self):
        first = default_value("calendar-events.json")
        first["events"].append({"id": "e1"})
        assert default_value("calendar-events.json") == {"events": [], "lastExtraction": None}


class TestDocumentStore:
    """Tests for DocumentStore read/write."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename,expected", [
        ("feeds.json", []),
        ("categories.json", []),
        ("read-states.json", {}),
        ("settings.json", {}),
        ("ai-summaries.json", {}),
        ("calendar-events.json", {"events": [], "lastExtraction": None}),
        ("articles-f1.json", {"feedId": "f1", "lastFetched": None, "articles": []}),
        ("notes.json", None),
    ])
    async def test_missing_collection_reads_default(self, store, filename, expected):
        result = await store.read(filename)
        assert result.success
        assert result.data == expected

    @pytest.mark.asyncio
    async def test_write_then_read(self, store):
        feeds = [{"id": "f1", "title": "Démo", "url": "https://example.com/rss"}]
        result = await store.write("feeds.json", feeds)
        assert result.success

        result = await store.read("feeds.json")
        assert result.data == feeds

        # Human-readable on disk
        text = (store.data_dir / "feeds.json").read_text(encoding="utf-8")
        assert "Démo" in text
        assert "\n  " in text

    @pytest.mark.asyncio
    async def test_invalid_name_fails(self, store):
        result = await store.write("notes.txt", {"a": 1})
        assert not result.success
        assert "Invalid collection name" in result.error

    @pytest.mark.asyncio
    async def test_corrupt_file_is_an_error(self, store):
        (store.data_dir / "feeds.json").write_text("{not json", encoding="utf-8")
        result = await store.read("feeds.json")
        assert not result.success
        assert "feeds.json" in result.error

    @pytest.mark.asyncio
    async def test_unserializable_value_keeps_previous_file(self, store):
        await store.write("settings.json", {"a": 1})

        result = await store.write("settings.json", {"a": float("nan")})
        assert not result.success

        result = await store.write("settings.json", {"a": object()})
        assert not result.success

        assert json.loads((store.data_dir / "settings.json").read_text()) == {"a": 1}

    @pytest.mark.asyncio
    async def test_failed_replace_keeps_previous_file(self, store, monkeypatch):
        await store.write("feeds.json", [{"id": "old"}])

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("rss_util.store.document_store.os.replace", broken_replace)
        result = await store.write("feeds.json", [{"id": "new"}])

        assert not result.success
        assert "disk full" in result.error
        assert json.loads((store.data_dir / "feeds.json").read_text()) == [{"id": "old"}]
        # No temp files left behind
        assert sorted(p.name for p in store.data_dir.iterdir()) == ["feeds.json"]

    @pytest.mark.asyncio
    async def test_article_set_feed_id_is_stamped(self, store):
        articles = ArticleRepository(store)
        await articles.save("f1", {"feedId": "other", "articles": [{"id": "a1"}]})

        result = await articles.get("f1")
        assert result.data["feedId"] == "f1"
        assert result.data["articles"] == [{"id": "a1"}]

    @pytest.mark.asyncio
    async def test_article_set_must_be_object(self, store):
        result = await store.write("articles-f1.json", [{"id": "a1"}])
        assert not result.success

    @pytest.mark.asyncio
    async def test_write_notifies_listeners(self, store):
        seen = []
        store.add_listener(seen.append)

        await store.write("feeds.json", [])
        await store.write("categories.json", [], notify=False)
        await store.write("bad.txt", [])

        assert seen == ["feeds.json"]

    @pytest.mark.asyncio
    async def test_listener_failure_does_not_fail_write(self, store):
        def broken(filename):
            raise RuntimeError("boom")

        store.add_listener(broken)
        result = await store.write("feeds.json", [])
        assert result.success

    @pytest.mark.asyncio
    async def test_update_returns_written_value(self, store):
        await store.write("settings.json", {"a": 1})
        result = await store.update("settings.json", lambda s: {**s, "b": 2})
        assert result.success
        assert result.data == {"a": 1, "b": 2}

    @pytest.mark.asyncio
    async def test_update_mutation_error_leaves_file(self, store):
        await store.write("settings.json", {"a": 1})

        def mutate(settings):
            raise ValueError("bad shape")

        result = await store.update("settings.json", mutate)
        assert not result.success
        assert (await store.read("settings.json")).data == {"a": 1}

    @pytest.mark.asyncio
    async def test_list_collections(self, store):
        await store.write("feeds.json", [])
        await store.write("articles-f1.json", {"articles": []})
        (store.data_dir / "notes.json").write_text("{}")
        (store.data_dir / ".feeds.json.abc.tmp").write_text("[]")

        assert await store.list_collections() == ["articles-f1.json", "feeds.json"]
        assert await store.list_article_feed_ids() == ["f1"]


class TestConcurrentWrites:
    """Concurrent updates to one collection must not lose each other."""

    @pytest.mark.asyncio
    async def test_concurrent_read_state_marks(self, store):
        read_states = ReadStateRepository(store)

        results = await asyncio.gather(*(read_states.mark(f"a{i}") for i in range(20)))
        assert all(r.success for r in results)

        stored = (await read_states.get_all()).data
        assert set(stored) == {f"a{i}" for i in range(20)}
        assert all(s["read"] is True and s["readAt"] for s in stored.values())

    @pytest.mark.asyncio
    async def test_mark_unread_clears_timestamp(self, store):
        read_states = ReadStateRepository(store)
        await read_states.mark("a1")
        result = await read_states.mark("a1", read=False)
        assert result.data["a1"] == {"read": False, "readAt": None}

    @pytest.mark.asyncio
    async def test_different_collections_write_in_parallel(self, temp_data_dir):
        store = DocumentStore(temp_data_dir)
        feeds = FeedRepository(store)

        await asyncio.gather(
            feeds.save_all([{"id": "f1"}]),
            store.write("settings.json", {"x": True}),
            store.write("categories.json", [{"id": "c1"}]),
        )

        assert (await store.read("feeds.json")).data == [{"id": "f1"}]
        assert (await store.read("settings.json")).data == {"x": True}
        assert (await store.read("categories.json")).data == [{"id": "c1"}]

    @pytest.mark.asyncio
    async def test_set_status_touches_last_updated(self, store):
        feeds = FeedRepository(store)
        await feeds.save_all([{"id": "f1", "status": "healthy"}])

        await feeds.set_status("f1", "error")
        assert (await feeds.get_all()).data[0] == {"id": "f1", "status": "error"}

        await feeds.set_status("f1", "healthy", touch=True)
        feed = (await feeds.get_all()).data[0]
        assert feed["status"] == "healthy"
        assert feed["lastUpdated"].endswith("Z")

        result = await feeds.set_status("f1", "unknown")
        assert not result.success
