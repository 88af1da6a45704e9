"""
Tests for feed parsing, refresh tasks and feed routes.
"""

from unittest.mock import AsyncMock, patch

import pytest

from rss_util.feeds import FeedParser, FetchedFeed
from rss_util.store import ArticleRepository, FeedRepository
from rss_util.tasks import refresh_all_feeds

SAMPLE_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Feed</title>
    <link>https://example.com/</link>
    <description>An example feed</description>
    <item>
      <title>First Post</title>
      <link>https://example.com/first</link>
      <guid>https://example.com/first</guid>
      <description>&lt;p&gt;Hello world&lt;/p&gt;</description>
      <pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate>
      <author>editor@example.com (Editor)</author>
      <category>News</category>
    </item>
    <item>
      <title>Second Post</title>
      <link>https://example.com/second</link>
    </item>
  </channel>
</rss>
"""

SAMPLE_ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Feed</title>
  <subtitle>Atom subtitle</subtitle>
  <link href="https://example.org/"/>
  <entry>
    <title>Atom Entry</title>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <link href="https://example.org/entry"/>
    <updated>2024-02-03T04:05:06Z</updated>
    <content type="html">&lt;p&gt;Body&lt;/p&gt;</content>
  </entry>
</feed>
"""


class TestFeedParser:
    """Tests for FeedParser.parse."""

    def test_parse_rss(self):
        feed = FeedParser().parse("https://example.com/feed.xml", SAMPLE_RSS)

        assert feed.title == "Example Feed"
        assert feed.description == "An example feed"
        assert len(feed.articles) == 2

        first = feed.articles[0]
        assert first["id"] == "https://example.com/first"
        assert first["title"] == "First Post"
        assert first["pubDate"] == "2024-01-01T12:00:00.000Z"
        assert first["categories"] == ["News"]
        assert "Hello world" in first["content"]

    def test_missing_guid_uses_link(self):
        feed = FeedParser().parse("https://example.com/feed.xml", SAMPLE_RSS)
        second = feed.articles[1]
        assert second["id"] == "https://example.com/second"
        assert second["pubDate"] is None

    def test_parse_atom(self):
        feed = FeedParser().parse("https://example.org/atom", SAMPLE_ATOM)

        assert feed.title == "Atom Feed"
        assert feed.description == "Atom subtitle"
        entry = feed.articles[0]
        assert entry["id"] == "urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a"
        assert entry["content"] == "<p>Body</p>"
        assert entry["pubDate"] == "2024-02-03T04:05:06.000Z"

    def test_unparseable_content_raises(self):
        with pytest.raises(ValueError):
            FeedParser().parse("https://example.com/bad", "<not a feed")

    def test_to_dict(self):
        feed = FetchedFeed(url="u", title="T", description="D", link="L", articles=[])
        assert feed.to_dict() == {
            "feedTitle": "T",
            "feedDescription": "D",
            "feedLink": "L",
            "articles": [],
        }


class TestRefreshTasks:
    """Tests for refresh_all_feeds."""

    @pytest.mark.asyncio
    async def test_refresh_stores_articles(self, app_state):
        store = app_state.store
        await FeedRepository(store).save_all([
            {"id": "f1", "title": "Example", "url": "https://example.com/feed.xml", "status": "error"},
        ])
        parsed = FeedParser().parse("https://example.com/feed.xml", SAMPLE_RSS)
        app_state.feed_parser.fetch = AsyncMock(return_value=parsed)

        await refresh_all_feeds()

        article_set = (await ArticleRepository(store).get("f1")).data
        assert article_set["feedId"] == "f1"
        assert len(article_set["articles"]) == 2
        assert article_set["lastFetched"]

        feed = (await FeedRepository(store).get_all()).data[0]
        assert feed["status"] == "healthy"
        assert feed["lastUpdated"]
        assert app_state.refresh_in_progress is False
        await app_state.mirror.drain()

    @pytest.mark.asyncio
    async def test_failed_fetch_marks_error(self, app_state):
        store = app_state.store
        await FeedRepository(store).save_all([
            {"id": "f1", "title": "Example", "url": "https://example.com/feed.xml"},
        ])
        app_state.feed_parser.fetch = AsyncMock(side_effect=ConnectionError("offline"))

        await refresh_all_feeds()

        feed = (await FeedRepository(store).get_all()).data[0]
        assert feed["status"] == "error"
        assert "lastUpdated" not in feed
        await app_state.mirror.drain()


class TestFeedRoutes:
    """Tests for /feeds/fetch and /feeds/refresh."""

    def test_fetch_returns_parsed_feed(self, client, app_state):
        parsed = FeedParser().parse("https://example.com/feed.xml", SAMPLE_RSS)
        with patch.object(app_state.feed_parser, "fetch", AsyncMock(return_value=parsed)):
            response = client.post("/feeds/fetch", json={"url": "https://example.com/feed.xml"})

        body = response.json()
        assert body["success"] is True
        assert body["data"]["feedTitle"] == "Example Feed"
        assert len(body["data"]["articles"]) == 2

    def test_fetch_error_is_reported(self, client, app_state):
        with patch.object(app_state.feed_parser, "fetch", AsyncMock(side_effect=ValueError("bad feed"))):
            response = client.post("/feeds/fetch", json={"url": "https://example.com/bad"})

        body = response.json()
        assert body["success"] is False
        assert body["error"] == "bad feed"

    def test_refresh_already_running(self, client, app_state):
        app_state.refresh_in_progress = True
        body = client.post("/feeds/refresh").json()
        assert body["data"] == {"started": False}
