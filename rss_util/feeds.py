"""
Feed Parser - Fetch and parse RSS/Atom feeds into store-shaped article sets.

Handles:
- RSS 2.0 and Atom 1.0 formats
- Article ids from guid/link with a generated fallback
- Rate limiting per domain
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import urlparse

import aiohttp
import feedparser


@dataclass
class FetchedFeed:
    """A parsed feed with articles in the stored article format."""
    url: str
    title: str
    description: str
    link: str
    articles: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "feedTitle": self.title,
            "feedDescription": self.description,
            "feedLink": self.link,
            "articles": self.articles,
        }


def _iso(parsed_time) -> str | None:
    """struct_time from feedparser -> ISO-8601 UTC string."""
    if not parsed_time:
        return None
    try:
        dt = datetime(*parsed_time[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def entry_to_article(entry) -> dict:
    """Convert a feedparser entry to the stored article format."""
    link = entry.get("link", "")
    article_id = entry.get("id") or link or f"article-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"

    content = ""
    if entry.get("content"):
        content = entry.content[0].get("value", "")
    if not content:
        content = entry.get("summary", "") or entry.get("description", "")

    published = entry.get("published_parsed") or entry.get("updated_parsed")

    return {
        "id": article_id,
        "title": entry.get("title") or "Untitled",
        "link": link,
        "description": entry.get("summary", "") or entry.get("description", ""),
        "content": content,
        "pubDate": _iso(published),
        "author": entry.get("author", ""),
        "categories": [t.get("term") for t in entry.get("tags", []) if t.get("term")],
    }


class FeedParser:
    """Parses RSS/Atom feeds with rate limiting."""

    def __init__(self, timeout: int = 30, user_agent: str | None = None):
        self.timeout = timeout
        self.user_agent = user_agent or "RSS Util/1.4 (+https://github.com/rss-util)"
        self._domain_last_fetch: dict[str, float] = {}
        self._min_interval = 1.0  # Minimum seconds between requests to same domain

    async def fetch(self, url: str) -> FetchedFeed:
        """Fetch and parse a feed URL."""
        domain = urlparse(url).netloc
        await self._rate_limit(domain)

        headers = {"User-Agent": self.user_agent}

        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as resp:
                resp.raise_for_status()
                content = await resp.text()

        return self.parse(url, content)

    def parse(self, url: str, content: str) -> FetchedFeed:
        """Parse feed content using feedparser."""
        parsed = feedparser.parse(content)

        if parsed.bozo and not parsed.entries:
            raise ValueError(f"Failed to parse feed: {parsed.bozo_exception}")

        return FetchedFeed(
            url=url,
            title=parsed.feed.get("title", ""),
            description=parsed.feed.get("description") or parsed.feed.get("subtitle") or "",
            link=parsed.feed.get("link", ""),
            articles=[entry_to_article(entry) for entry in parsed.entries],
        )

    async def _rate_limit(self, domain: str):
        """Ensure minimum interval between requests to same domain."""
        now = time.time()
        if domain in self._domain_last_fetch:
            elapsed = now - self._domain_last_fetch[domain]
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
        self._domain_last_fetch[domain] = time.time()
