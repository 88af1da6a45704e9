"""
Markdown renderers for the structured mirror.

Every document starts with a header block:

    ---
    title: "Demo"
    type: feed
    id: "f1"
    ---

String values are JSON-quoted, lists inline JSON, missing values null.
"""

import json
from typing import Any

from ..store.converters import as_dict, as_list, as_text, parse_timestamp
from .text import html_to_text

NO_DATE_FOLDER = "no-date"

# Header keys rendered without quotes
BARE_KEYS = {"type"}


def _format_value(key: str, value: Any) -> str:
    if key in BARE_KEYS and isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(value, ensure_ascii=False)


def render_document(header: dict[str, Any], body: str) -> str:
    """Header block followed by the body."""
    lines = ["---"]
    lines.extend(f"{key}: {_format_value(key, value)}" for key, value in header.items())
    lines.append("---")
    lines.append("")
    body = body.strip()
    if body:
        lines.append(body)
        lines.append("")
    return "\n".join(lines)


def display_title(item: dict, key: str = "title", default: str = "Untitled") -> str:
    title = as_text(item.get(key)).strip()
    return title or default


def render_feed(feed: dict, category_name: str | None = None) -> str:
    title = display_title(feed)
    header = {
        "title": title,
        "type": "feed",
        "id": feed.get("id"),
        "url": feed.get("url"),
        "category": category_name or feed.get("category"),
        "status": feed.get("status"),
        "lastUpdated": feed.get("lastUpdated"),
    }
    body = [f"# {title}"]
    if feed.get("url"):
        body.append(f"Feed URL: {as_text(feed.get('url'))}")
    return render_document(header, "\n\n".join(body))


def render_category(category: dict, feeds: list[dict]) -> str:
    name = display_title(category, key="name")
    header = {
        "title": name,
        "type": "category",
        "id": category.get("id"),
        "icon": category.get("icon"),
    }
    body = [f"# {name}"]
    members = [
        display_title(f) for f in feeds
        if isinstance(f, dict) and category.get("id") is not None
        and f.get("category") == category.get("id")
    ]
    if members:
        body.append("## Feeds")
        body.append("\n".join(f"- {title}" for title in members))
    return render_document(header, "\n\n".join(body))


def render_article(article: dict, feed_title: str, feed_id: str | None) -> str:
    title = display_title(article)
    header = {
        "title": title,
        "type": "article",
        "id": article.get("id"),
        "feed": feed_title,
        "feedId": feed_id,
        "link": article.get("link"),
        "author": article.get("author") or None,
        "pubDate": article.get("pubDate"),
        "categories": [as_text(c) for c in as_list(article.get("categories"))],
    }

    description = html_to_text(as_text(article.get("description")))
    content = html_to_text(as_text(article.get("content")))

    body = [f"# {title}"]
    if article.get("link"):
        body.append(f"Source: {as_text(article.get('link'))}")
    if description and description != content:
        body.append("## Summary")
        body.append(description)
    if content:
        body.append("## Content")
        body.append(content)
    return render_document(header, "\n\n".join(body))


def event_start(event: dict) -> Any:
    return event.get("startDate", event.get("start"))


def event_end(event: dict) -> Any:
    return event.get("endDate", event.get("end"))


def event_folder(event: dict) -> str:
    """Year-month folder for an event's start date, or "no-date"."""
    start = parse_timestamp(event_start(event))
    if start is None:
        return NO_DATE_FOLDER
    return f"{start.year:04d}-{start.month:02d}"


def _source_reference(event: dict) -> Any:
    source = event.get("sourceArticle")
    if isinstance(source, dict):
        return source.get("title") or source.get("link") or source.get("id")
    if source is None:
        return event.get("sourceArticleId")
    return source


def render_event(event: dict) -> str:
    title = display_title(event)
    header = {
        "title": title,
        "type": "event",
        "id": event.get("id"),
        "startDate": event_start(event),
        "endDate": event_end(event),
        "location": event.get("location"),
        "confidence": event.get("confidence"),
        "eventType": event.get("type"),
        "sourceArticle": _source_reference(event),
    }

    body = [f"# {title}"]
    details = []
    if event_start(event):
        details.append(f"Starts: {as_text(event_start(event))}")
    if event_end(event):
        details.append(f"Ends: {as_text(event_end(event))}")
    if event.get("location"):
        details.append(f"Location: {as_text(event.get('location'))}")
    if details:
        body.append("\n".join(details))
    description = html_to_text(as_text(event.get("description")))
    if description:
        body.append(description)
    source = as_dict(event.get("sourceArticle"))
    if source.get("link"):
        body.append(f"Source: {as_text(source.get('link'))}")
    return render_document(header, "\n\n".join(body))
