"""
Collection naming and default values.

Every collection is one JSON file under the data root. Reads of a missing
file resolve to the default for its kind, looked up here once.
"""

import copy
import re
from enum import Enum
from typing import Any

from ..exceptions import InvalidCollectionName


class CollectionKind(str, Enum):
    FEEDS = "feeds"
    CATEGORIES = "categories"
    READ_STATES = "read-states"
    SETTINGS = "settings"
    AI_SUMMARIES = "ai-summaries"
    CALENDAR_EVENTS = "calendar-events"
    ARTICLES = "articles"
    SCHEMA_VERSION = "schema-version"
    UNKNOWN = "unknown"


FEEDS_FILE = "feeds.json"
CATEGORIES_FILE = "categories.json"
READ_STATES_FILE = "read-states.json"
SETTINGS_FILE = "settings.json"
AI_SUMMARIES_FILE = "ai-summaries.json"
CALENDAR_EVENTS_FILE = "calendar-events.json"
SCHEMA_VERSION_FILE = "schema-version.json"

ARTICLES_PREFIX = "articles-"
JSON_SUFFIX = ".json"

_FIXED_FILES = {
    FEEDS_FILE: CollectionKind.FEEDS,
    CATEGORIES_FILE: CollectionKind.CATEGORIES,
    READ_STATES_FILE: CollectionKind.READ_STATES,
    SETTINGS_FILE: CollectionKind.SETTINGS,
    AI_SUMMARIES_FILE: CollectionKind.AI_SUMMARIES,
    CALENDAR_EVENTS_FILE: CollectionKind.CALENDAR_EVENTS,
    SCHEMA_VERSION_FILE: CollectionKind.SCHEMA_VERSION,
}

_DEFAULTS: dict[CollectionKind, Any] = {
    CollectionKind.FEEDS: [],
    CollectionKind.CATEGORIES: [],
    CollectionKind.READ_STATES: {},
    CollectionKind.SETTINGS: {},
    CollectionKind.AI_SUMMARIES: {},
    CollectionKind.CALENDAR_EVENTS: {"events": [], "lastExtraction": None},
    CollectionKind.SCHEMA_VERSION: None,
    CollectionKind.UNKNOWN: None,
}

# Separators, NUL and other characters that could leave the data root
_UNSAFE_NAME = re.compile(r"[/\\\x00]")


def validate_filename(filename: str) -> str:
    """
    Check that a collection file name stays inside the data root.

    Raises:
        InvalidCollectionName: For empty, hidden, non-JSON or path-like names
    """
    if (
        not filename
        or not filename.endswith(JSON_SUFFIX)
        or filename.startswith(".")
        or _UNSAFE_NAME.search(filename)
        or filename in (".", "..")
    ):
        raise InvalidCollectionName(f"Invalid collection name: {filename!r}")
    return filename


def articles_filename(feed_id: str) -> str:
    """File name of the article set for a feed."""
    return validate_filename(f"{ARTICLES_PREFIX}{feed_id}{JSON_SUFFIX}")


def feed_id_from_filename(filename: str) -> str | None:
    """Feed id encoded in an article set file name, or None."""
    if filename.startswith(ARTICLES_PREFIX) and filename.endswith(JSON_SUFFIX):
        feed_id = filename[len(ARTICLES_PREFIX):-len(JSON_SUFFIX)]
        return feed_id or None
    return None


def kind_of(filename: str) -> CollectionKind:
    if filename in _FIXED_FILES:
        return _FIXED_FILES[filename]
    if feed_id_from_filename(filename):
        return CollectionKind.ARTICLES
    return CollectionKind.UNKNOWN


def default_value(filename: str) -> Any:
    """Fresh default value for a collection that has never been written."""
    kind = kind_of(filename)
    if kind is CollectionKind.ARTICLES:
        return {
            "feedId": feed_id_from_filename(filename),
            "lastFetched": None,
            "articles": [],
        }
    return copy.deepcopy(_DEFAULTS[kind])


def is_store_file(filename: str) -> bool:
    """True for file names the store itself would produce."""
    return kind_of(filename) is not CollectionKind.UNKNOWN
