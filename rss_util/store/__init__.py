"""
Store module - JSON document persistence for feeds, articles and settings.

Uses repository pattern over a single DocumentStore.
"""

from .collections import CollectionKind
from .document_store import DocumentStore, StoreResult
from .feed_repository import FeedRepository, CategoryRepository
from .read_state_repository import ReadStateRepository
from .settings_repository import SettingsRepository, MirrorSettings
from .article_repository import ArticleRepository
from .summary_repository import SummaryRepository
from .calendar_repository import CalendarRepository

__all__ = [
    "CollectionKind",
    "DocumentStore",
    "StoreResult",
    "FeedRepository",
    "CategoryRepository",
    "ReadStateRepository",
    "SettingsRepository",
    "MirrorSettings",
    "ArticleRepository",
    "SummaryRepository",
    "CalendarRepository",
]
