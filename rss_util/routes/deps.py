"""
Dependency factories for repositories.

Each repository is built per request around the shared document store.
"""

from typing import Annotated

from fastapi import Depends

from ..config import get_mirror, get_store, get_vault
from ..mirror import MirrorSyncEngine
from ..store import (
    ArticleRepository,
    CalendarRepository,
    CategoryRepository,
    DocumentStore,
    FeedRepository,
    ReadStateRepository,
    SettingsRepository,
    SummaryRepository,
)
from ..vault import SecretVault


def get_feed_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> FeedRepository:
    return FeedRepository(store)


def get_category_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> CategoryRepository:
    return CategoryRepository(store)


def get_read_state_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> ReadStateRepository:
    return ReadStateRepository(store)


def get_settings_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> SettingsRepository:
    return SettingsRepository(store)


def get_article_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> ArticleRepository:
    return ArticleRepository(store)


def get_summary_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> SummaryRepository:
    return SummaryRepository(store)


def get_calendar_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> CalendarRepository:
    return CalendarRepository(store)


StoreDep = Annotated[DocumentStore, Depends(get_store)]
VaultDep = Annotated[SecretVault, Depends(get_vault)]
MirrorDep = Annotated[MirrorSyncEngine, Depends(get_mirror)]
FeedRepoDep = Annotated[FeedRepository, Depends(get_feed_repository)]
CategoryRepoDep = Annotated[CategoryRepository, Depends(get_category_repository)]
ReadStateRepoDep = Annotated[ReadStateRepository, Depends(get_read_state_repository)]
SettingsRepoDep = Annotated[SettingsRepository, Depends(get_settings_repository)]
ArticleRepoDep = Annotated[ArticleRepository, Depends(get_article_repository)]
SummaryRepoDep = Annotated[SummaryRepository, Depends(get_summary_repository)]
CalendarRepoDep = Annotated[CalendarRepository, Depends(get_calendar_repository)]
