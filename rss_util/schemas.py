"""
Pydantic models for API request/response validation.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────
# Response envelope
# ─────────────────────────────────────────────────────────────

class StoreResponse(BaseModel):
    """Every operation answers with a success flag plus data or an error."""
    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def from_result(cls, result) -> "StoreResponse":
        return cls(success=result.success, data=result.data, error=result.error)


# ─────────────────────────────────────────────────────────────
# Store documents
# ─────────────────────────────────────────────────────────────

class Feed(BaseModel):
    """A subscribed feed."""
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    url: str = ""
    category: str | None = None
    icon: str | None = None
    status: Literal["healthy", "error"] = "healthy"
    lastUpdated: str | None = None


class Category(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    icon: str | None = None


class Article(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = "Untitled"
    link: str = ""
    description: str = ""
    content: str = ""
    pubDate: str | None = None
    author: str = ""
    categories: list[str] = Field(default_factory=list)


class ArticleSet(BaseModel):
    """Articles for one feed. feedId is optional; the store stamps it."""
    model_config = ConfigDict(extra="allow")

    feedId: str | None = None
    lastFetched: str | None = None
    articles: list[Article] = Field(default_factory=list)


class AISummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    summary: str
    footnotes: list[Any] = Field(default_factory=list)
    generatedAt: str | None = None


class CalendarEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    startDate: str | None = None
    endDate: str | None = None
    location: str | None = None
    confidence: float | None = None
    type: str | None = None
    sourceArticle: Any = None


class CalendarEventSet(BaseModel):
    model_config = ConfigDict(extra="allow")

    events: list[CalendarEvent] = Field(default_factory=list)
    lastExtraction: str | None = None


# ─────────────────────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────────────────────

class MarkReadRequest(BaseModel):
    read: bool = True


class SecretRequest(BaseModel):
    """Plaintext API key; empty clears the stored key."""
    api_key: str | None = None


class FeatureFlagRequest(BaseModel):
    enabled: bool


class MirrorDirectoryRequest(BaseModel):
    """Mirror directory path; empty or null clears it."""
    directory: str | None = None


class MirrorFormatRequest(BaseModel):
    structured: bool


class FetchFeedRequest(BaseModel):
    url: str


def dump(model: BaseModel) -> dict:
    """JSON-ready dict, keeping fields the client sent beyond the schema."""
    return model.model_dump(mode="json", exclude_unset=True)
