"""Pydantic models for semantic search requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from shared.models.journal import Journal

DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50


class SearchRequest(BaseModel):
    """Incoming natural language search query from the frontend."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    query: str | None = None
    limit: int | None = DEFAULT_SEARCH_LIMIT


class SearchHit(BaseModel):
    """A single ranked match as returned by a store client."""

    journal: Journal
    distance: float


class SearchResultItem(BaseModel):
    """A single journal entry returned from the vector index."""

    journal_id: str
    title: str | None
    content: str
    mood_tag: str | None
    created_at: datetime
    score: float


class SearchResponse(BaseModel):
    """Response payload returned to the frontend after a search."""

    query: str
    results: list[SearchResultItem]
    total: int
