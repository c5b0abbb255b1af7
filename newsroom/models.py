"""
Pydantic models shared across the newsroom package.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class Article(BaseModel):
    """A single news article, generated or ingested."""

    title: str = Field(min_length=1)
    source: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    url: Optional[str] = None
    published_at: Optional[str] = None
    author: Optional[str] = None


class CacheEntry(BaseModel):
    """Envelope stored around every cached value."""

    data: Any
    ttl: int
    timestamp: float


class UserSession(BaseModel):
    """Short-lived record of one visitor's recent topic searches."""

    session_id: str
    user_id: Optional[str] = None
    topics: list[str] = Field(default_factory=list)
    created_at: datetime
    last_activity: datetime


class VectorSearchResult(BaseModel):
    """An indexed topic similar to a query."""

    id: str
    score: float
    content: str


class AIRequest(BaseModel):
    """Analytics record for one news request."""

    id: str
    topic: str
    session_id: Optional[str] = None
    timestamp: float
    response_time_ms: Optional[float] = None


class TopicCount(BaseModel):
    topic: str
    count: int


class Analytics(BaseModel):
    """Aggregated request counters."""

    total_requests: int = 0
    popular_topics: list[TopicCount] = Field(default_factory=list)
    average_response_time: float = 0.0
