"""
Redis-backed cache, sessions, similarity index and analytics.

Keys
────
news_cache:<topic-key>      CacheEntry JSON            TTL: caller (1 h default)
session:<id>                UserSession JSON           TTL: 24 h, refreshed on read
vector:<topic-key>          {topic, articles, embedding, timestamp}   TTL: 24 h
ai_request:<id>:<ts>        AIRequest JSON             TTL: 7 days
ai_requests_total           integer counter
ai_requests_topic:<topic>   integer counter
ai_requests_timed           integer counter (requests with a measured latency)
ai_requests_response_ms     float counter (sum of measured latencies)

Everything stored here is advisory. Every public method catches
``redis.RedisError``, logs it and returns an empty value, so an unreachable
Redis only costs the caller its cache, history, similarity and analytics.
Read-then-write sequences (session updates) are not transactional.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

import redis
from pydantic import ValidationError

from newsroom.models import (
    AIRequest,
    Analytics,
    Article,
    CacheEntry,
    TopicCount,
    UserSession,
    VectorSearchResult,
)
from newsroom.similarity import cosine_similarity, embed, topic_key

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

SESSION_TTL = 86400          # 24 hours
VECTOR_TTL = 86400           # 24 hours
REQUEST_LOG_TTL = 604800     # 7 days
DEFAULT_CACHE_TTL = 3600     # 1 hour

MAX_SESSION_TOPICS = 10
MAX_POPULAR_TOPICS = 10
SIMILARITY_THRESHOLD = 0.3

CACHE_PREFIX = "news_cache:"
SESSION_PREFIX = "session:"
VECTOR_PREFIX = "vector:"
REQUEST_PREFIX = "ai_request:"
TOPIC_COUNTER_PREFIX = "ai_requests_topic:"
TOTAL_COUNTER_KEY = "ai_requests_total"
TIMED_COUNTER_KEY = "ai_requests_timed"
RESPONSE_TIME_KEY = "ai_requests_response_ms"


def news_cache_key(topic: str) -> str:
    """Return the cache key for the articles of *topic*."""
    return f"{CACHE_PREFIX}{topic_key(topic)}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RedisAIService:
    """Cache, session, similarity and analytics operations over one Redis client.

    The client is injected so that the application entry point owns its
    lifecycle and tests can pass an in-memory double. Until ``connect()``
    succeeds every operation short-circuits to its empty result.
    """

    def __init__(self, client: redis.Redis) -> None:
        self.client = client
        self.connected = False

    @classmethod
    def from_settings(cls, settings: Settings) -> RedisAIService:
        """Build a service around a client for ``settings.redis_url``."""
        client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.redis_timeout,
            socket_timeout=settings.redis_timeout,
        )
        return cls(client)

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def connect(self) -> bool:
        """Ping the server and record whether it is reachable."""
        try:
            self.client.ping()
        except redis.RedisError as exc:
            logger.warning("Redis not available, running in fallback mode: %s", exc)
            self.connected = False
        else:
            logger.info("Redis AI service connected")
            self.connected = True
        return self.connected

    def close(self) -> None:
        """Release the client's connections."""
        try:
            self.client.close()
        except redis.RedisError as exc:
            logger.warning("Error closing Redis client: %s", exc)
        self.connected = False

    def health_check(self) -> bool:
        """Return True if a PING round trip succeeds."""
        return self.connect()

    def _unavailable(self, operation: str, exc: Exception) -> None:
        logger.warning("Redis %s failed, continuing without it: %s", operation, exc)
        if isinstance(exc, (redis.ConnectionError, redis.TimeoutError)):
            self.connected = False

    # ── Cache ──────────────────────────────────────────────────────────────

    def set_cache(self, key: str, value: Any, ttl: int = DEFAULT_CACHE_TTL) -> None:
        """Store a JSON-serialisable *value* under *key* for *ttl* seconds."""
        if not self.connected:
            return
        entry = CacheEntry(data=value, ttl=ttl, timestamp=time.time())
        try:
            self.client.setex(key, ttl, entry.model_dump_json())
        except redis.RedisError as exc:
            self._unavailable("set_cache", exc)
            return
        logger.info("Cached %s (ttl=%ds)", key, ttl)

    def get_cache(self, key: str) -> Any | None:
        """Return the value cached under *key*, or None."""
        if not self.connected:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            self._unavailable("get_cache", exc)
            return None
        if raw is None:
            return None
        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring corrupt cache entry %s: %s", key, exc)
            return None
        logger.info("Cache hit: %s", key)
        return entry.data

    def delete_cache(self, key: str) -> None:
        """Remove *key* from the cache; a missing key is not an error."""
        if not self.connected:
            return
        try:
            self.client.delete(key)
        except redis.RedisError as exc:
            self._unavailable("delete_cache", exc)

    # ── Sessions ───────────────────────────────────────────────────────────

    def _save_session(self, session: UserSession) -> None:
        self.client.setex(
            f"{SESSION_PREFIX}{session.session_id}",
            SESSION_TTL,
            session.model_dump_json(),
        )

    def create_session(self, user_id: Optional[str] = None) -> str | None:
        """Create an empty session and return its id, or None if Redis is down."""
        if not self.connected:
            return None
        now = _now()
        session = UserSession(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            last_activity=now,
        )
        try:
            self._save_session(session)
        except redis.RedisError as exc:
            self._unavailable("create_session", exc)
            return None
        logger.info("Session created: %s", session.session_id)
        return session.session_id

    def get_session(self, session_id: str) -> UserSession | None:
        """Fetch a session, refreshing its last activity and TTL."""
        if not self.connected:
            return None
        try:
            raw = self.client.get(f"{SESSION_PREFIX}{session_id}")
            if raw is None:
                return None
            session = UserSession.model_validate_json(raw)
            session.last_activity = _now()
            self._save_session(session)
        except redis.RedisError as exc:
            self._unavailable("get_session", exc)
            return None
        except ValidationError as exc:
            logger.warning("Ignoring corrupt session %s: %s", session_id, exc)
            return None
        return session

    def update_session(self, session_id: str, **updates: Any) -> UserSession | None:
        """Merge *updates* into a session. Returns the new session or None."""
        session = self.get_session(session_id)
        if session is None:
            return None
        updated = session.model_copy(update={**updates, "last_activity": _now()})
        try:
            self._save_session(updated)
        except redis.RedisError as exc:
            self._unavailable("update_session", exc)
            return None
        return updated

    def add_topic_to_history(self, session_id: str, topic: str) -> None:
        """Put *topic* at the front of the session's recent topics."""
        session = self.get_session(session_id)
        if session is None:
            return
        topics = [topic, *(t for t in session.topics if t != topic)]
        self.update_session(session_id, topics=topics[:MAX_SESSION_TOPICS])

    # ── Similarity index ───────────────────────────────────────────────────

    def add_to_vector_index(self, topic: str, articles: list[Article]) -> None:
        """Index *topic* (and the articles found for it) for similarity search."""
        if not self.connected:
            return
        record = {
            "topic": topic,
            "articles": [a.model_dump() for a in articles],
            "embedding": embed(topic),
            "timestamp": time.time(),
        }
        try:
            self.client.setex(
                f"{VECTOR_PREFIX}{topic_key(topic)}", VECTOR_TTL, json.dumps(record)
            )
        except redis.RedisError as exc:
            self._unavailable("add_to_vector_index", exc)
            return
        logger.info("Vector indexed: %r", topic)

    def search_similar_topics(self, query: str, limit: int = 5) -> list[VectorSearchResult]:
        """Return indexed topics whose similarity to *query* exceeds the threshold.

        A linear scan over every ``vector:*`` key, best match first.
        """
        if not self.connected:
            return []
        query_embedding = embed(query)
        results: list[VectorSearchResult] = []
        try:
            for key in self.client.scan_iter(match=f"{VECTOR_PREFIX}*"):
                raw = self.client.get(key)
                if raw is None:
                    continue
                try:
                    record = json.loads(raw)
                    score = cosine_similarity(query_embedding, record["embedding"])
                    content = record["topic"]
                except (ValueError, KeyError, TypeError) as exc:
                    logger.warning("Skipping corrupt vector entry %s: %s", key, exc)
                    continue
                if score > SIMILARITY_THRESHOLD:
                    results.append(VectorSearchResult(id=key, score=score, content=content))
        except redis.RedisError as exc:
            self._unavailable("search_similar_topics", exc)
            return []

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    # ── Analytics ──────────────────────────────────────────────────────────

    def log_ai_request(self, request: AIRequest) -> None:
        """Record a request and bump the global and per-topic counters."""
        if not self.connected:
            return
        request_key = f"{REQUEST_PREFIX}{request.id}:{int(time.time() * 1000)}"
        try:
            self.client.setex(request_key, REQUEST_LOG_TTL, request.model_dump_json())
            self.client.incr(TOTAL_COUNTER_KEY)
            self.client.incr(f"{TOPIC_COUNTER_PREFIX}{request.topic}")
            if request.response_time_ms is not None:
                self.client.incr(TIMED_COUNTER_KEY)
                self.client.incrbyfloat(RESPONSE_TIME_KEY, request.response_time_ms)
        except redis.RedisError as exc:
            self._unavailable("log_ai_request", exc)
            return
        logger.info("AI request logged: %r", request.topic)

    def get_analytics(self) -> Analytics:
        """Return total requests, the top topics and the mean response time (ms)."""
        if not self.connected:
            return Analytics()
        try:
            total = int(self.client.get(TOTAL_COUNTER_KEY) or 0)
            counts: list[TopicCount] = []
            for key in self.client.scan_iter(match=f"{TOPIC_COUNTER_PREFIX}*"):
                counts.append(
                    TopicCount(
                        topic=key[len(TOPIC_COUNTER_PREFIX):],
                        count=int(self.client.get(key) or 0),
                    )
                )
            timed = int(self.client.get(TIMED_COUNTER_KEY) or 0)
            response_ms = float(self.client.get(RESPONSE_TIME_KEY) or 0)
        except redis.RedisError as exc:
            self._unavailable("get_analytics", exc)
            return Analytics()

        counts.sort(key=lambda c: c.count, reverse=True)
        return Analytics(
            total_requests=total,
            popular_topics=counts[:MAX_POPULAR_TOPICS],
            average_response_time=round(response_ms / timed, 2) if timed else 0.0,
        )
