"""
Article generation and the news request pipeline.

Flow
────
1. NewsService.get_news(topic, session_id)
     → records the topic in the session history
     → returns cached articles for the topic if present
     → otherwise finds a similar earlier topic, fetches fresh articles from
       the configured source, and writes cache, similarity index and
       analytics

2. ArticleGenerator.generate(topic, related_topic)
     → one Claude call with a JSON-schema output format, validated into a
       non-empty list of Article objects
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import anthropic
from pydantic import ValidationError

from newsroom.canned import canned_articles
from newsroom.models import AIRequest, Article
from newsroom.store import news_cache_key

if TYPE_CHECKING:
    from config.settings import Settings
    from newsroom.feeds import FeedAggregator
    from newsroom.store import RedisAIService

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """The generation API failed or returned an unusable payload."""


# ── Generator ──────────────────────────────────────────────────────────────

GENERATION_SYSTEM = (
    "You are a news writer for a demo application. Write fictional but realistic "
    "news article summaries. Return only JSON matching the schema, no commentary."
)

#: Structured-output schema: ``{"articles": [{title, source, summary}, ...]}``.
_ARTICLES_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "articles": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {
                        "type": "string",
                        "description": "A concise and engaging headline.",
                    },
                    "source": {
                        "type": "string",
                        "description": (
                            "A fictional but plausible news source name, "
                            "e.g. 'Tech Today'."
                        ),
                    },
                    "summary": {
                        "type": "string",
                        "description": "A 3-4 sentence summary of the article.",
                    },
                },
                "required": ["title", "source", "summary"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["articles"],
    "additionalProperties": False,
}


def build_prompt(topic: str, count: int = 5, related_topic: Optional[str] = None) -> str:
    """Return the user prompt for *topic*.

    Examples:
        >>> build_prompt("space", 3)
        'Generate 3 fictional but realistic news article summaries about "space". Each summary should be unique and well-written.'
    """
    prompt = (
        f'Generate {count} fictional but realistic news article summaries about "{topic}". '
        "Each summary should be unique and well-written."
    )
    if related_topic:
        prompt += (
            f' Readers of this topic recently asked about "{related_topic}"; '
            "where it fits naturally, connect the stories to it."
        )
    return prompt


def parse_articles(text: str) -> list[Article]:
    """Parse the model's JSON reply into a non-empty list of articles.

    Accepts either the schema's ``{"articles": [...]}`` object or a bare array.

    Raises:
        GenerationError: If the text is not JSON, not an array of articles,
            empty, or any article is missing a non-empty title/source/summary.
    """
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise GenerationError(f"Claude returned invalid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("articles")
    if not isinstance(data, list) or not data:
        raise GenerationError("Claude did not return a valid array of articles.")

    try:
        return [Article.model_validate(item) for item in data]
    except ValidationError as exc:
        raise GenerationError(f"Claude returned a malformed article: {exc}") from exc


class ArticleGenerator:
    """Generates article summaries for a topic with the Claude API.

    The Anthropic client is lazy-initialised so the class can be built in
    tests without a live API key.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: object = None

    @property
    def client(self) -> object:
        """Lazy-initialise and return the Anthropic SDK client."""
        if self._client is None:
            self._client = anthropic.Anthropic(api_key=self.settings.anthropic_api_key)
        return self._client

    def generate(self, topic: str, related_topic: Optional[str] = None) -> list[Article]:
        """Generate articles about *topic*.

        Args:
            topic: The topic to write about.
            related_topic: An earlier, similar topic used to enrich the prompt.

        Returns:
            A non-empty list of validated articles.

        Raises:
            GenerationError: On API errors or an unusable response.
        """
        prompt = build_prompt(topic, self.settings.articles_per_topic, related_topic)
        logger.info("Generating articles topic=%r related=%r", topic, related_topic)

        try:
            response = self.client.messages.create(
                model=self.settings.generation_model,
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
                system=GENERATION_SYSTEM,
                messages=[{"role": "user", "content": prompt}],
                output_config={
                    "format": {"type": "json_schema", "schema": _ARTICLES_SCHEMA}
                },
            )
        except anthropic.APIError as exc:
            logger.error("Claude API error for topic=%r: %s", topic, exc)
            raise GenerationError(f"Claude API error: {exc}") from exc

        text = "".join(
            getattr(block, "text", "") for block in response.content
            if getattr(block, "type", None) == "text"
        )
        articles = parse_articles(text)
        logger.info("Generated %d articles for topic=%r", len(articles), topic)
        return articles


# ── News pipeline ──────────────────────────────────────────────────────────


@dataclass
class NewsResult:
    """Articles for one topic plus how they were obtained."""

    topic: str
    articles: list[Article]
    cached: bool = False
    related_topic: Optional[str] = None


class NewsService:
    """Ties the article sources to the cache, similarity index and analytics."""

    def __init__(
        self,
        settings: Settings,
        store: RedisAIService,
        generator: Optional[ArticleGenerator] = None,
        feeds: Optional[FeedAggregator] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.generator = generator
        self.feeds = feeds

    def _related_topic(self, topic: str) -> Optional[str]:
        for result in self.store.search_similar_topics(topic, limit=3):
            if result.content.strip().lower() != topic.lower():
                return result.content
        return None

    def _fetch(self, topic: str, related_topic: Optional[str]) -> list[Article]:
        source = self.settings.news_source
        if source == "ai" and self.generator is not None:
            return self.generator.generate(topic, related_topic)
        if source == "rss" and self.feeds is not None:
            return self.feeds.get_articles(topic, self.settings.articles_per_topic)
        return canned_articles(topic)

    def _log_request(self, topic: str, session_id: Optional[str], started: float) -> None:
        self.store.log_ai_request(
            AIRequest(
                id=str(uuid.uuid4()),
                topic=topic.lower(),
                session_id=session_id,
                timestamp=time.time(),
                response_time_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        )

    def get_news(self, topic: str, session_id: Optional[str] = None) -> NewsResult:
        """Return articles for *topic*, from the cache when possible.

        Raises:
            ValueError: If topic is blank.
            GenerationError: If the AI source fails.
        """
        topic = topic.strip()
        if not topic:
            raise ValueError("Topic must not be empty.")

        started = time.perf_counter()
        if session_id:
            self.store.add_topic_to_history(session_id, topic)

        key = news_cache_key(topic)
        cached = self.store.get_cache(key)
        if isinstance(cached, list) and cached:
            try:
                articles = [Article.model_validate(item) for item in cached]
            except ValidationError as exc:
                logger.warning("Discarding malformed cached articles for %r: %s", topic, exc)
            else:
                self._log_request(topic, session_id, started)
                return NewsResult(topic=topic, articles=articles, cached=True)

        related = self._related_topic(topic)
        articles = self._fetch(topic, related)

        self.store.set_cache(key, [a.model_dump() for a in articles], self.settings.cache_ttl)
        self.store.add_to_vector_index(topic, articles)
        self._log_request(topic, session_id, started)
        return NewsResult(topic=topic, articles=articles, related_topic=related)
