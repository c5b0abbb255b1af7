"""RSS ingestion with NewsAPI top-up and canned fallback.

Responsibilities:
- Pick the RSS sources relevant to a topic with keyword heuristics
- Fetch each source (directly or through the feed proxy) and parse it
- Keep entries mentioning the topic, at most a few per source
- Merge, deduplicate by title, and top up from NewsAPI
- Fall back to AI generation, then canned articles, when nothing was found

A failure at one source is logged and skipped; it never fails the whole
aggregation.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

import feedparser
import requests

from newsroom.canned import canned_articles
from newsroom.generator import GenerationError
from newsroom.models import Article

if TYPE_CHECKING:
    from config.settings import Settings
    from newsroom.generator import ArticleGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSource:
    """A fixed RSS feed."""

    name: str
    url: str
    category: str


def _google_news(category: str) -> str:
    return f"https://news.google.com/rss/search?q={category}&hl=en-US&gl=US&ceid=US:en"


FEED_SOURCES: list[FeedSource] = [
    FeedSource("Google News - Technology", _google_news("technology"), "technology"),
    FeedSource("Google News - Science", _google_news("science"), "science"),
    FeedSource("Google News - Health", _google_news("health"), "health"),
    FeedSource("Google News - Business", _google_news("business"), "business"),
]

#: NewsAPI endpoints keyed by category.
NEWS_API_URLS: dict[str, str] = {
    "technology": "https://newsapi.org/v2/top-headlines?country=us&category=technology",
    "science": "https://newsapi.org/v2/everything?q=science&language=en&sortBy=publishedAt",
    "health": "https://newsapi.org/v2/top-headlines?country=us&category=health",
    "business": "https://newsapi.org/v2/top-headlines?country=us&category=business",
}

#: Keyword signals mapping a topic to a feed category, checked in order.
_CATEGORY_SIGNALS: list[tuple[str, tuple[str, ...]]] = [
    ("technology", ("ai", "artificial intelligence", "technology")),
    ("health", ("health", "medical", "medicine")),
    ("science", ("science", "research")),
    ("business", ("business", "economy")),
]

FEED_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; RSS-Proxy/1.0)",
    "Accept": "application/rss+xml, application/xml, text/xml, */*",
}

MAX_PER_SOURCE = 3
SUMMARY_LENGTH = 200

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[a-zA-Z]+;")
_SPACE_RE = re.compile(r"\s+")


def _has_signal(topic: str, signal: str) -> bool:
    # two-letter signals such as "ai" only count as whole words
    if len(signal) <= 3:
        return signal in topic.split()
    return signal in topic


def detect_category(topic: str) -> Optional[str]:
    """Return the feed category matching *topic*, or None for general topics.

    Examples:
        >>> detect_category("Latest breakthroughs in AI")
        'technology'
        >>> detect_category("space exploration")
    """
    topic_lower = topic.lower()
    for category, signals in _CATEGORY_SIGNALS:
        if any(_has_signal(topic_lower, s) for s in signals):
            return category
    return None


def relevant_sources(topic: str) -> list[FeedSource]:
    """Return the sources worth fetching for *topic* (all of them for general topics)."""
    category = detect_category(topic)
    if category is None:
        return list(FEED_SOURCES)
    return [s for s in FEED_SOURCES if s.category == category]


def clean_content(content: str) -> str:
    """Strip markup from a feed summary and truncate it.

    Examples:
        >>> clean_content("<p>Hello&nbsp;  <b>world</b></p>")
        'Hello world...'
    """
    text = _TAG_RE.sub("", content)
    text = _ENTITY_RE.sub(" ", text)
    text = _SPACE_RE.sub(" ", text).strip()
    return text[:SUMMARY_LENGTH] + "..."


def deduplicate(articles: list[Article]) -> list[Article]:
    """Remove articles whose lower-cased title was already seen, keeping the first."""
    seen: set[str] = set()
    unique: list[Article] = []
    for article in articles:
        key = article.title.strip().lower()
        if key not in seen:
            seen.add(key)
            unique.append(article)
    return unique


class FeedAggregator:
    """Collects real headlines for a topic from RSS feeds and NewsAPI."""

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        generator: Optional[ArticleGenerator] = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.generator = generator

    # ── RSS ────────────────────────────────────────────────────────────────

    def _feed_url(self, url: str) -> str:
        if self.settings.feed_proxy_url:
            return f"{self.settings.feed_proxy_url}?url={quote(url, safe='')}"
        return url

    def fetch_source(self, source: FeedSource, topic: str) -> list[Article]:
        """Fetch one feed and return up to ``MAX_PER_SOURCE`` entries mentioning *topic*."""
        topic_lower = topic.lower()
        try:
            response = self.session.get(
                self._feed_url(source.url),
                headers=FEED_HEADERS,
                timeout=self.settings.feed_timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Error fetching from %s: %s", source.name, exc)
            return []

        parsed = feedparser.parse(response.content)
        if parsed.bozo and not parsed.entries:
            logger.warning("Unparseable feed from %s: %s", source.name, parsed.get("bozo_exception"))
            return []

        articles: list[Article] = []
        for entry in parsed.entries:
            title = entry.get("title", "") or ""
            summary = entry.get("summary", "") or entry.get("description", "") or ""
            if topic_lower not in title.lower() and topic_lower not in summary.lower():
                continue
            articles.append(
                Article(
                    title=title or "No Title",
                    source=source.name,
                    summary=clean_content(summary),
                    url=entry.get("link", ""),
                    published_at=entry.get("published") or entry.get("updated") or "",
                    author=entry.get("author") or "Unknown",
                )
            )
            if len(articles) >= MAX_PER_SOURCE:
                break
        return articles

    def get_articles_from_rss(self, topic: str, limit: int = 5) -> list[Article]:
        """Aggregate matching entries across the relevant feeds."""
        articles: list[Article] = []
        for source in relevant_sources(topic):
            articles.extend(self.fetch_source(source, topic))
        return deduplicate(articles)[:limit]

    # ── NewsAPI ────────────────────────────────────────────────────────────

    def get_articles_from_news_api(self, topic: str, limit: int = 5) -> list[Article]:
        """Fetch headlines for the topic's category from NewsAPI, if a key is set."""
        if not self.settings.news_api_key:
            logger.info("NewsAPI key not set, skipping NewsAPI fetch")
            return []
        if limit <= 0:
            return []

        category = detect_category(topic)
        url = NEWS_API_URLS.get(category or "technology", NEWS_API_URLS["technology"])
        try:
            response = self.session.get(
                url,
                params={"apiKey": self.settings.news_api_key, "pageSize": limit},
                timeout=self.settings.feed_timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Error fetching from NewsAPI: %s", exc)
            return []

        articles: list[Article] = []
        for item in payload.get("articles", []) or []:
            title = item.get("title") or ""
            summary = clean_content(item.get("description") or item.get("content") or "")
            if not title:
                continue
            articles.append(
                Article(
                    title=title,
                    source=(item.get("source") or {}).get("name") or "NewsAPI",
                    summary=summary,
                    url=item.get("url"),
                    published_at=item.get("publishedAt"),
                    author=item.get("author") or "Unknown",
                )
            )
        return articles[:limit]

    # ── Public pipeline ────────────────────────────────────────────────────

    def get_articles(self, topic: str, limit: int = 5) -> list[Article]:
        """Full ingestion pipeline: RSS → NewsAPI top-up → AI → canned.

        Never raises; the worst case is the canned set for the topic.
        """
        articles = self.get_articles_from_rss(topic, limit)
        if len(articles) < limit:
            extra = self.get_articles_from_news_api(topic, limit - len(articles))
            articles = deduplicate(articles + extra)[:limit]

        if articles:
            logger.info("Ingested %d articles for topic=%r", len(articles), topic)
            return articles

        if self.generator is not None:
            try:
                return self.generator.generate(topic)
            except GenerationError as exc:
                logger.warning("AI fallback failed for topic=%r: %s", topic, exc)

        logger.info("No live articles for topic=%r, using canned set", topic)
        return canned_articles(topic)[:limit]
