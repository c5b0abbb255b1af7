"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError on an inconsistent configuration
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

#: Article sources understood by ``NewsService``.
NEWS_SOURCES = ("ai", "rss", "mock")


def _default_news_source() -> str:
    explicit = os.environ.get("NEWS_SOURCE", "").strip().lower()
    if explicit:
        return explicit
    return "ai" if os.environ.get("ANTHROPIC_API_KEY") else "mock"


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── API Keys ────────────────────────────────────────────────────────────
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "")
    )
    news_api_key: str = field(
        default_factory=lambda: os.environ.get("NEWS_API_KEY", "")
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5001"))
    )

    # ── News source ─────────────────────────────────────────────────────────
    #: One of ``NEWS_SOURCES``.
    news_source: str = field(default_factory=_default_news_source)
    articles_per_topic: int = field(
        default_factory=lambda: int(os.environ.get("ARTICLES_PER_TOPIC", "5"))
    )
    #: Optional same-origin proxy used for feed fetches, e.g.
    #: ``http://localhost:5001/api/proxy``.
    feed_proxy_url: str = field(
        default_factory=lambda: os.environ.get("FEED_PROXY_URL", "")
    )
    feed_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FEED_TIMEOUT", "10"))
    )
    proxy_timeout: float = field(
        default_factory=lambda: float(os.environ.get("PROXY_TIMEOUT", "10"))
    )

    # ── Redis ───────────────────────────────────────────────────────────────
    redis_url: str = field(
        default_factory=lambda: os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    )
    redis_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REDIS_TIMEOUT", "2"))
    )
    cache_ttl: int = field(
        default_factory=lambda: int(os.environ.get("CACHE_TTL", "3600"))
    )

    # ── AI Model ────────────────────────────────────────────────────────────
    generation_model: str = field(
        default_factory=lambda: os.environ.get("GENERATION_MODEL", "claude-haiku-4-5")
    )
    #: Fixed sampling temperature for article generation.
    temperature: float = 0.8
    max_tokens: int = 2000

    def validate(self) -> None:
        """Raise ``ValueError`` if the configuration cannot work."""
        if self.news_source not in NEWS_SOURCES:
            raise ValueError(
                f"NEWS_SOURCE must be one of {', '.join(NEWS_SOURCES)}, "
                f"got {self.news_source!r}."
            )
        if self.news_source == "ai" and not self.anthropic_api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Copy .env.example to .env and add your key, or set NEWS_SOURCE=mock."
            )
