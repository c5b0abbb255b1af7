"""
Flask web server for News Radio.

Routes
──────
GET  /                        Dashboard UI
GET  /api/news?topic=...      Articles for a topic (cache → source)
POST /api/session             Create a session
GET  /api/session/<id>        Fetch a session and its recent topics
GET  /api/similar?q=...       Indexed topics similar to a query
GET  /api/analytics           Request counters
GET  /api/health              Redis connectivity
GET  /api/proxy?url=...       Allow-listed RSS proxy (OPTIONS preflight too)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import requests
from dotenv import load_dotenv
from flask import Flask, Response, current_app, jsonify, render_template, request

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config.settings import Settings
from newsroom.feeds import FeedAggregator
from newsroom.generator import ArticleGenerator, GenerationError, NewsService
from newsroom.proxy import ProxyError, forward
from newsroom.speech import utterance_text
from newsroom.store import RedisAIService

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def build_news_service(
    settings: Settings,
    store: RedisAIService,
    http: requests.Session,
) -> NewsService:
    """Wire the article sources selected by ``settings.news_source``."""
    generator = ArticleGenerator(settings) if settings.anthropic_api_key else None
    feeds = FeedAggregator(settings, session=http, generator=generator)
    return NewsService(settings, store, generator=generator, feeds=feeds)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RedisAIService] = None,
    news: Optional[NewsService] = None,
    http: Optional[requests.Session] = None,
) -> Flask:
    """Build the Flask app around explicitly constructed services.

    The caller owns the Redis client: pass a connected ``store`` (the
    ``__main__`` block below does), or leave it out to get a store that
    has not been connected and therefore behaves as "Redis unavailable".
    """
    settings = settings or Settings()
    store = store or RedisAIService.from_settings(settings)
    http = http or requests.Session()
    news = news or build_news_service(settings, store, http)

    app = Flask(__name__)
    app.extensions["newsroom"] = {
        "settings": settings,
        "store": store,
        "news": news,
        "http": http,
    }
    _register_routes(app)
    return app


def _services() -> dict:
    return current_app.extensions["newsroom"]


def _register_routes(app: Flask) -> None:

    # ── UI ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        return render_template("index.html")

    # ── News ───────────────────────────────────────────────────────────────

    @app.route("/api/news")
    def news_endpoint():
        """Return articles for a topic.

        Query params:
          topic       (required) — the topic to fetch news for
          session_id  (optional) — session whose topic history is updated
        """
        topic = request.args.get("topic", "").strip()
        if not topic:
            return jsonify({"error": "topic query param is required"}), 400
        session_id = request.args.get("session_id") or None

        try:
            result = _services()["news"].get_news(topic, session_id=session_id)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        except GenerationError as exc:
            logger.error("News generation failed for topic=%r: %s", topic, exc)
            return jsonify({"error": str(exc)}), 502

        return jsonify(
            {
                "topic": result.topic,
                "cached": result.cached,
                "related_topic": result.related_topic,
                "articles": [
                    {**a.model_dump(), "speech_text": utterance_text(a)}
                    for a in result.articles
                ],
            }
        )

    # ── Sessions ───────────────────────────────────────────────────────────

    @app.route("/api/session", methods=["POST"])
    def create_session():
        payload = request.get_json(silent=True) or {}
        session_id = _services()["store"].create_session(payload.get("user_id"))
        if session_id is None:
            return jsonify({"error": "Sessions unavailable"}), 503
        return jsonify({"session_id": session_id}), 201

    @app.route("/api/session/<session_id>")
    def get_session(session_id: str):
        session = _services()["store"].get_session(session_id)
        if session is None:
            return jsonify({"error": "Not found"}), 404
        return jsonify(session.model_dump(mode="json"))

    # ── Similarity / analytics / health ────────────────────────────────────

    @app.route("/api/similar")
    def similar_topics():
        query = request.args.get("q", "").strip()
        if not query:
            return jsonify({"error": "q query param is required"}), 400
        limit = max(1, request.args.get("limit", 5, type=int))
        results = _services()["store"].search_similar_topics(query, limit=limit)
        return jsonify([r.model_dump() for r in results])

    @app.route("/api/analytics")
    def analytics():
        return jsonify(_services()["store"].get_analytics().model_dump())

    @app.route("/api/health")
    def health():
        return jsonify({"redis": _services()["store"].health_check()})

    # ── RSS proxy ──────────────────────────────────────────────────────────

    @app.route("/api/proxy", methods=["GET", "OPTIONS"])
    def proxy():
        if request.method == "OPTIONS":
            return Response(status=200, headers=CORS_HEADERS)

        services = _services()
        try:
            upstream = forward(
                request.args.get("url"),
                session=services["http"],
                timeout=services["settings"].proxy_timeout,
            )
        except ProxyError as exc:
            response = jsonify(exc.to_dict())
            response.status_code = exc.status
            response.headers.update(CORS_HEADERS)
            return response

        return Response(
            upstream.body,
            status=upstream.status,
            content_type=upstream.content_type,
            headers=CORS_HEADERS,
        )


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    settings = Settings()
    settings.validate()
    store = RedisAIService.from_settings(settings)
    store.connect()
    try:
        create_app(settings, store).run(
            debug=settings.debug, host="0.0.0.0", port=settings.port
        )
    finally:
        store.close()
