"""Tests for web/app.py — routes exercised through Flask's test client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from newsroom.canned import canned_articles
from newsroom.generator import GenerationError, NewsService
from web.app import create_app


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def app(settings, store, http):
    settings.news_source = "mock"
    app = create_app(settings, store=store, http=http)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def upstream(status=200, body=b"<rss/>", content_type="application/rss+xml"):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.reason = "Service Unavailable" if status == 503 else "OK"
    response.content = body
    response.headers = {"Content-Type": content_type}
    return response


class TestIndex:
    def test_renders_form(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert b"topic-form" in response.data

    def test_has_similar_topics_panel(self, client):
        assert b'id="similar-topics"' in client.get("/").data


class TestNews:
    def test_missing_topic_is_400(self, client):
        assert client.get("/api/news").status_code == 400

    def test_blank_topic_is_400(self, client):
        assert client.get("/api/news?topic=%20%20").status_code == 400

    def test_returns_canned_articles_for_topic(self, client):
        response = client.get("/api/news", query_string={"topic": "quantum computing advances"})
        data = response.get_json()

        expected = canned_articles("quantum computing advances")
        assert response.status_code == 200
        assert [a["title"] for a in data["articles"]] == [a.title for a in expected]
        assert data["cached"] is False

    def test_speech_text_is_title_and_summary(self, client):
        data = client.get("/api/news?topic=space").get_json()
        article = data["articles"][0]
        assert article["speech_text"].startswith(article["title"].rstrip("."))
        assert article["speech_text"].endswith(article["summary"])

    def test_second_request_is_cached(self, client):
        client.get("/api/news?topic=space")
        assert client.get("/api/news?topic=space").get_json()["cached"] is True

    def test_generation_error_is_502(self, settings, store, http):
        news = MagicMock(spec=NewsService)
        news.get_news.side_effect = GenerationError("Claude API error: boom")
        client = create_app(settings, store=store, news=news, http=http).test_client()

        response = client.get("/api/news?topic=ai")

        assert response.status_code == 502
        assert response.get_json() == {"error": "Claude API error: boom"}

    def test_works_without_redis(self, settings, down_store, http):
        settings.news_source = "mock"
        client = create_app(settings, store=down_store, http=http).test_client()
        response = client.get("/api/news?topic=ai")
        assert response.status_code == 200
        assert len(response.get_json()["articles"]) == 5


class TestSessions:
    def test_create_and_fetch(self, client):
        created = client.post("/api/session")
        assert created.status_code == 201
        session_id = created.get_json()["session_id"]

        client.get("/api/news", query_string={"topic": "space", "session_id": session_id})
        data = client.get(f"/api/session/{session_id}").get_json()

        assert data["session_id"] == session_id
        assert data["topics"] == ["space"]

    def test_unknown_session_is_404(self, client):
        assert client.get("/api/session/missing").status_code == 404

    def test_create_without_redis_is_503(self, settings, down_store, http):
        client = create_app(settings, store=down_store, http=http).test_client()
        assert client.post("/api/session").status_code == 503


class TestSimilarAnalyticsHealth:
    def test_similar_topics(self, client):
        client.get("/api/news", query_string={"topic": "space exploration"})
        results = client.get("/api/similar", query_string={"q": "space exploration"}).get_json()
        assert results[0]["content"] == "space exploration"
        assert results[0]["score"] == pytest.approx(1.0)

    def test_similar_non_positive_limit_returns_best_match(self, client):
        client.get("/api/news", query_string={"topic": "space exploration"})
        client.get("/api/news", query_string={"topic": "space exploring"})
        for limit in ("-1", "0"):
            results = client.get(
                "/api/similar", query_string={"q": "space exploration", "limit": limit}
            ).get_json()
            assert [r["content"] for r in results] == ["space exploration"]

    def test_similar_result_fields_for_ui(self, client):
        client.get("/api/news", query_string={"topic": "space exploration"})
        results = client.get("/api/similar", query_string={"q": "space"}).get_json()
        assert set(results[0]) == {"id", "score", "content"}
        assert 0 < results[0]["score"] <= 1

    def test_similar_requires_query(self, client):
        assert client.get("/api/similar").status_code == 400

    def test_analytics(self, client):
        client.get("/api/news?topic=space")
        client.get("/api/news?topic=space")
        data = client.get("/api/analytics").get_json()
        assert data["total_requests"] == 2
        assert data["popular_topics"] == [{"topic": "space", "count": 2}]

    def test_health(self, client):
        assert client.get("/api/health").get_json() == {"redis": True}

    def test_health_down(self, settings, down_store, http):
        client = create_app(settings, store=down_store, http=http).test_client()
        assert client.get("/api/health").get_json() == {"redis": False}


class TestProxy:
    def test_options_preflight(self, client):
        response = client.options("/api/proxy")
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_missing_url_is_400(self, client):
        response = client.get("/api/proxy")
        assert response.status_code == 400
        assert response.get_json() == {"error": "URL parameter is required"}

    def test_disallowed_host_is_400(self, client, http):
        response = client.get("/api/proxy", query_string={"url": "https://example.com/rss"})
        assert response.status_code == 400
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        http.get.assert_not_called()

    def test_allowed_host_relayed(self, client, http):
        http.get.return_value = upstream(body=b"<rss>ok</rss>")
        response = client.get(
            "/api/proxy", query_string={"url": "https://news.google.com/rss/search?q=ai"}
        )
        assert response.status_code == 200
        assert response.data == b"<rss>ok</rss>"
        assert response.headers["Content-Type"] == "application/rss+xml"

    def test_upstream_status_relayed(self, client, http):
        http.get.return_value = upstream(status=503)
        response = client.get("/api/proxy", query_string={"url": "https://rss.cnn.com/rss/edition.rss"})
        assert response.status_code == 503
        assert "error" in response.get_json()

    def test_upstream_redirect_not_relayed(self, client, http):
        redirect = upstream(status=302, body=b"secret")
        redirect.ok = True
        redirect.headers["Location"] = "http://169.254.169.254/latest/meta-data/"
        http.get.return_value = redirect

        response = client.get("/api/proxy", query_string={"url": "https://rss.cnn.com/rss/edition.rss"})

        assert response.status_code == 302
        assert b"secret" not in response.data
        assert http.get.call_args.kwargs["allow_redirects"] is False

    def test_timeout_is_408(self, client, http):
        http.get.side_effect = requests.Timeout("slow")
        response = client.get("/api/proxy", query_string={"url": "https://rss.cnn.com/rss/edition.rss"})
        assert response.status_code == 408
