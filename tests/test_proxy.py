"""Tests for newsroom/proxy.py — allow-list and status mapping."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from newsroom.proxy import UPSTREAM_HEADERS, ProxyError, forward, is_allowed

FEED_URL = "https://feeds.bbci.co.uk/news/rss.xml"


def upstream(status: int = 200, body: bytes = b"<rss/>", content_type="application/rss+xml"):
    response = MagicMock()
    response.status_code = status
    # requests reports 3xx as ok
    response.ok = status < 400
    response.reason = {404: "Not Found", 302: "Found"}.get(status, "OK")
    response.content = body
    response.headers = {"Content-Type": content_type} if content_type else {}
    return response


class TestIsAllowed:
    def test_allowed_domain(self):
        assert is_allowed("https://news.google.com/rss/search?q=ai") is True

    def test_subdomain_allowed(self):
        assert is_allowed("https://www.feeds.nature.com/nature/rss") is True

    def test_other_domain_rejected(self):
        assert is_allowed("https://example.com/rss") is False

    def test_lookalike_domain_rejected(self):
        assert is_allowed("https://news.google.com.attacker.example/rss") is False

    def test_non_http_scheme_rejected(self):
        assert is_allowed("file://news.google.com/etc/passwd") is False

    def test_garbage_rejected(self):
        assert is_allowed("not a url") is False


class TestForward:
    def test_missing_url_is_400(self):
        with pytest.raises(ProxyError) as info:
            forward(None)
        assert info.value.status == 400
        assert info.value.to_dict() == {"error": "URL parameter is required"}

    def test_disallowed_domain_is_400(self):
        session = MagicMock()
        with pytest.raises(ProxyError) as info:
            forward("https://example.com/feed", session=session)
        assert info.value.status == 400
        assert info.value.error == "Domain not allowed"
        session.get.assert_not_called()

    def test_success_relays_verbatim(self):
        session = MagicMock()
        session.get.return_value = upstream(body=b"<rss>data</rss>", content_type="text/xml; charset=utf-8")

        result = forward(FEED_URL, session=session, timeout=3)

        assert result.status == 200
        assert result.body == b"<rss>data</rss>"
        assert result.content_type == "text/xml; charset=utf-8"
        session.get.assert_called_once_with(
            FEED_URL, headers=UPSTREAM_HEADERS, timeout=3, allow_redirects=False
        )

    def test_missing_content_type_defaults_to_text(self):
        session = MagicMock()
        session.get.return_value = upstream(content_type=None)
        assert forward(FEED_URL, session=session).content_type == "text/plain"

    def test_upstream_error_status_passed_through(self):
        session = MagicMock()
        session.get.return_value = upstream(status=404)
        with pytest.raises(ProxyError) as info:
            forward(FEED_URL, session=session)
        assert info.value.status == 404
        assert "Not Found" in info.value.error

    def test_redirect_is_not_followed_or_relayed(self):
        session = MagicMock()
        response = upstream(status=302, body=b"instance metadata")
        response.headers["Location"] = "http://169.254.169.254/latest/meta-data/"
        session.get.return_value = response

        with pytest.raises(ProxyError) as info:
            forward(FEED_URL, session=session)

        assert info.value.status == 302
        assert "Found" in info.value.error
        assert "instance metadata" not in str(info.value.to_dict())
        assert session.get.call_args.kwargs["allow_redirects"] is False

    def test_timeout_is_408(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("timed out")
        with pytest.raises(ProxyError) as info:
            forward(FEED_URL, session=session)
        assert info.value.status == 408

    def test_other_failure_is_500(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ProxyError) as info:
            forward(FEED_URL, session=session)
        assert info.value.status == 500
        assert info.value.to_dict() == {"error": "Internal server error", "message": "refused"}
