"""Allow-listed HTTP GET forwarding for RSS feeds.

``forward(url)`` validates the target host and returns the upstream
response untouched, or raises ``ProxyError`` carrying the HTTP status the
web layer should answer with:

* 400 — missing URL, unparseable URL, or host not on the allow-list
* upstream status — the upstream answered with a non-2xx status; redirects
  are not followed, so a 3xx is reported as-is and its body is never relayed
* 408 — the upstream did not answer within the timeout
* 500 — any other fetch failure
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

ALLOWED_DOMAINS: frozenset[str] = frozenset([
    "news.google.com",
    "rss.cnn.com",
    "feeds.bbci.co.uk",
    "rss.nytimes.com",
    "feeds.reuters.com",
    "rss.sciencedaily.com",
    "feeds.nature.com",
])

UPSTREAM_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; RSS-Proxy/1.0)",
    "Accept": "application/rss+xml, application/xml, text/xml, */*",
}

DEFAULT_TIMEOUT = 10.0


class ProxyError(Exception):
    """A proxy failure mapped to an HTTP status."""

    def __init__(self, status: int, error: str, message: Optional[str] = None) -> None:
        super().__init__(message or error)
        self.status = status
        self.error = error
        self.message = message

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


@dataclass
class ProxyResponse:
    """A successful upstream response to relay."""

    status: int
    content_type: str
    body: bytes


def is_allowed(url: str) -> bool:
    """Return True if *url* is http(s) and its host is an allow-listed domain or subdomain.

    Examples:
        >>> is_allowed("https://news.google.com/rss")
        True
        >>> is_allowed("https://news.google.com.evil.example/rss")
        False
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    return any(host == d or host.endswith("." + d) for d in ALLOWED_DOMAINS)


def forward(
    url: Optional[str],
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ProxyResponse:
    """Fetch *url* on behalf of the browser.

    Raises:
        ProxyError: See the module docstring for the status mapping.
    """
    if not url:
        raise ProxyError(400, "URL parameter is required")
    if not is_allowed(url):
        logger.warning("Proxy rejected URL %r", url)
        raise ProxyError(400, "Domain not allowed")

    http = session or requests
    try:
        # redirects are not followed: the Location host may be off the allow-list
        response = http.get(
            url, headers=UPSTREAM_HEADERS, timeout=timeout, allow_redirects=False
        )
    except requests.Timeout as exc:
        logger.warning("Proxy timeout for %s", url)
        raise ProxyError(408, "Request timeout", str(exc)) from exc
    except requests.RequestException as exc:
        logger.error("Proxy error for %s: %s", url, exc)
        raise ProxyError(500, "Internal server error", str(exc)) from exc

    if not 200 <= response.status_code < 300:
        logger.warning("Proxy upstream %s answered %d", url, response.status_code)
        raise ProxyError(
            response.status_code,
            f"Failed to fetch RSS feed: {response.reason}",
        )

    return ProxyResponse(
        status=response.status_code,
        content_type=response.headers.get("Content-Type", "text/plain"),
        body=response.content,
    )
