"""
Pytest configuration and fixtures for the SEO audit tests.

Network access is replaced by FakeSession, a stand-in for requests.Session that
serves canned responses keyed by URL (or by (METHOD, URL) when a test needs
GET and HEAD to differ). Unknown URLs answer 404.
"""
from __future__ import annotations

from typing import Optional

import pytest

from models import AuditContext, FetchOptions

SITE = "https://example.com/"


class FakeResponse:
    def __init__(self, status: int = 200, text: str = "", headers: Optional[dict] = None):
        self.status_code = status
        self.text = text
        self.headers = headers or {}

    def close(self):
        pass


class FakeSession:
    def __init__(self, routes: Optional[dict] = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, bool]] = []
        self.closed = False

    def request(self, method, url, headers=None, timeout=None, allow_redirects=True):
        self.calls.append((method, url, allow_redirects))
        route = self.routes.get((method, url), self.routes.get(url))
        if route is None:
            return FakeResponse(404)
        if isinstance(route, Exception):
            raise route
        return route

    def called(self, url: str, method: Optional[str] = None) -> int:
        return sum(1 for m, u, _ in self.calls if u == url and (method is None or m == method))

    def close(self):
        self.closed = True


def html_page(head: str = "", body: str = "") -> str:
    return f"<!DOCTYPE html><html><head>{head}</head><body>{body}</body></html>"


def make_context(routes: Optional[dict] = None, url: str = SITE, **kwargs) -> AuditContext:
    return AuditContext(
        target_url=url,
        normalized_url=url,
        fetch_options=FetchOptions(timeout_ms=1000),
        session=FakeSession(routes),
        **kwargs,
    )


def codes(findings) -> list[str]:
    return [f.code for f in findings]


@pytest.fixture
def ctx_factory():
    """Build an AuditContext around a FakeSession with the given routes."""
    return make_context
