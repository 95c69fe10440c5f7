"""Tests for the HTTP fetch layer."""

import pytest
import requests

from conftest import FakeResponse, FakeSession
from config import DEFAULT_USER_AGENT, MAX_REDIRECTS
from crawler.fetcher import (
    NetworkError,
    fetch_head,
    fetch_page,
    fetch_without_redirect,
    follow_redirect_chain,
)
from models import FetchOptions


class TestFollowRedirectChain:
    """Manual hop-by-hop redirect following."""

    def test_no_redirect(self):
        session = FakeSession({"https://a.com/": FakeResponse(200)})
        chain = follow_redirect_chain("https://a.com/", session)

        assert chain.hops == []
        assert chain.final_url == "https://a.com/"
        assert chain.is_circular is False

    def test_three_hop_chain(self):
        session = FakeSession({
            "http://a.com/": FakeResponse(301, headers={"Location": "https://a.com/"}),
            "https://a.com/": FakeResponse(301, headers={"Location": "https://www.a.com/"}),
            "https://www.a.com/": FakeResponse(308, headers={"Location": "/home"}),
            "https://www.a.com/home": FakeResponse(200),
        })
        chain = follow_redirect_chain("http://a.com/", session)

        assert [h.status for h in chain.hops] == [301, 301, 308]
        # Relative Location values are resolved against the hop URL
        assert chain.hops[2].location == "https://www.a.com/home"
        assert chain.final_url == "https://www.a.com/home"
        assert chain.is_circular is False

    def test_loop_is_detected(self):
        session = FakeSession({
            "https://a.com/x": FakeResponse(302, headers={"Location": "https://a.com/y"}),
            "https://a.com/y": FakeResponse(302, headers={"Location": "https://a.com/x"}),
        })
        chain = follow_redirect_chain("https://a.com/x", session)

        assert chain.is_circular is True
        assert len(chain.hops) == 2
        assert chain.final_url == "https://a.com/x"

    def test_self_redirect_terminates(self):
        session = FakeSession({"https://a.com/": FakeResponse(301, headers={"Location": "https://a.com/"})})
        chain = follow_redirect_chain("https://a.com/", session)

        assert chain.is_circular is True
        assert len(session.calls) == 1

    def test_hop_limit_bounds_requests(self):
        routes = {
            f"https://a.com/{i}": FakeResponse(301, headers={"Location": f"https://a.com/{i + 1}"})
            for i in range(MAX_REDIRECTS + 5)
        }
        session = FakeSession(routes)
        chain = follow_redirect_chain("https://a.com/0", session)

        assert len(session.calls) == MAX_REDIRECTS
        assert chain.is_circular is False

    def test_3xx_without_location_ends_chain(self):
        session = FakeSession({"https://a.com/": FakeResponse(304)})
        chain = follow_redirect_chain("https://a.com/", session)

        assert chain.hops == []
        assert chain.final_url == "https://a.com/"

    def test_requests_do_not_follow_redirects(self):
        session = FakeSession({"https://a.com/": FakeResponse(200)})
        follow_redirect_chain("https://a.com/", session)

        assert session.calls == [("GET", "https://a.com/", False)]

    def test_unreachable_hop_keeps_partial_chain(self):
        session = FakeSession({
            "https://a.com/": FakeResponse(301, headers={"Location": "https://a.com/b"}),
            "https://a.com/b": FakeResponse(302, headers={"Location": "https://cdn.a.net/c"}),
            "https://cdn.a.net/c": requests.exceptions.ConnectionError("refused"),
        })
        chain = follow_redirect_chain("https://a.com/", session)

        assert [h.url for h in chain.hops] == ["https://a.com/", "https://a.com/b"]
        assert chain.final_url == "https://cdn.a.net/c"
        assert chain.interrupted is True
        assert chain.is_circular is False

    def test_unreachable_first_request(self):
        session = FakeSession({"https://a.com/": requests.exceptions.Timeout("slow")})
        chain = follow_redirect_chain("https://a.com/", session)

        assert chain.hops == []
        assert chain.final_url == "https://a.com/"
        assert chain.interrupted is True

    def test_completed_chain_is_not_interrupted(self):
        session = FakeSession({"https://a.com/": FakeResponse(200)})
        assert follow_redirect_chain("https://a.com/", session).interrupted is False


class TestFetchPage:
    """fetch_page resolves the chain, then downloads the final URL."""

    def test_returns_final_url_and_lowercased_headers(self):
        session = FakeSession({
            "https://a.com/": FakeResponse(301, headers={"Location": "https://a.com/en/"}),
            "https://a.com/en/": FakeResponse(200, text="<html></html>", headers={"X-Powered-By": "Next.js"}),
        })
        page = fetch_page("https://a.com/", session)

        assert page.status == 200
        assert page.final_url == "https://a.com/en/"
        assert page.body == "<html></html>"
        assert page.headers["x-powered-by"] == "Next.js"

    def test_fetch_without_redirect_returns_3xx(self):
        session = FakeSession({"https://a.com/": FakeResponse(308, headers={"Location": "/b"})})
        result = fetch_without_redirect("https://a.com/", session)

        assert result.status == 308
        assert result.headers["location"] == "/b"

    def test_fetch_head_uses_head_method(self):
        session = FakeSession({("HEAD", "https://a.com/img.png"): FakeResponse(200, headers={"Content-Length": "10"})})
        result = fetch_head("https://a.com/img.png", session)

        assert result.status == 200
        assert result.headers["content-length"] == "10"
        assert session.calls[0][0] == "HEAD"


class TestNetworkErrors:
    """Every requests failure surfaces as NetworkError."""

    @pytest.mark.parametrize("exc", [
        requests.exceptions.Timeout("slow"),
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.SSLError("bad cert"),
        requests.exceptions.InvalidURL("nope"),
    ])
    def test_request_exceptions_are_wrapped(self, exc):
        session = FakeSession({"https://a.com/": exc})

        with pytest.raises(NetworkError) as info:
            fetch_head("https://a.com/", session)
        assert info.value.url == "https://a.com/"

    def test_timeout_reason_mentions_timeout(self):
        session = FakeSession({"https://a.com/": requests.exceptions.Timeout("slow")})

        with pytest.raises(NetworkError) as info:
            fetch_page("https://a.com/", session, FetchOptions(timeout_ms=2500))
        assert "2500 ms" in info.value.reason


class TestRequestOptions:
    def test_default_user_agent_and_timeout(self):
        session = FakeSession()
        captured = {}

        def request(method, url, headers=None, timeout=None, allow_redirects=True):
            captured.update(headers=headers, timeout=timeout)
            return FakeResponse(200)

        session.request = request
        fetch_head("https://a.com/", session)

        assert captured["headers"]["User-Agent"] == DEFAULT_USER_AGENT
        assert captured["timeout"] == 10.0

    def test_custom_user_agent(self):
        session = FakeSession()
        captured = {}

        def request(method, url, headers=None, timeout=None, allow_redirects=True):
            captured.update(headers=headers, timeout=timeout)
            return FakeResponse(200)

        session.request = request
        fetch_head("https://a.com/", session, FetchOptions(timeout_ms=500, user_agent="MyBot/1.0"))

        assert captured["headers"]["User-Agent"] == "MyBot/1.0"
        assert captured["timeout"] == 0.5
