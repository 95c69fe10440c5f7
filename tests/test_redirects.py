"""Tests for the redirect analyzer."""

import pytest
import requests

from conftest import FakeResponse, codes, html_page, make_context
from analyzers.redirects import RedirectsAnalyzer
from models import Category, RedirectCode, Severity

HOME = "https://example.com/"


def moved(location, status=301):
    return FakeResponse(status, headers={"Location": location})


class TestRedirectsAnalyzer:

    @pytest.fixture
    def analyzer(self):
        return RedirectsAnalyzer()

    def test_clean_site_only_passes_https_check(self, analyzer):
        routes = {
            HOME: FakeResponse(200, html_page("<title>Home</title>")),
            "http://example.com/": moved(HOME),
        }
        findings = analyzer.analyze(make_context(routes))

        assert codes(findings) == [RedirectCode.HTTP_TO_HTTPS_REDIRECT]
        assert findings[0].severity == Severity.PASS
        assert findings[0].category == Category.REDIRECT

    def test_loop_is_reported_once(self, analyzer):
        routes = {
            HOME: moved("https://example.com/x"),
            "https://example.com/x": moved(HOME),
        }
        findings = analyzer.analyze(make_context(routes))
        loops = [f for f in findings if f.code == RedirectCode.REDIRECT_LOOP]

        assert len(loops) == 1
        assert loops[0].severity == Severity.ERROR
        assert RedirectCode.REDIRECT_CHAIN not in codes(findings)

    def test_three_hop_chain(self, analyzer):
        routes = {
            HOME: moved("https://example.com/a"),
            "https://example.com/a": moved("https://example.com/b"),
            "https://example.com/b": moved("https://example.com/final"),
            "https://example.com/final": FakeResponse(200, html_page()),
        }
        findings = analyzer.analyze(make_context(routes))
        chain = [f for f in findings if f.code == RedirectCode.REDIRECT_CHAIN]

        assert len(chain) == 1
        assert chain[0].message == "Redirect chain with 3 hops detected"
        assert len(chain[0].details["hops"]) == 3
        assert chain[0].details["final_url"] == "https://example.com/final"

    def test_single_hop_is_not_a_chain(self, analyzer):
        routes = {
            HOME: moved("https://www.example.com/"),
            "https://www.example.com/": FakeResponse(200, html_page()),
        }
        assert RedirectCode.REDIRECT_CHAIN not in codes(analyzer.analyze(make_context(routes)))

    def test_http_not_redirected(self, analyzer):
        routes = {
            HOME: FakeResponse(200, html_page()),
            "http://example.com/": FakeResponse(200, html_page()),
        }
        findings = analyzer.analyze(make_context(routes))

        assert RedirectCode.HTTP_NO_HTTPS_REDIRECT in codes(findings)
        finding = next(f for f in findings if f.code == RedirectCode.HTTP_NO_HTTPS_REDIRECT)
        assert finding.url == "http://example.com/"

    def test_https_probe_skipped_for_http_sites(self, analyzer):
        ctx = make_context({"http://example.com/": FakeResponse(200, html_page())}, url="http://example.com/")
        findings = analyzer.analyze(ctx)

        assert RedirectCode.HTTP_TO_HTTPS_REDIRECT not in codes(findings)
        assert RedirectCode.HTTP_NO_HTTPS_REDIRECT not in codes(findings)

    def test_trailing_slash_removal(self, analyzer):
        url = "https://example.com/docs/"
        routes = {
            url: FakeResponse(200, html_page()),
            "https://example.com/docs": moved(url, 308),
        }
        findings = analyzer.analyze(make_context(routes, url=url))
        slash = next(f for f in findings if f.code == RedirectCode.TRAILING_SLASH_REDIRECT)

        assert slash.message == "Trailing slash removal causes 308 redirect"
        assert slash.details == {"tested_url": "https://example.com/docs", "status": 308}
        assert slash.severity == Severity.INFO

    def test_meta_refresh(self, analyzer):
        body = html_page('<meta http-equiv="refresh" content="0;url=https://example.com/new">')
        findings = analyzer.analyze(make_context({HOME: FakeResponse(200, body)}))
        refresh = next(f for f in findings if f.code == RedirectCode.META_REFRESH_REDIRECT)

        assert refresh.details == {"target_url": "https://example.com/new"}

    def test_common_page_chain(self, analyzer):
        routes = {
            HOME: FakeResponse(200, html_page()),
            "https://example.com/about": moved("https://example.com/about/"),
            "https://example.com/about/": moved("https://example.com/company"),
            "https://example.com/company": FakeResponse(200),
        }
        findings = analyzer.analyze(make_context(routes))
        page = next(f for f in findings if f.code == RedirectCode.COMMON_PAGE_REDIRECT)

        assert page.url == "https://example.com/about"
        assert page.message == "/about has a 2-hop redirect chain"

    def test_requested_pages_replace_defaults(self, analyzer):
        ctx = make_context({HOME: FakeResponse(200, html_page())}, requested_pages=["/pricing-v2"])
        analyzer.analyze(ctx)

        assert ctx.session.called("https://example.com/pricing-v2") == 1
        assert ctx.session.called("https://example.com/about") == 0

    def test_unreachable_homepage_yields_no_chain_findings(self, analyzer):
        ctx = make_context({HOME: requests.exceptions.ConnectionError("down")})
        findings = analyzer.analyze(ctx)

        assert RedirectCode.REDIRECT_LOOP not in codes(findings)
        assert RedirectCode.REDIRECT_CHAIN not in codes(findings)

    def test_chain_ending_at_unreachable_host(self, analyzer):
        routes = {
            HOME: moved("https://example.com/a"),
            "https://example.com/a": moved("https://cdn.example.net/home"),
            "https://cdn.example.net/home": requests.exceptions.ConnectionError("refused"),
        }
        findings = analyzer.analyze(make_context(routes))
        chain = next(f for f in findings if f.code == RedirectCode.REDIRECT_CHAIN)

        assert chain.message == "Redirect chain with 2 hops detected"
        assert chain.details["final_url"] == "https://cdn.example.net/home"

    def test_unreachable_http_variant_is_skipped(self, analyzer):
        routes = {
            HOME: FakeResponse(200, html_page()),
            "http://example.com/": requests.exceptions.ConnectionError("port 80 closed"),
        }
        findings = analyzer.analyze(make_context(routes))

        assert RedirectCode.HTTP_NO_HTTPS_REDIRECT not in codes(findings)
        assert RedirectCode.HTTP_TO_HTTPS_REDIRECT not in codes(findings)
