"""Tests for the performance analyzer."""

from conftest import codes, html_page, make_context
from analyzers.performance import PerformanceAnalyzer
from models import PerformanceCode, Severity


def run(html):
    ctx = make_context(cached_html=html, cached_headers={})
    return PerformanceAnalyzer().analyze(ctx)


class TestPerformanceAnalyzer:

    def test_lean_page(self):
        assert run(html_page("<title>x</title>", "<p>hello</p>")) == []

    def test_large_html_is_info(self):
        findings = run(html_page(body="x" * 600_000))

        assert codes(findings) == [PerformanceCode.HTML_SIZE_WARNING]
        assert findings[0].severity == Severity.INFO

    def test_very_large_html_is_warning(self):
        findings = run(html_page(body="x" * 1_100_000))

        assert codes(findings) == [PerformanceCode.HTML_SIZE_WARNING]
        assert findings[0].severity == Severity.WARNING
        assert findings[0].details["bytes"] > 1_048_576

    def test_render_blocking_scripts(self):
        head = (
            '<script src="/blocking.js"></script>'
            "<script>window.x = 1;</script>"
            '<script src="/a.js" async></script>'
            '<script src="/d.js" defer></script>'
            '<script type="module" src="/m.js"></script>'
            '<script type="application/ld+json">{}</script>'
        )
        findings = run(html_page(head))

        assert codes(findings) == [PerformanceCode.RENDER_BLOCKING_SCRIPT] * 2
        assert [f.details["script"] for f in findings] == ["/blocking.js", "inline"]

    def test_body_scripts_are_not_render_blocking(self):
        assert run(html_page(body='<script src="/late.js"></script>')) == []

    def test_large_inline_style(self):
        findings = run(html_page("<style>" + "a{}" * 20_000 + "</style><style>b{}</style>"))

        assert codes(findings) == [PerformanceCode.LARGE_INLINE_STYLE]
        assert findings[0].details == {"bytes": 60_000}

    def test_missing_preconnect(self):
        head = (
            '<link rel="preconnect" href="https://fonts.gstatic.com">'
            '<link rel="stylesheet" href="https://fonts.googleapis.com/css2?family=Inter">'
        )
        body = '<img src="https://cdn.example.com/a.png" alt="a"><img src="/local.png" alt="b">'
        findings = run(html_page(head, body))

        assert codes(findings) == [PerformanceCode.MISSING_PRECONNECT]
        assert findings[0].details == {"origins": ["https://fonts.googleapis.com", "https://cdn.example.com"]}
