"""
Performance analyzer: HTML weight, render-blocking scripts, inline CSS size,
preconnect hints for third-party origins.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from config import LARGE_HTML_SIZE_BYTES, LARGE_INLINE_STYLE_BYTES, VERY_LARGE_HTML_SIZE_BYTES
from crawler.fetcher import NetworkError
from crawler.parser import (
    get_inline_styles,
    get_preconnect_hrefs,
    get_render_blocking_scripts,
    get_resource_urls,
    make_soup,
)
from crawler.urls import get_origin, resolve_url
from models import AuditContext, Category, Finding, PerformanceCode

_KB = 1024


class PerformanceAnalyzer(BaseAnalyzer):
    name = "performance"
    category = Category.PERFORMANCE

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url
        try:
            html, _ = self.load_homepage(ctx)
        except NetworkError:
            return []

        findings: list[Finding] = []
        soup = make_soup(html)

        # ── Document size ──────────────────────────────────────────────────────
        html_size = len(html.encode("utf-8"))
        if html_size > VERY_LARGE_HTML_SIZE_BYTES:
            findings.append(self.warning(
                PerformanceCode.HTML_SIZE_WARNING,
                f"HTML document is {html_size / _KB:.0f} KB (exceeds 1 MB)",
                "Very large HTML documents increase Time to First Byte (TTFB) and slow down parsing, "
                "hurting Core Web Vitals and SEO rankings.",
                "Reduce HTML size by deferring non-critical content, paginating long lists, "
                "or lazy-loading below-the-fold sections.",
                details={"bytes": html_size},
                url=url,
            ))
        elif html_size > LARGE_HTML_SIZE_BYTES:
            findings.append(self.info(
                PerformanceCode.HTML_SIZE_WARNING,
                f"HTML document is {html_size / _KB:.0f} KB (exceeds 500 KB)",
                "Large HTML documents can slow down initial page load and parsing, which may negatively "
                "affect Core Web Vitals.",
                "Consider reducing HTML size by deferring non-critical content or lazy-loading below-the-fold sections.",
                details={"bytes": html_size},
                url=url,
            ))

        # ── Render-blocking scripts ────────────────────────────────────────────
        for script in get_render_blocking_scripts(soup):
            findings.append(self.warning(
                PerformanceCode.RENDER_BLOCKING_SCRIPT,
                'Render-blocking <script> found in <head> without async, defer, or type="module"',
                "Scripts in <head> without async or defer block HTML parsing until they are downloaded "
                "and executed, delaying First Contentful Paint.",
                "Add the async or defer attribute to <script> tags in <head>, or move them to the end of <body>.",
                details={"script": script},
                url=url,
            ))

        # ── Inline styles ──────────────────────────────────────────────────────
        for style in get_inline_styles(soup):
            style_size = len(style.encode("utf-8"))
            if style_size > LARGE_INLINE_STYLE_BYTES:
                findings.append(self.warning(
                    PerformanceCode.LARGE_INLINE_STYLE,
                    f"Inline <style> block is {style_size / _KB:.0f} KB (exceeds 50 KB)",
                    "Large inline style blocks increase HTML size and cannot be cached separately by the "
                    "browser, slowing down repeat visits.",
                    "Extract large CSS into external stylesheets that can be cached independently.",
                    details={"bytes": style_size},
                    url=url,
                ))

        # ── Preconnect ─────────────────────────────────────────────────────────
        missing = self._origins_without_preconnect(soup, url)
        if missing:
            findings.append(self.info(
                PerformanceCode.MISSING_PRECONNECT,
                f'No <link rel="preconnect"> for {len(missing)} third-party origin(s)',
                "Preconnect hints allow the browser to set up connections to third-party origins early, "
                "reducing latency for critical resources.",
                f'Add <link rel="preconnect" href="..."> for: {", ".join(missing)}',
                details={"origins": missing},
                url=url,
            ))

        return findings

    @staticmethod
    def _origins_without_preconnect(soup, page_url: str) -> list[str]:
        page_origin = get_origin(page_url)

        third_party: list[str] = []
        for ref in get_resource_urls(soup):
            try:
                resolved = resolve_url(page_url, ref)
            except ValueError:
                continue
            if not resolved.startswith(("http://", "https://")):
                continue
            origin = get_origin(resolved)
            if origin != page_origin and origin not in third_party:
                third_party.append(origin)

        if not third_party:
            return []

        preconnected = set()
        for href in get_preconnect_hrefs(soup):
            try:
                preconnected.add(get_origin(resolve_url(page_url, href)))
            except ValueError:
                continue

        return [origin for origin in third_party if origin not in preconnected]
