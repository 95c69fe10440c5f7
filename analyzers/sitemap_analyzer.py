"""
Sitemap analyzer: fetches /sitemap.xml, validates it, samples its URLs and
cross-checks the robots.txt Sitemap directive. Populates ctx.cached_sitemap_urls
for crawl mode.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from config import SITEMAP_SAMPLE_SIZE
from crawler.fetcher import NetworkError, fetch_head, fetch_page, follow_redirect_chain
from crawler.robots import parse_robots
from crawler.sitemap import SitemapParseError, parse_sitemap_xml, sitemap_url
from logging_config import get_logger
from models import AuditContext, Category, Finding, SitemapCode, SitemapDocument

logger = get_logger(__name__)


class SitemapAnalyzer(BaseAnalyzer):
    name = "sitemap"
    category = Category.SITEMAP

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        findings: list[Finding] = []
        url = sitemap_url(ctx.normalized_url)

        # ── Redirected sitemap ────────────────────────────────────────────────
        chain = follow_redirect_chain(url, ctx.session, ctx.fetch_options)
        final_url = chain.final_url
        if chain.hops:
            findings.append(self.warning(
                SitemapCode.SITEMAP_REDIRECTED,
                "Sitemap URL is redirected",
                "Some search engines may not follow redirects to sitemaps, which could cause discovery issues.",
                "Serve the sitemap directly at /sitemap.xml without redirects.",
                details={"hops": chain.hops_as_dicts(), "final_url": chain.final_url},
                url=url,
            ))

        # ── Fetch ─────────────────────────────────────────────────────────────
        try:
            resp = fetch_page(url, ctx.session, ctx.fetch_options)
        except NetworkError:
            findings.append(self.warning(
                SitemapCode.SITEMAP_MISSING,
                "sitemap.xml could not be fetched",
                "Without a sitemap, search engines rely solely on crawling to discover your pages.",
                "Ensure sitemap.xml is accessible at the root of your domain.",
                url=url,
            ))
            return findings

        if resp.status != 200:
            findings.append(self.warning(
                SitemapCode.SITEMAP_MISSING,
                "sitemap.xml not found",
                "Without a sitemap, search engines rely solely on crawling to discover your pages, which may miss content.",
                "Generate a sitemap.xml. In Next.js App Router, export a sitemap function from app/sitemap.ts.",
                details={"status": resp.status},
                url=url,
            ))
            return findings

        # ── Parse ─────────────────────────────────────────────────────────────
        try:
            document = parse_sitemap_xml(resp.body)
        except SitemapParseError as exc:
            findings.append(self.error(
                SitemapCode.SITEMAP_INVALID_XML,
                "sitemap.xml contains invalid XML",
                "Search engines cannot read malformed sitemap files.",
                "Validate and fix your sitemap XML structure.",
                details={"error": str(exc)},
                url=url,
            ))
            return findings

        if document.is_index:
            findings.append(self.passed(
                SitemapCode.SITEMAP_INDEX_FOUND,
                f"Sitemap index found with {len(document.sitemaps)} sitemap(s)",
                "A sitemap index is a valid approach for organizing large sitemaps.",
                "No action needed.",
                details={"sitemaps": list(document.sitemaps)},
                url=url,
            ))
            ctx.cached_sitemap_urls = self._first_child_urls(ctx, document)
            return findings

        ctx.cached_sitemap_urls = [entry.loc for entry in document.urls]

        if not document.urls:
            findings.append(self.warning(
                SitemapCode.SITEMAP_EMPTY,
                "Sitemap contains no URLs",
                "An empty sitemap provides no value for search engine crawling.",
                "Add your site pages to the sitemap.",
                url=url,
            ))
            return findings

        # ── Sample URL status ─────────────────────────────────────────────────
        sample = document.urls[:SITEMAP_SAMPLE_SIZE]
        error_count = 0
        for entry in sample:
            try:
                result = fetch_head(entry.loc, ctx.session, ctx.fetch_options)
            except NetworkError:
                # One unreachable entry is not a finding
                continue
            if result.status >= 400:
                error_count += 1
                findings.append(self.warning(
                    SitemapCode.SITEMAP_URL_ERROR,
                    f"Sitemap URL returns {result.status}: {entry.loc}",
                    "Sitemap URLs returning error status codes waste crawl budget and signal poor site quality.",
                    "Remove broken URLs from the sitemap or fix the underlying pages.",
                    details={"status": result.status},
                    url=entry.loc,
                ))

        if error_count == 0:
            findings.append(self.passed(
                SitemapCode.SITEMAP_OK,
                f"Sitemap found with {len(document.urls)} URLs ({len(sample)} sampled, all OK)",
                "Your sitemap is valid and URLs are accessible.",
                "No action needed.",
                url=url,
            ))

        # ── robots.txt cross-check ────────────────────────────────────────────
        if ctx.cached_robots_txt:
            robots_sitemaps = parse_robots(ctx.cached_robots_txt).sitemap_urls
            if robots_sitemaps and url not in robots_sitemaps and final_url not in robots_sitemaps:
                findings.append(self.info(
                    SitemapCode.SITEMAP_ROBOTS_MISMATCH,
                    "Sitemap URL in robots.txt does not match /sitemap.xml",
                    "Mismatched sitemap URLs between robots.txt and the default location may confuse crawlers.",
                    "Ensure robots.txt Sitemap directive matches your actual sitemap URL.",
                    details={"robots_sitemaps": robots_sitemaps},
                    url=url,
                ))

        return findings

    @staticmethod
    def _first_child_urls(ctx: AuditContext, index: SitemapDocument) -> list[str]:
        """Page URLs of the first child sitemap only; [] when it cannot be read."""
        if not index.sitemaps:
            return []
        child_url = index.sitemaps[0]
        try:
            resp = fetch_page(child_url, ctx.session, ctx.fetch_options)
            if resp.status != 200:
                return []
            child = parse_sitemap_xml(resp.body)
        except (NetworkError, SitemapParseError) as exc:
            logger.debug("Child sitemap %s unreadable: %s", child_url, exc)
            return []
        return [entry.loc for entry in child.urls]
