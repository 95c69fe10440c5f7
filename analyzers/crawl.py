"""
Crawl-mode analyzer: visits sitemap URLs in small concurrent batches and runs
lightweight indexability checks on each page.
"""
from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor

from analyzers.base import BaseAnalyzer
from config import CRAWL_CONCURRENCY, DEFAULT_CRAWL_LIMIT
from crawler.fetcher import NetworkError, fetch_page
from crawler.parser import get_canonical_url, get_jsonld_blocks, get_meta_tag, get_title, has_noindex_directive, make_soup
from crawler.urls import normalize_url, resolve_url
from logging_config import get_logger
from models import AuditContext, Category, CrawlCode, Finding

logger = get_logger(__name__)


def _strip_one_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def _same_page(canonical: str, page_url: str) -> bool:
    try:
        canonical, page_url = normalize_url(canonical), normalize_url(page_url)
    except ValueError:
        # Unparseable, compare as written
        pass
    return _strip_one_slash(canonical) == _strip_one_slash(page_url)


class CrawlAnalyzer(BaseAnalyzer):
    name = "crawl"
    category = Category.CRAWL

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        if not ctx.cached_sitemap_urls:
            return []

        limit = DEFAULT_CRAWL_LIMIT if ctx.crawl_page_limit is None else ctx.crawl_page_limit
        urls = ctx.cached_sitemap_urls[:limit]
        total = len(urls)
        findings: list[Finding] = []

        with ThreadPoolExecutor(max_workers=CRAWL_CONCURRENCY) as pool:
            for start in range(0, total, CRAWL_CONCURRENCY):
                batch = urls[start:start + CRAWL_CONCURRENCY]
                futures = []
                for offset, page_url in enumerate(batch):
                    self._report_progress(ctx, start + offset + 1, total, page_url)
                    futures.append((page_url, pool.submit(self.audit_page, ctx, page_url)))

                # Results are collected in batch order so output is deterministic
                for page_url, future in futures:
                    try:
                        findings.extend(future.result())
                    except Exception:
                        logger.warning("Crawl check failed for %s", page_url, exc_info=True)

        return findings

    def audit_page(self, ctx: AuditContext, page_url: str) -> list[Finding]:
        try:
            page = fetch_page(page_url, ctx.session, ctx.fetch_options)
        except NetworkError:
            return [self.error(
                CrawlCode.CRAWL_PAGE_ERROR,
                f"Failed to fetch page: {page_url}",
                "The page could not be reached, which means search engines cannot crawl it either.",
                "Ensure the page is accessible and not timing out.",
                url=page_url,
            )]

        if not 200 <= page.status < 300:
            return [self.error(
                CrawlCode.CRAWL_PAGE_ERROR,
                f"Page returned HTTP {page.status}: {page_url}",
                "Pages in the sitemap should return a 200 status. Non-2xx pages waste crawl budget.",
                "Fix the page or remove it from the sitemap.",
                details={"status": page.status},
                url=page_url,
            )]

        soup = make_soup(page.body)
        findings: list[Finding] = []

        # ── Indexability ───────────────────────────────────────────────────────
        if has_noindex_directive(soup):
            findings.append(self.warning(
                CrawlCode.CRAWL_PAGE_NOINDEX,
                f"Page has noindex directive: {page_url}",
                "A page in the sitemap should not have a noindex directive; it sends conflicting signals "
                "to search engines.",
                "Remove the noindex tag or remove the page from the sitemap.",
                url=page_url,
            ))

        if "noindex" in page.headers.get("x-robots-tag", "").lower():
            findings.append(self.warning(
                CrawlCode.CRAWL_PAGE_NOINDEX,
                f"Page has X-Robots-Tag noindex header: {page_url}",
                "The X-Robots-Tag header tells search engines not to index this page, conflicting with "
                "its presence in the sitemap.",
                "Remove the X-Robots-Tag noindex header or remove the page from the sitemap.",
                url=page_url,
            ))

        # ── Head tags ──────────────────────────────────────────────────────────
        if not get_title(soup):
            findings.append(self.warning(
                CrawlCode.CRAWL_PAGE_TITLE_MISSING,
                f"Page is missing <title>: {page_url}",
                "The title tag is a critical ranking signal and is displayed in search results.",
                "Add a unique, descriptive <title> tag to this page.",
                url=page_url,
            ))

        if not get_meta_tag(soup, "description"):
            findings.append(self.info(
                CrawlCode.CRAWL_PAGE_DESCRIPTION_MISSING,
                f"Page is missing meta description: {page_url}",
                "Meta descriptions are shown in search result snippets and can improve click-through rates.",
                'Add a <meta name="description"> tag with a concise summary of the page.',
                url=page_url,
            ))

        canonical = get_canonical_url(soup)
        if not canonical:
            findings.append(self.warning(
                CrawlCode.CRAWL_PAGE_CANONICAL_MISSING,
                f"Page is missing canonical tag: {page_url}",
                "Without a canonical tag, search engines may treat URL variations as duplicate content.",
                'Add a <link rel="canonical"> tag pointing to the preferred URL.',
                url=page_url,
            ))
        else:
            resolved = resolve_url(page_url, canonical)
            if not _same_page(resolved, page_url):
                findings.append(self.warning(
                    CrawlCode.CRAWL_PAGE_CANONICAL_MISMATCH,
                    f"Canonical URL does not match page URL: {page_url}",
                    "The canonical tag points to a different URL, which tells search engines this page is a duplicate.",
                    "Update the canonical tag to match the page URL, or remove this page from the sitemap.",
                    details={"canonical": resolved, "page_url": page_url},
                    url=page_url,
                ))

        # ── Structured data ────────────────────────────────────────────────────
        if not get_jsonld_blocks(soup):
            findings.append(self.info(
                CrawlCode.CRAWL_PAGE_JSONLD_MISSING,
                f"Page has no structured data: {page_url}",
                "Structured data helps search engines understand page content and can enable rich results.",
                "Add JSON-LD structured data relevant to the page content.",
                url=page_url,
            ))

        return findings

    @staticmethod
    def _report_progress(ctx: AuditContext, index: int, total: int, page_url: str) -> None:
        sys.stderr.write(f"Crawling [{index}/{total}] {page_url}\n")
        if ctx.progress_callback:
            try:
                pct = 90 + int(index / max(total, 1) * 9)
                ctx.progress_callback({"message": f"Crawling [{index}/{total}] {page_url}", "pct": pct})
            except Exception:
                logger.debug("Progress callback raised", exc_info=True)
