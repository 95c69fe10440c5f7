"""
Metadata analyzer: indexing directives, canonical, charset, viewport, title,
description, Open Graph and Twitter Card tags on the homepage.
"""
from __future__ import annotations

from typing import Optional

from analyzers.base import BaseAnalyzer
from crawler.fetcher import NetworkError, fetch_head, fetch_page
from crawler.parser import (
    get_canonical_url,
    get_charset,
    get_meta_tag,
    get_title,
    get_viewport,
    has_noindex_directive,
    make_soup,
)
from crawler.urls import is_absolute_http_url, is_same_origin, is_same_site, normalize_url, resolve_url
from logging_config import get_logger
from models import AuditContext, Category, Finding, IndexingCode, MetadataCode

logger = get_logger(__name__)


class MetadataAnalyzer(BaseAnalyzer):
    name = "metadata"
    category = Category.METADATA

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url

        # Always fetched fresh: the canonical check needs the final URL
        try:
            page = fetch_page(url, ctx.session, ctx.fetch_options)
        except NetworkError as exc:
            logger.debug("Homepage unavailable for metadata checks: %s", exc)
            return []

        with ctx.homepage_lock:
            ctx.cached_html = page.body
            ctx.cached_headers = page.headers

        soup = make_soup(page.body)
        findings: list[Finding] = []

        # ── Indexing ───────────────────────────────────────────────────────────
        if has_noindex_directive(soup):
            findings.append(self.error(
                IndexingCode.NOINDEX_DETECTED,
                "noindex meta tag detected on homepage",
                "A noindex directive tells search engines not to include this page in search results.",
                "Remove the noindex directive unless you intentionally want to prevent indexing.",
                url=url,
                category=Category.INDEXING,
            ))

        x_robots = page.headers.get("x-robots-tag", "")
        if "noindex" in x_robots.lower():
            findings.append(self.error(
                IndexingCode.X_ROBOTS_NOINDEX,
                "X-Robots-Tag: noindex header detected",
                "The X-Robots-Tag header with noindex prevents search engines from indexing this page.",
                "Remove the X-Robots-Tag noindex header from your server configuration or middleware.",
                details={"header": x_robots},
                url=url,
                category=Category.INDEXING,
            ))

        # ── Canonical ──────────────────────────────────────────────────────────
        findings.extend(self._check_canonical(get_canonical_url(soup), page.final_url, url))

        # ── Basic head tags ────────────────────────────────────────────────────
        if not get_charset(soup):
            findings.append(self.info(
                MetadataCode.CHARSET_MISSING,
                "No charset declaration found",
                "Without a charset declaration, browsers may misinterpret special characters on your page.",
                'Add <meta charset="utf-8"> to the <head> of your document.',
                url=url,
            ))

        if not get_viewport(soup):
            findings.append(self.warning(
                MetadataCode.VIEWPORT_MISSING,
                "No viewport meta tag found",
                "Without a viewport tag, mobile devices may render the page at desktop width, harming mobile SEO.",
                'Add <meta name="viewport" content="width=device-width, initial-scale=1">.',
                url=url,
            ))

        if not get_title(soup):
            findings.append(self.warning(
                MetadataCode.TITLE_MISSING,
                "No <title> tag found",
                "The title tag is one of the most important on-page SEO elements. Missing titles hurt rankings.",
                "Add a unique, descriptive <title> tag to your page.",
                url=url,
            ))

        if not get_meta_tag(soup, "description"):
            findings.append(self.info(
                MetadataCode.DESCRIPTION_MISSING,
                "No meta description found",
                "Meta descriptions appear in search results and can improve click-through rates.",
                'Add a <meta name="description"> tag with a compelling summary of your page.',
                url=url,
            ))

        # ── Open Graph ─────────────────────────────────────────────────────────
        if not get_meta_tag(soup, "og:title"):
            findings.append(self.info(
                MetadataCode.OG_TITLE_MISSING,
                "No og:title meta tag found",
                "Open Graph tags control how your page appears when shared on social media platforms.",
                'Add <meta property="og:title"> for better social sharing previews.',
                url=url,
            ))

        if not get_meta_tag(soup, "og:description"):
            findings.append(self.info(
                MetadataCode.OG_DESCRIPTION_MISSING,
                "No og:description meta tag found",
                "og:description controls the description shown in social media previews.",
                'Add <meta property="og:description"> for better social sharing.',
                url=url,
            ))

        og_image = get_meta_tag(soup, "og:image")
        if not og_image:
            findings.append(self.info(
                MetadataCode.OG_IMAGE_MISSING,
                "No og:image meta tag found",
                "Social media platforms display a default placeholder when no og:image is set.",
                'Add <meta property="og:image"> with a representative image URL.',
                url=url,
            ))
        else:
            if not is_absolute_http_url(og_image):
                findings.append(self.warning(
                    MetadataCode.OG_IMAGE_RELATIVE,
                    "og:image uses a relative URL",
                    "Many social media crawlers do not resolve relative URLs for og:image, "
                    "which means your image may not appear in previews.",
                    "Use an absolute URL (starting with https://) for og:image.",
                    details={"og_image": og_image},
                    url=url,
                ))
            broken = self._check_image_url(
                ctx, og_image, page.final_url,
                code=MetadataCode.OG_IMAGE_BROKEN, label="og:image",
                explanation="A broken og:image means social media platforms cannot display your preview image.",
                detail_key="og_image", page_url=url,
            )
            if broken:
                findings.append(broken)

        # ── Twitter Card ───────────────────────────────────────────────────────
        if not get_meta_tag(soup, "twitter:card"):
            findings.append(self.info(
                MetadataCode.TWITTER_CARD_MISSING,
                "No twitter:card meta tag found",
                "Without a twitter:card tag, Twitter/X may not display rich previews when your page is shared.",
                'Add <meta name="twitter:card" content="summary_large_image"> for rich previews.',
                url=url,
            ))

        twitter_image = get_meta_tag(soup, "twitter:image")
        if not twitter_image:
            findings.append(self.info(
                MetadataCode.TWITTER_IMAGE_MISSING,
                "No twitter:image meta tag found",
                "Without a twitter:image, Twitter/X falls back to og:image or shows no preview image.",
                'Add <meta name="twitter:image"> with a URL to your preview image (recommended: 1200x628px).',
                url=url,
            ))
        else:
            broken = self._check_image_url(
                ctx, twitter_image, page.final_url,
                code=MetadataCode.TWITTER_IMAGE_BROKEN, label="twitter:image",
                explanation="A broken twitter:image means Twitter/X cannot display your preview image.",
                detail_key="twitter_image", page_url=url,
            )
            if broken:
                findings.append(broken)

        return findings

    def _check_canonical(self, canonical: Optional[str], final_url: str, page_url: str) -> list[Finding]:
        if not canonical:
            return [self.warning(
                MetadataCode.CANONICAL_MISSING,
                "No canonical URL found on homepage",
                "Without a canonical tag, search engines may index duplicate versions of your page.",
                'Add a <link rel="canonical"> tag pointing to the preferred URL of this page.',
                url=page_url,
            )]

        try:
            canonical_full = normalize_url(resolve_url(final_url, canonical))
            final_full = normalize_url(final_url)
        except ValueError:
            # Unparseable href
            return []

        findings: list[Finding] = []
        if canonical_full not in (final_full, page_url):
            findings.append(self.warning(
                MetadataCode.CANONICAL_MISMATCH,
                "Canonical URL does not match the page URL",
                "A mismatched canonical signals to search engines that this page is a duplicate of another.",
                "Ensure the canonical URL matches the page URL, or verify the mismatch is intentional.",
                details={"canonical": canonical_full, "page_url": final_url},
                url=page_url,
            ))

        if not is_same_origin(canonical_full, page_url):
            findings.append(self.info(
                MetadataCode.CANONICAL_EXTERNAL,
                "Canonical URL points to a different domain",
                "An external canonical tells search engines that this content originates on another domain.",
                "Verify this is intentional. External canonicals transfer ranking signals to the other domain.",
                details={"canonical": canonical_full, "same_site": is_same_site(canonical_full, page_url)},
                url=page_url,
            ))
        return findings

    def _check_image_url(
        self,
        ctx: AuditContext,
        image_url: str,
        base_url: str,
        code: str,
        label: str,
        explanation: str,
        detail_key: str,
        page_url: str,
    ) -> Optional[Finding]:
        """HEAD the social preview image; a non-2xx or unreachable URL is a finding."""
        suggestion = f"Ensure the {label} URL is accessible and returns a valid image."
        absolute = image_url if image_url.startswith("http") else resolve_url(base_url, image_url)
        try:
            result = fetch_head(absolute, ctx.session, ctx.fetch_options)
        except NetworkError:
            return self.warning(
                code,
                f"{label} URL could not be fetched",
                explanation,
                suggestion,
                details={detail_key: image_url},
                url=page_url,
            )
        if 200 <= result.status < 300:
            return None
        return self.warning(
            code,
            f"{label} URL returned HTTP {result.status}",
            explanation,
            suggestion,
            details={detail_key: absolute, "status": result.status},
            url=page_url,
        )
