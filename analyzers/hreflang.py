"""
Hreflang (i18n) analyzer: language codes, self-reference, x-default, duplicates
and reciprocal links from alternate pages.
"""
from __future__ import annotations

import re

from analyzers.base import BaseAnalyzer
from config import MAX_RECIPROCAL_CHECKS
from crawler.fetcher import NetworkError, fetch_page
from crawler.parser import get_hreflang_links
from crawler.urls import normalize_for_comparison
from logging_config import get_logger
from models import AuditContext, Category, Finding, HreflangCode, HreflangLink

logger = get_logger(__name__)

# ISO 639-1 language, optional ISO 3166-1 region; values are lower-cased on extraction
_LANG_CODE_RE = re.compile(r"^[a-z]{2}(-[a-z]{2})?$")
X_DEFAULT = "x-default"


class HreflangAnalyzer(BaseAnalyzer):
    name = "i18n"
    category = Category.I18N

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url
        try:
            html, _ = self.load_homepage(ctx)
        except NetworkError:
            return []

        links = get_hreflang_links(html)
        if not links:
            return [self.info(
                HreflangCode.HREFLANG_MISSING,
                "No hreflang tags found",
                "Hreflang tags tell search engines which language/region a page targets. "
                "If your site is single-language, this is expected.",
                'If your site has multiple language versions, add <link rel="alternate" hreflang="..."> tags.',
                url=url,
            )]

        findings: list[Finding] = []
        current = normalize_for_comparison(url)

        # ── Language codes ─────────────────────────────────────────────────────
        for link in links:
            if link.hreflang != X_DEFAULT and not _LANG_CODE_RE.match(link.hreflang):
                findings.append(self.error(
                    HreflangCode.HREFLANG_INVALID_LANG,
                    f'Invalid hreflang value: "{link.hreflang}"',
                    'Hreflang values must be a valid ISO 639-1 language code (e.g. "en") optionally followed by '
                    'an ISO 3166-1 region code (e.g. "en-us"), or "x-default".',
                    f'Change "{link.hreflang}" to a valid language code like "en", "en-us", or "x-default".',
                    details={"hreflang": link.hreflang, "href": link.href},
                    url=url,
                ))

        # ── Self reference ─────────────────────────────────────────────────────
        if not any(normalize_for_comparison(link.href) == current for link in links):
            findings.append(self.warning(
                HreflangCode.HREFLANG_MISSING_SELF,
                "Hreflang tags do not include a self-referencing entry",
                "Every page with hreflang tags should include a link pointing to itself. "
                "Without it, search engines may ignore all hreflang annotations on this page.",
                "Add a <link rel=\"alternate\" hreflang=\"...\"> tag whose href matches this page's URL.",
                url=url,
            ))

        # ── x-default ──────────────────────────────────────────────────────────
        if not any(link.hreflang == X_DEFAULT for link in links):
            findings.append(self.warning(
                HreflangCode.HREFLANG_MISSING_XDEFAULT,
                "No x-default hreflang tag found",
                "The x-default hreflang value specifies a fallback page for users whose language "
                "doesn't match any listed variant.",
                'Add <link rel="alternate" hreflang="x-default" href="..."> pointing to your default language page.',
                url=url,
            ))

        # ── Duplicates ─────────────────────────────────────────────────────────
        seen: set[str] = set()
        for link in links:
            if link.hreflang in seen:
                findings.append(self.warning(
                    HreflangCode.HREFLANG_DUPLICATE,
                    f'Duplicate hreflang value: "{link.hreflang}"',
                    "Each hreflang value should appear only once per page. "
                    "Duplicates confuse search engines about which URL to serve.",
                    f'Remove the duplicate hreflang="{link.hreflang}" entry, keeping only one.',
                    details={"hreflang": link.hreflang, "href": link.href},
                    url=url,
                ))
            seen.add(link.hreflang)

        # ── Reciprocal links ───────────────────────────────────────────────────
        alternates = [
            link for link in links
            if link.hreflang != X_DEFAULT and normalize_for_comparison(link.href) != current
        ]
        for alt in alternates[:MAX_RECIPROCAL_CHECKS]:
            finding = self._check_reciprocal(ctx, alt, current)
            if finding:
                findings.append(finding)

        return findings

    def _check_reciprocal(self, ctx: AuditContext, alt: HreflangLink, current: str):
        try:
            page = fetch_page(alt.href, ctx.session, ctx.fetch_options)
        except NetworkError as exc:
            logger.debug("Skipping reciprocal check for %s: %s", alt.href, exc)
            return None

        remote_links = get_hreflang_links(page.body)
        if any(normalize_for_comparison(remote.href) == current for remote in remote_links):
            return None

        return self.error(
            HreflangCode.HREFLANG_MISSING_RECIPROCAL,
            f'Alternate page "{alt.href}" does not link back to this page',
            "Hreflang annotations must be reciprocal: if page A links to page B, page B must link back to page A. "
            "Without reciprocal links, search engines may ignore the hreflang.",
            f'Add a <link rel="alternate" hreflang="..." href="{ctx.normalized_url}"> tag on {alt.href}.',
            details={"hreflang": alt.hreflang, "href": alt.href},
            url=ctx.normalized_url,
        )
