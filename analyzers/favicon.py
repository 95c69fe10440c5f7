"""
Favicon analyzer: /favicon.ico on disk versus <link rel="icon"> declarations.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from config import FAVICON_ICO_PATH
from crawler.fetcher import NetworkError, fetch_head
from crawler.parser import get_favicon_links
from crawler.urls import get_origin
from models import AuditContext, Category, FaviconCode, FaviconLink, Finding


def _is_ico(link: FaviconLink) -> bool:
    return link.href.endswith(".ico") or "favicon.ico" in link.href


class FaviconAnalyzer(BaseAnalyzer):
    name = "favicon"
    category = Category.FAVICON

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        favicon_url = f"{get_origin(ctx.normalized_url)}{FAVICON_ICO_PATH}"

        ico_exists = False
        try:
            ico_exists = fetch_head(favicon_url, ctx.session, ctx.fetch_options).status == 200
        except NetworkError:
            pass

        try:
            html, _ = self.load_homepage(ctx)
        except NetworkError:
            return []

        links = get_favicon_links(html)

        if not ico_exists and not links:
            return [self.warning(
                FaviconCode.FAVICON_MISSING,
                "No favicon found",
                "A missing favicon causes 404 errors in server logs and looks unprofessional "
                "in browser tabs and bookmarks.",
                'Add a favicon.ico at the root of your site or declare one via <link rel="icon"> in your HTML.',
                url=favicon_url,
            )]

        if ico_exists and not links:
            return [self.info(
                FaviconCode.FAVICON_HTML_MISSING,
                "Favicon exists at /favicon.ico but no HTML link tag declares it",
                "While browsers will find /favicon.ico by convention, explicitly declaring it in HTML "
                "ensures compatibility and allows specifying multiple sizes.",
                'Add <link rel="icon" href="/favicon.ico"> to your HTML <head>.',
                url=favicon_url,
            )]

        if ico_exists:
            ico_links = [link for link in links if _is_ico(link)]
            other_links = [link for link in links if not _is_ico(link)]
            if ico_links and other_links:
                return [self.info(
                    FaviconCode.FAVICON_CONFLICT,
                    f"Multiple favicon formats declared ({len(links)} links)",
                    "Multiple favicon declarations are normal for supporting different devices, "
                    "but verify they all resolve.",
                    "Ensure all declared favicon URLs are accessible.",
                    details={"favicons": [
                        {"rel": link.rel, "href": link.href, "type": link.type, "sizes": link.sizes}
                        for link in links
                    ]},
                    url=ctx.normalized_url,
                )]

        return []
