"""
Redirect analyzer: homepage chain, HTTP->HTTPS, trailing slash, meta refresh,
and multi-hop chains on commonly linked pages.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from config import COMMON_PAGES
from crawler.fetcher import NetworkError, fetch_page, fetch_without_redirect, follow_redirect_chain
from crawler.parser import get_meta_refresh
from crawler.urls import get_origin, has_trailing_slash, is_https, to_http_url, toggle_trailing_slash
from models import AuditContext, Category, Finding, RedirectCode


class RedirectsAnalyzer(BaseAnalyzer):
    name = "redirects"
    category = Category.REDIRECT

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        findings: list[Finding] = []
        url = ctx.normalized_url

        # ── Homepage chain ─────────────────────────────────────────────────────
        chain = follow_redirect_chain(url, ctx.session, ctx.fetch_options)
        if chain.is_circular:
            findings.append(self.error(
                RedirectCode.REDIRECT_LOOP,
                "Redirect loop detected on homepage",
                "A redirect loop prevents search engines and users from reaching your page, causing crawl failures.",
                "Check your server configuration and middleware for circular redirects.",
                details={"hops": chain.hops_as_dicts()},
                url=url,
            ))
        elif len(chain.hops) > 1:
            findings.append(self.warning(
                RedirectCode.REDIRECT_CHAIN,
                f"Redirect chain with {len(chain.hops)} hops detected",
                "Long redirect chains slow down page loading and may cause search engines to drop the page from the index.",
                "Reduce the chain to a single redirect by pointing directly to the final URL.",
                details={"hops": chain.hops_as_dicts(), "final_url": chain.final_url},
                url=url,
            ))

        # ── HTTP -> HTTPS ──────────────────────────────────────────────────────
        if is_https(url):
            findings.extend(self._check_https_redirect(ctx))

        # ── Trailing slash ─────────────────────────────────────────────────────
        findings.extend(self._check_trailing_slash(ctx))

        # ── Meta refresh ───────────────────────────────────────────────────────
        try:
            page = fetch_page(url, ctx.session, ctx.fetch_options)
        except NetworkError:
            page = None
        if page is not None:
            target = get_meta_refresh(page.body)
            if target:
                findings.append(self.warning(
                    RedirectCode.META_REFRESH_REDIRECT,
                    "Meta refresh redirect detected on homepage",
                    "Meta refresh redirects are slower than server-side redirects and may confuse search engines.",
                    "Replace the meta refresh with a 301 server-side redirect.",
                    details={"target_url": target},
                    url=url,
                ))

        # ── Common pages ───────────────────────────────────────────────────────
        origin = get_origin(url)
        pages = ctx.requested_pages if ctx.requested_pages is not None else COMMON_PAGES
        for path in pages:
            page_url = f"{origin}{path}"
            page_chain = follow_redirect_chain(page_url, ctx.session, ctx.fetch_options)
            if len(page_chain.hops) > 1:
                findings.append(self.info(
                    RedirectCode.COMMON_PAGE_REDIRECT,
                    f"{path} has a {len(page_chain.hops)}-hop redirect chain",
                    "Redirect chains on commonly linked pages waste crawl budget.",
                    "Reduce to a single redirect or update internal links to point to the final URL.",
                    details={"hops": page_chain.hops_as_dicts(), "final_url": page_chain.final_url},
                    url=page_url,
                ))

        return findings

    def _check_https_redirect(self, ctx: AuditContext) -> list[Finding]:
        http_url = to_http_url(ctx.normalized_url)
        http_chain = follow_redirect_chain(http_url, ctx.session, ctx.fetch_options)
        if http_chain.interrupted and not is_https(http_chain.final_url):
            # Plain HTTP may simply not be served
            return []

        if is_https(http_chain.final_url):
            return [self.passed(
                RedirectCode.HTTP_TO_HTTPS_REDIRECT,
                "HTTP correctly redirects to HTTPS",
                "HTTP to HTTPS redirects ensure users always reach the secure version of your site.",
                "No action needed.",
                url=http_url,
            )]
        return [self.warning(
            RedirectCode.HTTP_NO_HTTPS_REDIRECT,
            "HTTP does not redirect to HTTPS",
            "Without an HTTP to HTTPS redirect, search engines may index the insecure version of your site.",
            "Configure your server or hosting platform to redirect HTTP traffic to HTTPS.",
            url=http_url,
        )]

    def _check_trailing_slash(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url
        test_url = toggle_trailing_slash(url)
        try:
            result = fetch_without_redirect(test_url, ctx.session, ctx.fetch_options)
        except NetworkError:
            return []

        if not 300 <= result.status < 400:
            return []
        action = "removal" if has_trailing_slash(url) else "addition"
        return [self.info(
            RedirectCode.TRAILING_SLASH_REDIRECT,
            f"Trailing slash {action} causes {result.status} redirect",
            "Inconsistent trailing slash handling can create duplicate content issues for search engines.",
            "Ensure consistent trailing slash behavior across your site. In Next.js, use the trailingSlash config option.",
            details={"tested_url": test_url, "status": result.status},
            url=test_url,
        )]
