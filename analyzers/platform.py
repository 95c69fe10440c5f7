"""
Platform analyzer: Vercel / Next.js fingerprints, 308 slash normalization,
middleware headers and App Router markers.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from config import NEXTJS_HTML_MARKERS, NEXTJS_POWERED_BY_TOKEN, VERCEL_SERVER_TOKEN
from crawler.fetcher import NetworkError, fetch_without_redirect
from crawler.urls import toggle_trailing_slash
from models import AuditContext, Category, Finding, PlatformCode


class PlatformAnalyzer(BaseAnalyzer):
    name = "nextjs"
    category = Category.NEXTJS

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url
        try:
            html, headers = self.load_homepage(ctx)
        except NetworkError:
            return []

        findings: list[Finding] = []

        # ── Vercel / Next.js fingerprint ───────────────────────────────────────
        server = headers.get("server", "")
        vercel_id = headers.get("x-vercel-id", "")
        powered_by = headers.get("x-powered-by", "")
        is_vercel = VERCEL_SERVER_TOKEN in server.lower() or bool(vercel_id)
        is_nextjs = NEXTJS_POWERED_BY_TOKEN in powered_by.lower()

        if is_vercel:
            findings.append(self.info(
                PlatformCode.VERCEL_DETECTED,
                f"Vercel deployment detected{' (Next.js)' if is_nextjs else ''}",
                "Vercel-specific optimizations and checks are being applied to this audit.",
                "No action needed. Vercel-specific checks are enabled.",
                details={"server": server, "x_vercel_id": vercel_id, "x_powered_by": powered_by},
                url=url,
            ))

        # ── 308 trailing slash ─────────────────────────────────────────────────
        test_url = toggle_trailing_slash(url)
        try:
            result = fetch_without_redirect(test_url, ctx.session, ctx.fetch_options)
        except NetworkError:
            result = None
        if result is not None and result.status == 308:
            findings.append(self.info(
                PlatformCode.NEXTJS_TRAILING_SLASH_308,
                "Next.js 308 permanent redirect for trailing slash normalization",
                "Next.js uses 308 (Permanent Redirect) to enforce its trailingSlash configuration. "
                "This is normal behavior but ensure it matches your intended URL structure.",
                "If this is unexpected, check next.config.js trailingSlash setting. 308 redirects are cached by browsers.",
                details={"tested_url": test_url, "status": 308, "location": result.headers.get("location")},
                url=test_url,
            ))

        # ── Middleware ─────────────────────────────────────────────────────────
        rewrite = headers.get("x-middleware-rewrite", "")
        redirect = headers.get("x-middleware-redirect", "")
        middleware_next = headers.get("x-middleware-next", "")
        if rewrite or redirect:
            details = {"rewrite": rewrite, "redirect": redirect, "next": middleware_next}
            findings.append(self.info(
                PlatformCode.MIDDLEWARE_REDIRECT,
                "Next.js middleware is modifying the request",
                "Middleware rewrites or redirects can affect how search engines see your pages. "
                "Ensure middleware is not unintentionally altering SEO-critical pages.",
                "Review your middleware.ts to ensure it does not redirect or rewrite SEO-critical URLs.",
                details={k: v for k, v in details.items() if v},
                url=url,
            ))

        # ── App Router markers ─────────────────────────────────────────────────
        if html and is_nextjs and not any(marker in html for marker in NEXTJS_HTML_MARKERS):
            findings.append(self.info(
                PlatformCode.APP_ROUTER_METADATA,
                "Next.js detected but standard Next.js markers not found in HTML",
                "This may indicate a custom rendering setup or edge runtime that could affect metadata generation.",
                "Ensure your Next.js App Router pages export proper metadata using the Metadata API.",
                url=url,
            ))

        return findings
