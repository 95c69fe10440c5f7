"""
Security analyzer: response headers that also affect crawl trust signals.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from crawler.fetcher import NetworkError, fetch_head
from models import AuditContext, Category, Finding, SecurityCode


class SecurityAnalyzer(BaseAnalyzer):
    name = "security"
    category = Category.SECURITY

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url

        if ctx.cached_headers is not None:
            headers = ctx.cached_headers
        else:
            try:
                headers = fetch_head(url, ctx.session, ctx.fetch_options).headers
            except NetworkError:
                # No signal at all; absence cannot be asserted
                return []

        findings: list[Finding] = []

        if not headers.get("strict-transport-security"):
            findings.append(self.info(
                SecurityCode.HSTS_MISSING,
                "Strict-Transport-Security header is missing",
                "HSTS tells browsers to always use HTTPS, preventing protocol downgrade attacks "
                "and improving trust signals for search engines.",
                "Add the Strict-Transport-Security header with a max-age of at least 31536000 (1 year).",
                url=url,
            ))

        if headers.get("x-content-type-options", "").lower() != "nosniff":
            findings.append(self.info(
                SecurityCode.CONTENT_TYPE_OPTIONS_MISSING,
                "X-Content-Type-Options: nosniff header is missing",
                "Without this header, browsers may MIME-sniff responses, which can lead to "
                "mixed-content issues that affect crawling.",
                "Add the header X-Content-Type-Options: nosniff to all responses.",
                url=url,
            ))

        csp = headers.get("content-security-policy", "")
        if not headers.get("x-frame-options") and "frame-ancestors" not in csp.lower():
            findings.append(self.info(
                SecurityCode.FRAME_PROTECTION_MISSING,
                "No frame protection header found",
                "Without X-Frame-Options or CSP frame-ancestors, your site can be embedded in iframes "
                "on other domains, enabling clickjacking.",
                "Add X-Frame-Options: DENY (or SAMEORIGIN) or use Content-Security-Policy: frame-ancestors 'self'.",
                url=url,
            ))

        if not headers.get("referrer-policy"):
            findings.append(self.info(
                SecurityCode.REFERRER_POLICY_MISSING,
                "Referrer-Policy header is missing",
                "Without a Referrer-Policy, browsers send the full URL as a referrer, which can leak "
                "sensitive query parameters to third parties.",
                "Add Referrer-Policy: strict-origin-when-cross-origin (or stricter) to control referrer information.",
                url=url,
            ))

        return findings
