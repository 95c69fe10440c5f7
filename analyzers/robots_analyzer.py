"""
Robots.txt analyzer: presence, site-wide blocking rules, Sitemap directive.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from config import GOOGLEBOT_AGENTS
from crawler.fetcher import NetworkError, fetch_page
from crawler.robots import parse_robots, robots_url
from models import AuditContext, Category, Finding, RobotsCode

_MISSING_EXPLANATION = (
    "Without a robots.txt, search engines have no guidance on which pages to crawl or avoid."
)


class RobotsAnalyzer(BaseAnalyzer):
    name = "robots"
    category = Category.ROBOTS

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = robots_url(ctx.normalized_url)

        try:
            resp = fetch_page(url, ctx.session, ctx.fetch_options)
        except NetworkError:
            return [self.warning(
                RobotsCode.ROBOTS_MISSING,
                "robots.txt could not be fetched",
                _MISSING_EXPLANATION,
                "Ensure robots.txt is accessible at the root of your domain.",
                url=url,
            )]

        if resp.status != 200:
            return [self.warning(
                RobotsCode.ROBOTS_MISSING,
                "robots.txt not found",
                _MISSING_EXPLANATION,
                "Create a robots.txt file at the root of your site. In Next.js App Router, use the metadata API.",
                details={"status": resp.status},
                url=url,
            )]

        # Cache for the sitemap analyzer's cross-check
        ctx.cached_robots_txt = resp.body
        robots = parse_robots(resp.body)
        findings: list[Finding] = []

        # ── Blocking rules ─────────────────────────────────────────────────────
        for group in robots.groups:
            agent = group.user_agent.lower()
            if "/" not in group.disallow:
                continue

            if agent == "*":
                findings.append(self.error(
                    RobotsCode.ROBOTS_BLOCKS_ALL,
                    "robots.txt blocks all crawlers",
                    "Disallow: / for all user agents prevents search engines from indexing any page on your site.",
                    "Remove or scope the Disallow: / rule unless you intentionally want to prevent indexing.",
                    details={"rule": group.to_dict()},
                    url=url,
                ))
            elif agent in GOOGLEBOT_AGENTS:
                findings.append(self.error(
                    RobotsCode.ROBOTS_BLOCKS_GOOGLEBOT,
                    f"robots.txt blocks {group.user_agent}",
                    "Blocking Googlebot prevents Google from indexing your site.",
                    f"Remove the Disallow: / for {group.user_agent} unless intentional.",
                    details={"rule": group.to_dict()},
                    url=url,
                ))

        # ── Sitemap directive ──────────────────────────────────────────────────
        if not robots.sitemap_urls:
            findings.append(self.info(
                RobotsCode.ROBOTS_NO_SITEMAP,
                "No Sitemap directive found in robots.txt",
                "Declaring your sitemap URL in robots.txt helps search engines discover it faster.",
                "Add a Sitemap: https://yourdomain.com/sitemap.xml line to robots.txt.",
                url=url,
            ))

        return findings
