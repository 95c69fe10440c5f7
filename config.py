"""
Global configuration constants for the SEO audit.
All tunable thresholds live here.
"""

# ── HTTP defaults ─────────────────────────────────────────────────────────────
DEFAULT_TIMEOUT_MS = 10_000
MAX_REDIRECTS = 20
DEFAULT_USER_AGENT = "seo-audit/1.0 (+https://github.com/seo-audit)"
DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Named presets accepted by --user-agent and the dashboard dropdown
USER_AGENT_PRESETS = {
    "googlebot": "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    "bingbot": "Mozilla/5.0 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
}

# ── Well-known paths ──────────────────────────────────────────────────────────
ROBOTS_TXT_PATH = "/robots.txt"
SITEMAP_XML_PATH = "/sitemap.xml"
FAVICON_ICO_PATH = "/favicon.ico"

# ── Redirects ─────────────────────────────────────────────────────────────────
COMMON_PAGES = ["/about", "/contact", "/blog", "/pricing"]

# ── Robots ────────────────────────────────────────────────────────────────────
GOOGLEBOT_AGENTS = ("googlebot", "googlebot-news", "googlebot-image")

# ── Sitemap ───────────────────────────────────────────────────────────────────
SITEMAP_SAMPLE_SIZE = 10

# ── Hreflang ──────────────────────────────────────────────────────────────────
MAX_RECIPROCAL_CHECKS = 10

# ── Images ────────────────────────────────────────────────────────────────────
LARGE_IMAGE_SIZE_BYTES = 204_800         # 200 KB
MAX_IMAGE_HEAD_REQUESTS = 5
NEXT_IMAGE_ATTRIBUTE = "data-nimg"

# ── Performance thresholds ────────────────────────────────────────────────────
LARGE_HTML_SIZE_BYTES = 512_000          # 500 KB
VERY_LARGE_HTML_SIZE_BYTES = 1_048_576   # 1 MB
LARGE_INLINE_STYLE_BYTES = 51_200        # 50 KB

# ── Platform fingerprints ─────────────────────────────────────────────────────
VERCEL_SERVER_TOKEN = "vercel"
NEXTJS_POWERED_BY_TOKEN = "next.js"
NEXTJS_HTML_MARKERS = ("next-head-count", "__next", "_next/static")

# ── Structured data ───────────────────────────────────────────────────────────
# Fields Google expects before a schema type is eligible for rich results
JSONLD_REQUIRED_FIELDS: dict[str, list[str]] = {
    "Article":        ["headline", "author"],
    "BreadcrumbList": ["itemListElement"],
    "FAQPage":        ["mainEntity"],
    "Product":        ["name"],
    "Organization":   ["name"],
    "WebSite":        ["name", "url"],
    "LocalBusiness":  ["name", "address"],
}

# ── Crawl mode ────────────────────────────────────────────────────────────────
DEFAULT_CRAWL_LIMIT = 50
CRAWL_CONCURRENCY = 5

# ── Run-control file ──────────────────────────────────────────────────────────
RC_FILE_NAME = ".seoauditrc.json"
REPORT_FORMATS = ("json", "md", "html", "csv")
