"""
Core data models for the SEO audit.
All modules import from here; nothing else is cross-imported at this level.

NOTE: `from __future__ import annotations` is intentionally omitted here.
Python 3.13.0 has a regression (bpo-121814) where that import causes a crash
in the dataclasses decorator when the module is not yet fully registered in
sys.modules. Python 3.9+ supports generic aliases (list[str], dict[str, Any])
natively, so the future import is unnecessary.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests


# ── Severity ──────────────────────────────────────────────────────────────────
class Severity:
    ERROR   = "error"
    WARNING = "warning"
    INFO    = "info"
    PASS    = "pass"

    ALL = [ERROR, WARNING, INFO, PASS]

    COLORS = {
        ERROR:   "#FF4B4B",
        WARNING: "#FFA500",
        INFO:    "#4B9EFF",
        PASS:    "#00C851",
    }

    ICONS = {
        ERROR:   "✖",
        WARNING: "⚠",
        INFO:    "ℹ",
        PASS:    "✔",
    }


# ── Categories ────────────────────────────────────────────────────────────────
class Category:
    REDIRECT        = "redirect"
    ROBOTS          = "robots"
    SITEMAP         = "sitemap"
    INDEXING        = "indexing"
    METADATA        = "metadata"
    FAVICON         = "favicon"
    STRUCTURED_DATA = "structured-data"
    NEXTJS          = "nextjs"
    I18N            = "i18n"
    IMAGES          = "images"
    SECURITY        = "security"
    PERFORMANCE     = "performance"
    CRAWL           = "crawl"


# ── Finding codes (closed set per category) ───────────────────────────────────
class RedirectCode:
    REDIRECT_LOOP          = "REDIRECT_LOOP"
    REDIRECT_CHAIN         = "REDIRECT_CHAIN"
    HTTP_TO_HTTPS_REDIRECT = "HTTP_TO_HTTPS_REDIRECT"
    HTTP_NO_HTTPS_REDIRECT = "HTTP_NO_HTTPS_REDIRECT"
    TRAILING_SLASH_REDIRECT = "TRAILING_SLASH_REDIRECT"
    META_REFRESH_REDIRECT  = "META_REFRESH_REDIRECT"
    COMMON_PAGE_REDIRECT   = "COMMON_PAGE_REDIRECT"


class RobotsCode:
    ROBOTS_MISSING          = "ROBOTS_MISSING"
    ROBOTS_BLOCKS_ALL       = "ROBOTS_BLOCKS_ALL"
    ROBOTS_BLOCKS_GOOGLEBOT = "ROBOTS_BLOCKS_GOOGLEBOT"
    ROBOTS_NO_SITEMAP       = "ROBOTS_NO_SITEMAP"


class SitemapCode:
    SITEMAP_REDIRECTED      = "SITEMAP_REDIRECTED"
    SITEMAP_MISSING         = "SITEMAP_MISSING"
    SITEMAP_INVALID_XML     = "SITEMAP_INVALID_XML"
    SITEMAP_INDEX_FOUND     = "SITEMAP_INDEX_FOUND"
    SITEMAP_EMPTY           = "SITEMAP_EMPTY"
    SITEMAP_URL_ERROR       = "SITEMAP_URL_ERROR"
    SITEMAP_OK              = "SITEMAP_OK"
    SITEMAP_ROBOTS_MISMATCH = "SITEMAP_ROBOTS_MISMATCH"


class IndexingCode:
    NOINDEX_DETECTED = "NOINDEX_DETECTED"
    X_ROBOTS_NOINDEX = "X_ROBOTS_NOINDEX"


class MetadataCode:
    CANONICAL_MISSING      = "CANONICAL_MISSING"
    CANONICAL_MISMATCH     = "CANONICAL_MISMATCH"
    CANONICAL_EXTERNAL     = "CANONICAL_EXTERNAL"
    CHARSET_MISSING        = "CHARSET_MISSING"
    VIEWPORT_MISSING       = "VIEWPORT_MISSING"
    TITLE_MISSING          = "TITLE_MISSING"
    DESCRIPTION_MISSING    = "DESCRIPTION_MISSING"
    OG_TITLE_MISSING       = "OG_TITLE_MISSING"
    OG_DESCRIPTION_MISSING = "OG_DESCRIPTION_MISSING"
    OG_IMAGE_MISSING       = "OG_IMAGE_MISSING"
    OG_IMAGE_RELATIVE      = "OG_IMAGE_RELATIVE"
    OG_IMAGE_BROKEN        = "OG_IMAGE_BROKEN"
    TWITTER_CARD_MISSING   = "TWITTER_CARD_MISSING"
    TWITTER_IMAGE_MISSING  = "TWITTER_IMAGE_MISSING"
    TWITTER_IMAGE_BROKEN   = "TWITTER_IMAGE_BROKEN"


class FaviconCode:
    FAVICON_MISSING      = "FAVICON_MISSING"
    FAVICON_HTML_MISSING = "FAVICON_HTML_MISSING"
    FAVICON_CONFLICT     = "FAVICON_CONFLICT"


class StructuredDataCode:
    JSONLD_MISSING         = "JSONLD_MISSING"
    JSONLD_INVALID_JSON    = "JSONLD_INVALID_JSON"
    JSONLD_MISSING_CONTEXT = "JSONLD_MISSING_CONTEXT"
    JSONLD_MISSING_TYPE    = "JSONLD_MISSING_TYPE"
    JSONLD_EMPTY_FIELDS    = "JSONLD_EMPTY_FIELDS"
    JSONLD_FOUND           = "JSONLD_FOUND"


class PlatformCode:
    VERCEL_DETECTED           = "VERCEL_DETECTED"
    NEXTJS_TRAILING_SLASH_308 = "NEXTJS_TRAILING_SLASH_308"
    MIDDLEWARE_REDIRECT       = "MIDDLEWARE_REDIRECT"
    APP_ROUTER_METADATA       = "APP_ROUTER_METADATA"


class HreflangCode:
    HREFLANG_MISSING            = "HREFLANG_MISSING"
    HREFLANG_INVALID_LANG       = "HREFLANG_INVALID_LANG"
    HREFLANG_MISSING_SELF       = "HREFLANG_MISSING_SELF"
    HREFLANG_MISSING_XDEFAULT   = "HREFLANG_MISSING_XDEFAULT"
    HREFLANG_DUPLICATE          = "HREFLANG_DUPLICATE"
    HREFLANG_MISSING_RECIPROCAL = "HREFLANG_MISSING_RECIPROCAL"


class ImageCode:
    IMG_MISSING_ALT        = "IMG_MISSING_ALT"
    IMG_EMPTY_ALT          = "IMG_EMPTY_ALT"
    IMG_NO_NEXT_IMAGE      = "IMG_NO_NEXT_IMAGE"
    IMG_NO_LAZY_LOADING    = "IMG_NO_LAZY_LOADING"
    IMG_LARGE_FILE         = "IMG_LARGE_FILE"
    IMG_MISSING_DIMENSIONS = "IMG_MISSING_DIMENSIONS"


class SecurityCode:
    HSTS_MISSING                 = "HSTS_MISSING"
    CONTENT_TYPE_OPTIONS_MISSING = "CONTENT_TYPE_OPTIONS_MISSING"
    FRAME_PROTECTION_MISSING     = "FRAME_PROTECTION_MISSING"
    REFERRER_POLICY_MISSING      = "REFERRER_POLICY_MISSING"


class PerformanceCode:
    HTML_SIZE_WARNING      = "HTML_SIZE_WARNING"
    RENDER_BLOCKING_SCRIPT = "RENDER_BLOCKING_SCRIPT"
    LARGE_INLINE_STYLE     = "LARGE_INLINE_STYLE"
    MISSING_PRECONNECT     = "MISSING_PRECONNECT"


class CrawlCode:
    CRAWL_PAGE_ERROR               = "CRAWL_PAGE_ERROR"
    CRAWL_PAGE_NOINDEX             = "CRAWL_PAGE_NOINDEX"
    CRAWL_PAGE_TITLE_MISSING       = "CRAWL_PAGE_TITLE_MISSING"
    CRAWL_PAGE_DESCRIPTION_MISSING = "CRAWL_PAGE_DESCRIPTION_MISSING"
    CRAWL_PAGE_CANONICAL_MISSING   = "CRAWL_PAGE_CANONICAL_MISSING"
    CRAWL_PAGE_CANONICAL_MISMATCH  = "CRAWL_PAGE_CANONICAL_MISMATCH"
    CRAWL_PAGE_JSONLD_MISSING      = "CRAWL_PAGE_JSONLD_MISSING"


def _codes(code_class) -> frozenset[str]:
    return frozenset(v for k, v in vars(code_class).items() if k.isupper())


CODES_BY_CATEGORY: dict[str, frozenset[str]] = {
    Category.REDIRECT:        _codes(RedirectCode),
    Category.ROBOTS:          _codes(RobotsCode),
    Category.SITEMAP:         _codes(SitemapCode),
    Category.INDEXING:        _codes(IndexingCode),
    Category.METADATA:        _codes(MetadataCode),
    Category.FAVICON:         _codes(FaviconCode),
    Category.STRUCTURED_DATA: _codes(StructuredDataCode),
    Category.NEXTJS:          _codes(PlatformCode),
    Category.I18N:            _codes(HreflangCode),
    Category.IMAGES:          _codes(ImageCode),
    Category.SECURITY:        _codes(SecurityCode),
    Category.PERFORMANCE:     _codes(PerformanceCode),
    Category.CRAWL:           _codes(CrawlCode),
}


# ── HTTP structures ───────────────────────────────────────────────────────────
@dataclass(frozen=True)
class FetchOptions:
    timeout_ms: Optional[int] = None
    user_agent: Optional[str] = None


@dataclass
class FetchedPage:
    body: str
    status: int
    headers: dict[str, str]      # lower-cased names
    final_url: str


@dataclass
class HeadResult:
    status: int
    headers: dict[str, str]      # lower-cased names


@dataclass(frozen=True)
class RedirectHop:
    url: str
    status: int
    location: str

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "status": self.status, "location": self.location}


@dataclass
class RedirectChain:
    hops: list[RedirectHop] = field(default_factory=list)
    final_url: str = ""
    is_circular: bool = False
    # A hop failed to respond; final_url is the last URL attempted
    interrupted: bool = False

    def hops_as_dicts(self) -> list[dict[str, Any]]:
        return [hop.to_dict() for hop in self.hops]


# ── Parsed HTML / XML structures ──────────────────────────────────────────────
@dataclass
class FaviconLink:
    rel: str
    href: str
    type: Optional[str] = None
    sizes: Optional[str] = None


@dataclass
class HreflangLink:
    hreflang: str                # lower-cased on extraction
    href: str


@dataclass
class ImageData:
    src: str
    alt: Optional[str] = None    # None = attribute absent, "" = present but empty
    loading: str = ""
    has_width: bool = False
    has_height: bool = False
    is_next_image: bool = False

    @property
    def has_alt(self) -> bool:
        return self.alt is not None


@dataclass
class SitemapEntry:
    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[str] = None


@dataclass
class SitemapDocument:
    kind: str                    # "urlset" or "sitemapindex"
    urls: list[SitemapEntry] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return self.kind == "sitemapindex"


@dataclass
class RobotsGroup:
    user_agent: str
    disallow: list[str] = field(default_factory=list)
    allow: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"user_agent": self.user_agent, "disallow": list(self.disallow), "allow": list(self.allow)}


@dataclass
class RobotsData:
    groups: list[RobotsGroup] = field(default_factory=list)
    sitemap_urls: list[str] = field(default_factory=list)


# ── Findings ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Finding:
    code: str
    severity: str          # Severity.ERROR / WARNING / INFO / PASS
    category: str
    message: str
    explanation: str
    suggestion: str
    details: Optional[dict[str, Any]] = None
    url: Optional[str] = None

    def __post_init__(self):
        for name in ("code", "severity", "category", "message", "explanation", "suggestion"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Finding.{name} must be a non-empty string")
        if self.severity not in Severity.ALL:
            raise ValueError(f"Unknown severity {self.severity!r}")
        allowed = CODES_BY_CATEGORY.get(self.category)
        if allowed is None:
            raise ValueError(f"Unknown category {self.category!r}")
        if self.code not in allowed:
            raise ValueError(f"Code {self.code!r} does not belong to category {self.category!r}")


@dataclass(frozen=True)
class AnalyzerResult:
    analyzer_name: str
    findings: tuple[Finding, ...] = ()


@dataclass(frozen=True)
class Summary:
    errors: int = 0
    warnings: int = 0
    info: int = 0
    passed: int = 0

    @classmethod
    def from_results(cls, results: list[AnalyzerResult]) -> "Summary":
        """Count findings by severity in one pass over every result."""
        counts = {s: 0 for s in Severity.ALL}
        for result in results:
            for finding in result.findings:
                counts[finding.severity] += 1
        return cls(
            errors=counts[Severity.ERROR],
            warnings=counts[Severity.WARNING],
            info=counts[Severity.INFO],
            passed=counts[Severity.PASS],
        )


# ── Top-level audit report ─────────────────────────────────────────────────────
@dataclass
class AuditReport:
    url: str
    timestamp: str
    duration_ms: int
    summary: Summary
    results: list[AnalyzerResult] = field(default_factory=list)

    @property
    def all_findings(self) -> list[Finding]:
        return [f for result in self.results for f in result.findings]

    @property
    def findings_by_severity(self) -> dict[str, list[Finding]]:
        out: dict[str, list[Finding]] = {s: [] for s in Severity.ALL}
        for finding in self.all_findings:
            out.setdefault(finding.severity, []).append(finding)
        return out

    @property
    def findings_by_category(self) -> dict[str, list[Finding]]:
        out: dict[str, list[Finding]] = {}
        for finding in self.all_findings:
            out.setdefault(finding.category, []).append(finding)
        return out


# ── Per-run audit context ──────────────────────────────────────────────────────
@dataclass
class AuditContext:
    target_url: str
    normalized_url: str
    fetch_options: FetchOptions = field(default_factory=FetchOptions)
    verbose: bool = False
    session: requests.Session = field(default_factory=requests.Session, repr=False)

    # Populated by analyzers while the run is in progress
    cached_html: Optional[str] = None
    cached_headers: Optional[dict[str, str]] = None
    cached_robots_txt: Optional[str] = None
    cached_sitemap_urls: Optional[list[str]] = None
    homepage_error: Optional[Exception] = field(default=None, repr=False)

    requested_pages: Optional[list[str]] = None
    crawl_page_limit: Optional[int] = None
    progress_callback: Optional[Callable[[dict], None]] = field(default=None, repr=False)

    homepage_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
