"""
Base class for all audit analyzers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from crawler.fetcher import NetworkError, fetch_page
from models import AnalyzerResult, AuditContext, Finding, Severity


class BaseAnalyzer(ABC):
    """All analyzers inherit from this class."""

    name: str = "base"
    category: str = "Uncategorized"

    @abstractmethod
    def analyze(self, ctx: AuditContext) -> list[Finding]:
        """Inspect the site described by ctx and return a list of findings."""
        ...

    def run(self, ctx: AuditContext) -> AnalyzerResult:
        return AnalyzerResult(analyzer_name=self.name, findings=tuple(self.analyze(ctx)))

    # ── Shared homepage cache ─────────────────────────────────────────────────

    def load_homepage(self, ctx: AuditContext) -> tuple[str, dict[str, str]]:
        """
        Return (html, headers) for the homepage, fetching it only when no sibling
        analyzer has cached it yet. The first fetch is serialized on the context
        lock; a failed fetch is remembered so siblings do not repeat it.
        Raises NetworkError when the homepage cannot be fetched.
        """
        with ctx.homepage_lock:
            if ctx.cached_html is None:
                if ctx.homepage_error is not None:
                    raise ctx.homepage_error
                try:
                    page = fetch_page(ctx.normalized_url, ctx.session, ctx.fetch_options)
                except NetworkError as exc:
                    ctx.homepage_error = exc
                    raise
                ctx.cached_html = page.body
                ctx.cached_headers = page.headers
            return ctx.cached_html, ctx.cached_headers or {}

    # ── Convenience factory ───────────────────────────────────────────────────

    def _finding(
        self,
        code: str,
        severity: str,
        message: str,
        explanation: str,
        suggestion: str,
        details: Optional[dict[str, Any]] = None,
        url: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Finding:
        return Finding(
            code=code,
            severity=severity,
            category=category or self.category,
            message=message,
            explanation=explanation,
            suggestion=suggestion,
            details=details,
            url=url,
        )

    def error(self, code, message, explanation, suggestion, details=None, url=None, category=None) -> Finding:
        return self._finding(code, Severity.ERROR, message, explanation, suggestion, details, url, category)

    def warning(self, code, message, explanation, suggestion, details=None, url=None, category=None) -> Finding:
        return self._finding(code, Severity.WARNING, message, explanation, suggestion, details, url, category)

    def info(self, code, message, explanation, suggestion, details=None, url=None, category=None) -> Finding:
        return self._finding(code, Severity.INFO, message, explanation, suggestion, details, url, category)

    def passed(self, code, message, explanation, suggestion, details=None, url=None, category=None) -> Finding:
        return self._finding(code, Severity.PASS, message, explanation, suggestion, details, url, category)
