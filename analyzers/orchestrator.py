"""
Runs every analyzer against one site in dependency-ordered phases and
aggregates the results into an AuditReport.
"""
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from analyzers.base import BaseAnalyzer
from analyzers.crawl import CrawlAnalyzer
from analyzers.favicon import FaviconAnalyzer
from analyzers.hreflang import HreflangAnalyzer
from analyzers.images import ImageAnalyzer
from analyzers.meta import MetadataAnalyzer
from analyzers.performance import PerformanceAnalyzer
from analyzers.platform import PlatformAnalyzer
from analyzers.redirects import RedirectsAnalyzer
from analyzers.robots_analyzer import RobotsAnalyzer
from analyzers.security import SecurityAnalyzer
from analyzers.sitemap_analyzer import SitemapAnalyzer
from analyzers.structured_data import StructuredDataAnalyzer
from config import USER_AGENT_PRESETS
from crawler.fetcher import make_session
from crawler.urls import normalize_url
from logging_config import get_logger
from models import AnalyzerResult, AuditContext, AuditReport, FetchOptions, Summary

logger = get_logger(__name__)


# Phase 1 fills ctx.cached_robots_txt; phase 2 reads it and fills the homepage
# and sitemap caches; phase 3 (crawl mode) reads ctx.cached_sitemap_urls.
PHASE_1: list[BaseAnalyzer] = [
    RobotsAnalyzer(),
    RedirectsAnalyzer(),
]

PHASE_2: list[BaseAnalyzer] = [
    SitemapAnalyzer(),
    MetadataAnalyzer(),
    FaviconAnalyzer(),
    PlatformAnalyzer(),
    StructuredDataAnalyzer(),
    HreflangAnalyzer(),
    ImageAnalyzer(),
    SecurityAnalyzer(),
    PerformanceAnalyzer(),
]

PHASE_3: list[BaseAnalyzer] = [
    CrawlAnalyzer(),
]


def resolve_user_agent(value: Optional[str]) -> Optional[str]:
    """Map a preset name (case-insensitive) to its full string; other values pass through."""
    if not value:
        return None
    return USER_AGENT_PRESETS.get(value.strip().lower(), value)


def run_audit(
    url: str,
    verbose: bool = False,
    timeout_ms: Optional[int] = None,
    pages: Optional[list[str]] = None,
    user_agent: Optional[str] = None,
    crawl_limit: Optional[int] = None,
    progress_callback: Optional[Callable[[dict], None]] = None,
) -> AuditReport:
    """
    Audit one site and return the report. Crawl mode (phase 3) only runs when
    crawl_limit is given.
    Raises ValueError when the URL cannot be normalized.
    """
    session = make_session()
    ctx = AuditContext(
        target_url=url,
        normalized_url=normalize_url(url),
        fetch_options=FetchOptions(timeout_ms=timeout_ms, user_agent=resolve_user_agent(user_agent)),
        verbose=verbose,
        session=session,
        requested_pages=pages,
        crawl_page_limit=crawl_limit,
        progress_callback=progress_callback,
    )

    phases: list[Sequence[BaseAnalyzer]] = [PHASE_1, PHASE_2]
    if crawl_limit is not None:
        phases.append(PHASE_3)

    try:
        return run_phases(ctx, phases)
    finally:
        session.close()


def run_phases(ctx: AuditContext, phases: Sequence[Sequence[BaseAnalyzer]]) -> AuditReport:
    """
    Run each phase to completion before starting the next. Within a phase all
    analyzers run concurrently; one that raises is logged and left out of the
    report.
    """
    started = time.perf_counter()
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    results: list[AnalyzerResult] = []

    logger.info("Auditing %s", ctx.normalized_url)
    _emit(ctx.progress_callback, f"Auditing {ctx.normalized_url}…", 0)

    total = len(phases)
    for idx, analyzers in enumerate(phases, start=1):
        names = ", ".join(a.name for a in analyzers)
        logger.info("Phase %d/%d: %s", idx, total, names)
        _emit(ctx.progress_callback, f"Phase {idx}/{total}: {names}", int((idx - 1) / total * 90))
        results.extend(_run_phase(ctx, analyzers))

    summary = Summary.from_results(results)
    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "Audit finished in %d ms: %d error(s), %d warning(s), %d info, %d passed",
        duration_ms, summary.errors, summary.warnings, summary.info, summary.passed,
    )
    _emit(ctx.progress_callback, "Audit complete.", 100)

    return AuditReport(
        url=ctx.normalized_url,
        timestamp=timestamp,
        duration_ms=duration_ms,
        summary=summary,
        results=results,
    )


def _run_phase(ctx: AuditContext, analyzers: Sequence[BaseAnalyzer]) -> list[AnalyzerResult]:
    """Settle every analyzer in the phase; keep only those that succeeded, in declaration order."""
    if not analyzers:
        return []

    results: list[AnalyzerResult] = []
    with ThreadPoolExecutor(max_workers=len(analyzers)) as pool:
        futures = [(analyzer, pool.submit(analyzer.run, ctx)) for analyzer in analyzers]
        for analyzer, future in futures:
            try:
                results.append(future.result())
            except Exception:
                # Never let one analyzer crash the whole audit
                logger.warning("Analyzer %r failed; its result is dropped", analyzer.name, exc_info=True)
    return results


def _emit(callback, message: str, pct: int) -> None:
    if callback:
        try:
            callback({"message": message, "pct": pct})
        except Exception:
            logger.debug("Progress callback raised", exc_info=True)
