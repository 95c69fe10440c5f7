"""Tests for console, Markdown and diff renderings."""

import io
import json

import pytest
from rich.console import Console

from models import AnalyzerResult, AuditReport, Category, Finding, RobotsCode, SecurityCode, Severity, Summary
from reporting.formatters import format_diff_json, format_markdown, render_console, render_diff
from reporting.serialization import ReportDiff

ROBOTS = Finding(
    code=RobotsCode.ROBOTS_MISSING,
    severity=Severity.WARNING,
    category=Category.ROBOTS,
    message="robots.txt returned HTTP 404",
    explanation="Search engines look for robots.txt.",
    suggestion="Create a robots.txt file.",
    details={"status": 404},
    url="https://example.com/robots.txt",
)
HSTS = Finding(
    code=SecurityCode.HSTS_MISSING,
    severity=Severity.INFO,
    category=Category.SECURITY,
    message="Strict-Transport-Security header is missing",
    explanation="HSTS tells browsers to always use HTTPS.",
    suggestion="Add the [Strict-Transport-Security] header.",
)


def make_report(*findings):
    results = [AnalyzerResult(analyzer_name="x", findings=tuple(findings))]
    return AuditReport(
        url="https://example.com/",
        timestamp="2026-01-01T00:00:00.000Z",
        duration_ms=42,
        summary=Summary.from_results(results),
        results=results,
    )


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


def output(console):
    return console.file.getvalue()


class TestRenderConsole:

    def test_header_and_findings(self, console):
        render_console(make_report(ROBOTS, HSTS), console=console)
        text = output(console)

        assert "SEO Audit Report for https://example.com/" in text
        assert "ROBOTS" in text and "SECURITY" in text
        assert "[WARNING] robots.txt returned HTTP 404" in text
        assert "URL: https://example.com/robots.txt" in text

    def test_markup_in_messages_is_literal(self, console):
        render_console(make_report(HSTS), console=console)
        assert "Add the [Strict-Transport-Security] header." in output(console)

    def test_details_only_when_verbose(self, console):
        render_console(make_report(ROBOTS), console=console)
        assert "Details" not in output(console)

        verbose = Console(file=io.StringIO(), width=200, color_system=None)
        render_console(make_report(ROBOTS), verbose=True, console=verbose)
        assert '"status": 404' in output(verbose)

    def test_clean_report(self, console):
        render_console(make_report(), console=console)
        assert "No issues found!" in output(console)


class TestFormatMarkdown:

    def test_sections(self):
        md = format_markdown(make_report(ROBOTS, HSTS))

        assert md.startswith("# SEO Audit Report for https://example.com/")
        assert "| ⚠️ Warnings | 1 |" in md
        assert "| ℹ️ Info | 1 |" in md
        assert "Errors" not in md
        assert "## Robots" in md
        assert "- ⚠️ **[WARNING]** robots.txt returned HTTP 404" in md
        assert "  - URL: `https://example.com/robots.txt`" in md

    def test_category_order_follows_report(self):
        md = format_markdown(make_report(HSTS, ROBOTS))
        assert md.index("## Security") < md.index("## Robots")

    def test_clean_report(self):
        assert "**No issues found!**" in format_markdown(make_report())


class TestDiffRendering:

    def test_render_diff(self, console):
        render_diff(ReportDiff(new=[ROBOTS], resolved=[HSTS], unchanged=[]), console=console)
        text = output(console)

        assert "1 new" in text and "1 resolved" in text and "0 unchanged" in text
        assert "+ [WARNING] ROBOTS_MISSING: robots.txt returned HTTP 404 (https://example.com/robots.txt)" in text
        assert "- [INFO] HSTS_MISSING" in text

    def test_empty_sections_are_skipped(self, console):
        render_diff(ReportDiff(unchanged=[ROBOTS]), console=console)
        assert "New issues" not in output(console)

    def test_diff_json(self):
        data = json.loads(format_diff_json(ReportDiff(new=[HSTS])))

        assert data["new"][0]["code"] == SecurityCode.HSTS_MISSING
        assert data["resolved"] == [] and data["unchanged"] == []
