"""Tests for DataFrame, CSV and HTML exports."""

import json

from models import AnalyzerResult, AuditReport, Category, Finding, MetadataCode, RobotsCode, Severity, Summary
from reporting.exporter import findings_to_df, report_to_df, summary_df, to_csv_bytes, to_html_report


def finding(code, category, severity, details=None, url=None):
    return Finding(
        code=code, severity=severity, category=category, message=f"{code} found",
        explanation="Explanation.", suggestion="Suggestion.", details=details, url=url,
    )


FINDINGS = [
    finding(RobotsCode.ROBOTS_NO_SITEMAP, Category.ROBOTS, Severity.INFO),
    finding(MetadataCode.DESCRIPTION_MISSING, Category.METADATA, Severity.WARNING),
    finding(MetadataCode.TITLE_MISSING, Category.METADATA, Severity.ERROR, details={"n": 1}),
    finding(RobotsCode.ROBOTS_MISSING, Category.ROBOTS, Severity.WARNING, url="https://example.com/robots.txt"),
]


def make_report(findings):
    results = [AnalyzerResult(analyzer_name="x", findings=tuple(findings))]
    return AuditReport(
        url="https://example.com/?a=<b>",
        timestamp="2026-01-01T00:00:00.000Z",
        duration_ms=10,
        summary=Summary.from_results(results),
        results=results,
    )


class TestFindingsDataFrame:

    def test_empty(self):
        df = findings_to_df([])

        assert df.empty
        assert list(df.columns) == ["Severity", "Category", "Code", "Message", "URL", "Explanation", "Suggestion", "Details"]

    def test_sorted_by_severity_then_category(self):
        df = findings_to_df(FINDINGS)

        assert list(df["Code"]) == [
            MetadataCode.TITLE_MISSING,
            MetadataCode.DESCRIPTION_MISSING,
            RobotsCode.ROBOTS_MISSING,
            RobotsCode.ROBOTS_NO_SITEMAP,
        ]
        assert list(df["Severity"]) == ["ERROR", "WARNING", "WARNING", "INFO"]

    def test_details_and_url_columns(self):
        df = findings_to_df(FINDINGS)

        assert json.loads(df.loc[0, "Details"]) == {"n": 1}
        assert df.loc[1, "Details"] == ""
        assert df.loc[2, "URL"] == "https://example.com/robots.txt"

    def test_report_to_df(self):
        assert len(report_to_df(make_report(FINDINGS))) == 4


class TestSummaryDataFrame:

    def test_counts_per_category(self):
        df = summary_df(FINDINGS)

        assert list(df["Category"]) == [Category.METADATA, Category.ROBOTS]
        metadata = df.iloc[0]
        assert (metadata["Error"], metadata["Warning"], metadata["Info"], metadata["Pass"]) == (1, 1, 0, 0)

    def test_empty(self):
        assert list(summary_df([]).columns) == ["Category", "Error", "Warning", "Info", "Pass"]


class TestExports:

    def test_csv_bytes(self):
        csv = to_csv_bytes(findings_to_df(FINDINGS)).decode("utf-8")
        lines = csv.strip().splitlines()

        assert lines[0] == "Severity,Category,Code,Message,URL,Explanation,Suggestion,Details"
        assert len(lines) == 5

    def test_html_report(self):
        page = to_html_report(make_report(FINDINGS))

        assert page.startswith("<!DOCTYPE html>")
        assert "https://example.com/?a=&lt;b&gt;" in page
        assert f'background:{Severity.COLORS[Severity.ERROR]}">1 error' in page
        assert MetadataCode.TITLE_MISSING in page
