"""Tests for report persistence and run-to-run diffs."""

import json

import pytest

from models import AnalyzerResult, AuditReport, Category, Finding, MetadataCode, RobotsCode, Severity, Summary
from reporting.serialization import (
    ReportFormatError,
    diff_reports,
    finding_to_dict,
    load_report,
    report_from_json,
    report_to_dict,
    report_to_json,
)


def finding(code, category, severity=Severity.WARNING, url=None, details=None):
    return Finding(
        code=code,
        severity=severity,
        category=category,
        message=f"{code} message",
        explanation="Why it matters.",
        suggestion="How to fix it.",
        details=details,
        url=url,
    )


ROBOTS_MISSING = finding(RobotsCode.ROBOTS_MISSING, Category.ROBOTS, url="https://example.com/robots.txt")
TITLE_MISSING = finding(MetadataCode.TITLE_MISSING, Category.METADATA, Severity.ERROR)
DESCRIPTION_MISSING = finding(
    MetadataCode.DESCRIPTION_MISSING, Category.METADATA, details={"length": 0, "tags": ["a", "b"]},
)


def report(*results):
    analyzer_results = [AnalyzerResult(analyzer_name=name, findings=tuple(fs)) for name, fs in results]
    return AuditReport(
        url="https://example.com/",
        timestamp="2026-01-01T00:00:00.000Z",
        duration_ms=1234,
        summary=Summary.from_results(analyzer_results),
        results=analyzer_results,
    )


class TestSerialize:

    def test_optional_keys_are_omitted(self):
        data = finding_to_dict(TITLE_MISSING)

        assert "details" not in data
        assert "url" not in data
        assert data["severity"] == "error"

    def test_report_shape(self):
        data = report_to_dict(report(("robots", [ROBOTS_MISSING]), ("metadata", [TITLE_MISSING])))

        assert data["summary"] == {"errors": 1, "warnings": 1, "info": 0, "passed": 0}
        assert [r["analyzer_name"] for r in data["results"]] == ["robots", "metadata"]
        assert data["results"][0]["findings"][0]["url"] == "https://example.com/robots.txt"

    def test_json_round_trip(self):
        original = report(("robots", [ROBOTS_MISSING]), ("metadata", [TITLE_MISSING, DESCRIPTION_MISSING]))
        restored = report_from_json(report_to_json(original))

        assert restored == original


class TestDeserialize:

    def test_summary_is_recomputed(self):
        data = report_to_dict(report(("robots", [ROBOTS_MISSING])))
        data["summary"] = {"errors": 99, "warnings": 0, "info": 0, "passed": 0}

        restored = report_from_json(json.dumps(data))
        assert restored.summary == Summary(warnings=1)

    @pytest.mark.parametrize("text", [
        "not json",
        "[]",
        '{"url": "https://example.com/"}',
        '{"results": [{"analyzer_name": "robots", "findings": [{"code": "ROBOTS_MISSING"}]}]}',
        '{"results": [{"analyzer_name": "x", "findings": [{"code": "NOPE", "severity": "error", '
        '"category": "robots", "message": "m", "explanation": "e", "suggestion": "s"}]}]}',
    ])
    def test_malformed_reports(self, text):
        with pytest.raises(ReportFormatError):
            report_from_json(text)

    def test_load_report_from_file(self, tmp_path):
        path = tmp_path / "previous.json"
        path.write_text(report_to_json(report(("robots", [ROBOTS_MISSING]))), encoding="utf-8")

        assert load_report(path).all_findings == [ROBOTS_MISSING]

    def test_load_report_missing_file(self, tmp_path):
        with pytest.raises(ReportFormatError, match="Cannot read"):
            load_report(tmp_path / "absent.json")


class TestDiff:

    def test_new_resolved_unchanged(self):
        previous = report(("robots", [ROBOTS_MISSING]), ("metadata", [TITLE_MISSING]))
        current = report(("robots", [ROBOTS_MISSING]), ("metadata", [DESCRIPTION_MISSING]))

        diff = diff_reports(current, previous)

        assert diff.new == [DESCRIPTION_MISSING]
        assert diff.resolved == [TITLE_MISSING]
        assert diff.unchanged == [ROBOTS_MISSING]

    def test_identity_includes_url(self):
        on_about = finding(MetadataCode.TITLE_MISSING, Category.METADATA, url="https://example.com/about")
        diff = diff_reports(report(("crawl", [on_about])), report(("metadata", [TITLE_MISSING])))

        assert diff.new == [on_about]
        assert diff.resolved == [TITLE_MISSING]

    def test_message_changes_are_not_new(self):
        reworded = Finding(**{**TITLE_MISSING.__dict__, "message": "Reworded"})
        diff = diff_reports(report(("metadata", [reworded])), report(("metadata", [TITLE_MISSING])))

        assert diff.new == []
        assert diff.unchanged == [reworded]

    def test_to_dict(self):
        diff = diff_reports(report(("robots", [ROBOTS_MISSING])), report())
        assert diff.to_dict() == {"new": [finding_to_dict(ROBOTS_MISSING)], "resolved": [], "unchanged": []}
