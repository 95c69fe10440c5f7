"""
JSON form of an AuditReport (the canonical persisted form) and run-to-run diffing.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from models import AnalyzerResult, AuditReport, Finding, Summary


class ReportFormatError(Exception):
    """A persisted report could not be read back."""


# ── Serialize ──────────────────────────────────────────────────────────────────

def finding_to_dict(finding: Finding) -> dict[str, Any]:
    data: dict[str, Any] = {
        "code":        finding.code,
        "severity":    finding.severity,
        "category":    finding.category,
        "message":     finding.message,
        "explanation": finding.explanation,
        "suggestion":  finding.suggestion,
    }
    # Optional keys are omitted rather than written as null
    if finding.details is not None:
        data["details"] = finding.details
    if finding.url is not None:
        data["url"] = finding.url
    return data


def report_to_dict(report: AuditReport) -> dict[str, Any]:
    return {
        "url":         report.url,
        "timestamp":   report.timestamp,
        "duration_ms": report.duration_ms,
        "summary": {
            "errors":   report.summary.errors,
            "warnings": report.summary.warnings,
            "info":     report.summary.info,
            "passed":   report.summary.passed,
        },
        "results": [
            {
                "analyzer_name": result.analyzer_name,
                "findings": [finding_to_dict(f) for f in result.findings],
            }
            for result in report.results
        ],
    }


def report_to_json(report: AuditReport, indent: int = 2) -> str:
    return json.dumps(report_to_dict(report), indent=indent, ensure_ascii=False)


# ── Deserialize ────────────────────────────────────────────────────────────────

def report_from_dict(data: dict[str, Any]) -> AuditReport:
    """Rebuild a report; summary counts are recomputed from the findings."""
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        raise ReportFormatError("Invalid report: missing results array")

    results: list[AnalyzerResult] = []
    try:
        for raw_result in data["results"]:
            findings = tuple(
                Finding(
                    code=raw["code"],
                    severity=raw["severity"],
                    category=raw["category"],
                    message=raw["message"],
                    explanation=raw["explanation"],
                    suggestion=raw["suggestion"],
                    details=raw.get("details"),
                    url=raw.get("url"),
                )
                for raw in raw_result.get("findings", [])
            )
            results.append(AnalyzerResult(analyzer_name=raw_result["analyzer_name"], findings=findings))
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise ReportFormatError(f"Invalid report: {exc}") from exc

    return AuditReport(
        url=data.get("url", ""),
        timestamp=data.get("timestamp", ""),
        duration_ms=int(data.get("duration_ms", 0) or 0),
        summary=Summary.from_results(results),
        results=results,
    )


def report_from_json(text: str) -> AuditReport:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportFormatError(f"Invalid JSON: {exc}") from exc
    return report_from_dict(data)


def load_report(path: Union[str, Path]) -> AuditReport:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ReportFormatError(f"Cannot read {path}: {exc}") from exc
    return report_from_json(text)


# ── Diff ───────────────────────────────────────────────────────────────────────

@dataclass
class ReportDiff:
    new: list[Finding] = field(default_factory=list)
    resolved: list[Finding] = field(default_factory=list)
    unchanged: list[Finding] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "new":       [finding_to_dict(f) for f in self.new],
            "resolved":  [finding_to_dict(f) for f in self.resolved],
            "unchanged": [finding_to_dict(f) for f in self.unchanged],
        }


def finding_key(finding: Finding) -> tuple[str, str]:
    """Identity of a finding across runs."""
    return finding.code, finding.url or ""


def diff_reports(current: AuditReport, previous: AuditReport) -> ReportDiff:
    current_findings = current.all_findings
    previous_findings = previous.all_findings
    current_keys = {finding_key(f) for f in current_findings}
    previous_keys = {finding_key(f) for f in previous_findings}

    return ReportDiff(
        new=[f for f in current_findings if finding_key(f) not in previous_keys],
        resolved=[f for f in previous_findings if finding_key(f) not in current_keys],
        unchanged=[f for f in current_findings if finding_key(f) in previous_keys],
    )
