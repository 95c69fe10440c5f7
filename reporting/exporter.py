"""
Converts AuditReport data to Pandas DataFrames, CSV bytes and a standalone HTML report.
"""
from __future__ import annotations

import html
import io
import json

import pandas as pd

from models import AuditReport, Finding, Severity

_SEVERITY_ORDER = {s: i for i, s in enumerate(Severity.ALL)}

_FINDING_COLUMNS = ["Severity", "Category", "Code", "Message", "URL", "Explanation", "Suggestion", "Details"]


# ── Findings DataFrame ─────────────────────────────────────────────────────────

def findings_to_df(findings: list[Finding]) -> pd.DataFrame:
    if not findings:
        return pd.DataFrame(columns=_FINDING_COLUMNS)

    rows = []
    for finding in findings:
        rows.append({
            "Severity":    finding.severity.upper(),
            "Category":    finding.category,
            "Code":        finding.code,
            "Message":     finding.message,
            "URL":         finding.url or "",
            "Explanation": finding.explanation,
            "Suggestion":  finding.suggestion,
            "Details":     json.dumps(finding.details, ensure_ascii=False) if finding.details else "",
        })

    df = pd.DataFrame(rows, columns=_FINDING_COLUMNS)

    # Severity sort order; stable so findings keep report order within a group
    df["_sev_order"] = df["Severity"].str.lower().map(_SEVERITY_ORDER)
    df = df.sort_values(["_sev_order", "Category"], kind="stable").drop(columns=["_sev_order"])
    return df.reset_index(drop=True)


def report_to_df(report: AuditReport) -> pd.DataFrame:
    return findings_to_df(report.all_findings)


# ── Summary table ──────────────────────────────────────────────────────────────

def summary_df(findings: list[Finding]) -> pd.DataFrame:
    """Finding counts per category, one column per severity."""
    columns = ["Category"] + [s.capitalize() for s in Severity.ALL]
    if not findings:
        return pd.DataFrame(columns=columns)

    counts: dict[str, dict[str, int]] = {}
    for finding in findings:
        row = counts.setdefault(finding.category, {s.capitalize(): 0 for s in Severity.ALL})
        row[finding.severity.capitalize()] += 1

    data = [{"Category": category, **row} for category, row in counts.items()]
    return pd.DataFrame(data, columns=columns).sort_values("Category").reset_index(drop=True)


# ── CSV export ─────────────────────────────────────────────────────────────────

def to_csv_bytes(df: pd.DataFrame) -> bytes:
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8")


# ── HTML export ────────────────────────────────────────────────────────────────

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>SEO Audit Report for {url}</title>
<style>
body {{ font-family: -apple-system, Segoe UI, Helvetica, Arial, sans-serif; margin: 2rem; color: #222; }}
table {{ border-collapse: collapse; width: 100%; margin-bottom: 2rem; font-size: 0.9rem; }}
th, td {{ border: 1px solid #ddd; padding: 6px 8px; text-align: left; vertical-align: top; }}
th {{ background: #f5f5f5; }}
.cards {{ display: flex; gap: 1rem; margin: 1rem 0 2rem; }}
.card {{ padding: 0.75rem 1.25rem; border-radius: 6px; color: #fff; font-weight: 600; }}
</style>
</head>
<body>
<h1>SEO Audit Report for {url}</h1>
<p>Completed in {duration_ms}ms at {timestamp}</p>
<div class="cards">{cards}</div>
<h2>By category</h2>
{summary_table}
<h2>Findings</h2>
{findings_table}
</body>
</html>
"""


def to_html_report(report: AuditReport) -> str:
    counts = {
        Severity.ERROR:   report.summary.errors,
        Severity.WARNING: report.summary.warnings,
        Severity.INFO:    report.summary.info,
        Severity.PASS:    report.summary.passed,
    }
    cards = "".join(
        f'<div class="card" style="background:{Severity.COLORS[s]}">{counts[s]} {s}</div>'
        for s in Severity.ALL
    )
    findings = report.all_findings
    return _HTML_TEMPLATE.format(
        url=html.escape(report.url),
        duration_ms=report.duration_ms,
        timestamp=html.escape(report.timestamp),
        cards=cards,
        summary_table=summary_df(findings).to_html(index=False, border=0),
        findings_table=findings_to_df(findings).to_html(index=False, border=0),
    )
