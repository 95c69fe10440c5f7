"""
Human-readable renderings of an AuditReport: colored console output (rich),
Markdown, and run-to-run diffs.
"""
from __future__ import annotations

import json
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from models import AuditReport, Finding, Severity
from reporting.serialization import ReportDiff

_RICH_STYLES = {
    Severity.ERROR:   "red",
    Severity.WARNING: "yellow",
    Severity.INFO:    "blue",
    Severity.PASS:    "green",
}

_MD_ICONS = {
    Severity.ERROR:   "❌",
    Severity.WARNING: "⚠️",
    Severity.INFO:    "ℹ️",
    Severity.PASS:    "✅",
}

_SUMMARY_ROWS = [
    ("errors",   "Errors",   Severity.ERROR),
    ("warnings", "Warnings", Severity.WARNING),
    ("info",     "Info",     Severity.INFO),
    ("passed",   "Passed",   Severity.PASS),
]


# ── Console ────────────────────────────────────────────────────────────────────

def render_console(report: AuditReport, verbose: bool = False, console: Optional[Console] = None) -> None:
    console = console or Console()

    console.print()
    console.print(f"[bold underline]SEO Audit Report for {escape(report.url)}[/]")
    console.print(f"[dim]  Completed in {report.duration_ms}ms at {report.timestamp}[/]")
    console.print()

    table = Table(title="Summary", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Severity")
    table.add_column("Count", justify="right")
    for attr, label, severity in _SUMMARY_ROWS:
        count = getattr(report.summary, attr)
        if count:
            style = _RICH_STYLES[severity]
            table.add_row(f"[{style}]{Severity.ICONS[severity]} {label}[/]", str(count))
    console.print(table)
    console.print()

    by_category = report.findings_by_category
    if not by_category:
        console.print(Panel.fit("[bold green]No issues found!", border_style="green"))
        return

    for category, findings in by_category.items():
        console.print(f"[bold]  {category.upper()}[/]")
        console.print(f"[dim]  {'─' * 40}[/]")
        for finding in findings:
            _print_finding(console, finding, verbose)
            console.print()


def _print_finding(console: Console, finding: Finding, verbose: bool) -> None:
    style = _RICH_STYLES[finding.severity]
    icon = Severity.ICONS[finding.severity]
    label = escape(f"[{finding.severity.upper()}]")
    console.print(f"[{style}]  {icon} {label} {escape(finding.message)}[/]", highlight=False)
    console.print(f"[dim]    {escape(finding.explanation)}[/]", highlight=False)
    console.print(f"[cyan]    → {escape(finding.suggestion)}[/]", highlight=False)
    if finding.url:
        console.print(f"[dim]    URL: {escape(finding.url)}[/]", highlight=False)
    if verbose and finding.details:
        detail_text = json.dumps(finding.details, indent=2, ensure_ascii=False).replace("\n", "\n    ")
        console.print(f"[dim]    Details: {escape(detail_text)}[/]", highlight=False)


# ── Markdown ───────────────────────────────────────────────────────────────────

def format_markdown(report: AuditReport) -> str:
    lines: list[str] = [
        f"# SEO Audit Report for {report.url}",
        "",
        f"> Completed in {report.duration_ms}ms at {report.timestamp}",
        "",
        "## Summary",
        "",
        "| Severity | Count |",
        "|----------|-------|",
    ]
    for attr, label, severity in _SUMMARY_ROWS:
        count = getattr(report.summary, attr)
        if count:
            lines.append(f"| {_MD_ICONS[severity]} {label} | {count} |")
    lines.append("")

    by_category = report.findings_by_category
    for category, findings in by_category.items():
        lines.append(f"## {category[:1].upper()}{category[1:]}")
        lines.append("")
        for finding in findings:
            lines.append(_finding_md(finding))
        lines.append("")

    if not by_category:
        lines.append("**No issues found!**")
        lines.append("")

    return "\n".join(lines)


def _finding_md(finding: Finding) -> str:
    lines = [
        f"- {_MD_ICONS[finding.severity]} **[{finding.severity.upper()}]** {finding.message}",
        f"  - {finding.explanation}",
        f"  - **Fix:** {finding.suggestion}",
    ]
    if finding.url:
        lines.append(f"  - URL: `{finding.url}`")
    return "\n".join(lines)


# ── Diff ───────────────────────────────────────────────────────────────────────

def render_diff(diff: ReportDiff, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print()
    console.print("[bold underline]Changes since previous report[/]")
    console.print(
        f"  [red]{len(diff.new)} new[/]  [green]{len(diff.resolved)} resolved[/]  "
        f"[dim]{len(diff.unchanged)} unchanged[/]"
    )

    sections = [("New issues", diff.new, "red", "+"), ("Resolved issues", diff.resolved, "green", "-")]
    for title, findings, style, marker in sections:
        if not findings:
            continue
        console.print()
        console.print(f"[bold {style}]  {title}[/]")
        for finding in findings:
            where = f" ({escape(finding.url)})" if finding.url else ""
            label = escape(f"[{finding.severity.upper()}]")
            console.print(
                f"[{style}]    {marker} {label} {finding.code}: {escape(finding.message)}{where}[/]",
                highlight=False,
            )


def format_diff_json(diff: ReportDiff) -> str:
    return json.dumps(diff.to_dict(), indent=2, ensure_ascii=False)
