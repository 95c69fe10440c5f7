"""
Plotly chart builders for the SEO audit dashboard.
All functions return plotly Figure objects.
"""
from __future__ import annotations

import plotly.graph_objects as go

from models import AuditReport, Finding, Severity

_COLORS = Severity.COLORS

_BG = "#1A1D27"
_PAPER = "#0E1117"
_GRID = "#2A2D3A"
_TEXT = "#FAFAFA"


def _base_layout(**kwargs) -> dict:
    return {
        "paper_bgcolor": _PAPER,
        "plot_bgcolor":  _BG,
        "font": {"color": _TEXT, "family": "sans-serif"},
        "margin": {"l": 20, "r": 20, "t": 40, "b": 20},
        **kwargs,
    }


def _title(text: str) -> dict:
    return {"text": text, "x": 0.5, "xanchor": "center", "font": {"size": 14, "color": _TEXT}}


# ── Findings by severity donut ─────────────────────────────────────────────────

def findings_by_severity_donut(findings: list[Finding]) -> go.Figure:
    counts = {s: 0 for s in Severity.ALL}
    for finding in findings:
        counts[finding.severity] += 1

    total = sum(counts.values())
    if not total:
        return _empty_chart("No findings")

    labels = [s.capitalize() for s in Severity.ALL]
    values = [counts[s] for s in Severity.ALL]
    colors = [_COLORS[s] for s in Severity.ALL]

    fig = go.Figure(go.Pie(
        labels=labels,
        values=values,
        hole=0.6,
        sort=False,
        marker={"colors": colors, "line": {"color": _BG, "width": 2}},
        hovertemplate="<b>%{label}</b>: %{value} findings<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=280),
        title=_title("Findings by Severity"),
        annotations=[{
            "text": f"<b>{total}</b><br>Total",
            "x": 0.5, "y": 0.5,
            "font_size": 18,
            "font_color": _TEXT,
            "showarrow": False,
        }],
        legend={"font": {"color": _TEXT}},
        showlegend=True,
    )
    return fig


# ── Findings by category (horizontal bar, stacked by severity) ────────────────

def findings_by_category_bar(findings: list[Finding]) -> go.Figure:
    counts: dict[str, dict[str, int]] = {}
    for finding in findings:
        row = counts.setdefault(finding.category, {s: 0 for s in Severity.ALL})
        row[finding.severity] += 1

    if not counts:
        return _empty_chart("No findings")

    # Worst categories first
    cats = sorted(counts.keys(), key=lambda c: (
        -counts[c][Severity.ERROR], -counts[c][Severity.WARNING], -counts[c][Severity.INFO], c
    ))

    fig = go.Figure()
    for sev in Severity.ALL:
        fig.add_trace(go.Bar(
            y=cats,
            x=[counts[c][sev] for c in cats],
            name=sev.capitalize(),
            orientation="h",
            marker_color=_COLORS[sev],
            hovertemplate=f"<b>%{{y}}</b><br>{sev.capitalize()}: %{{x}}<extra></extra>",
        ))

    fig.update_layout(
        **_base_layout(height=max(300, len(cats) * 38 + 80)),
        title=_title("Findings by Category"),
        barmode="stack",
        legend={"orientation": "h", "y": -0.15, "font": {"color": _TEXT}},
        xaxis={"title": "Findings", "gridcolor": _GRID, "color": _TEXT},
        yaxis={"gridcolor": _GRID, "color": _TEXT, "automargin": True, "autorange": "reversed"},
    )
    return fig


# ── Findings per analyzer ──────────────────────────────────────────────────────

def findings_by_analyzer_bar(report: AuditReport) -> go.Figure:
    names = [r.analyzer_name for r in report.results]
    if not names:
        return _empty_chart("No analyzer results")

    values = [len(r.findings) for r in report.results]
    fig = go.Figure(go.Bar(
        x=names,
        y=values,
        marker_color="#6C63FF",
        hovertemplate="<b>%{x}</b><br>Findings: %{y}<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=260),
        title=_title("Findings per Analyzer"),
        xaxis={"gridcolor": _GRID, "color": _TEXT},
        yaxis={"title": "Findings", "gridcolor": _GRID, "color": _TEXT},
        showlegend=False,
    )
    return fig


# ── Helper ─────────────────────────────────────────────────────────────────────

def _empty_chart(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(text=message, x=0.5, y=0.5, showarrow=False, font={"color": _TEXT, "size": 14})
    fig.update_layout(**_base_layout(height=260))
    return fig
