"""
SEO Audit: Streamlit dashboard
Diagnoses SEO and indexing issues for a single site.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

import pandas as pd
import streamlit as st

from analyzers.orchestrator import run_audit
from config import COMMON_PAGES, DEFAULT_CRAWL_LIMIT, DEFAULT_TIMEOUT_MS, USER_AGENT_PRESETS
from crawler.urls import normalize_url
from models import AuditReport, Finding, Severity
from reporting.exporter import findings_to_df, summary_df, to_csv_bytes
from reporting.formatters import format_markdown
from reporting.serialization import report_to_json
from ui.charts import findings_by_analyzer_bar, findings_by_category_bar, findings_by_severity_donut

# ── Page config ────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="SEO Audit",
    page_icon="🔍",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Custom CSS ─────────────────────────────────────────────────────────────────
st.markdown("""
<style>
.block-container { padding-top: 1rem; }

/* Metric cards */
.metric-card {
    background: #1A1D27;
    border-radius: 10px;
    padding: 1rem 1.2rem;
    margin-bottom: 0.5rem;
    border-left: 4px solid;
}
.metric-card.error   { border-color: #FF4B4B; }
.metric-card.warning { border-color: #FFA500; }
.metric-card.info    { border-color: #4B9EFF; }
.metric-card.pass    { border-color: #00C851; }
.metric-card.neutral { border-color: #6C63FF; }

.metric-val  { font-size: 2rem; font-weight: 700; margin: 0; }
.metric-lbl  { font-size: 0.8rem; color: #888; text-transform: uppercase; letter-spacing: 0.05em; }

/* Severity pills */
.pill {
    display: inline-block;
    padding: 2px 10px;
    border-radius: 12px;
    font-size: 0.75rem;
    font-weight: 600;
    letter-spacing: 0.05em;
    text-transform: uppercase;
}
.pill.error   { background: #FF4B4B22; color: #FF4B4B; border: 1px solid #FF4B4B55; }
.pill.warning { background: #FFA50022; color: #FFA500; border: 1px solid #FFA50055; }
.pill.info    { background: #4B9EFF22; color: #4B9EFF; border: 1px solid #4B9EFF55; }
.pill.pass    { background: #00C85122; color: #00C851; border: 1px solid #00C85155; }

.modebar { display: none !important; }

.sidebar-logo { font-size: 1.5rem; font-weight: 800; color: #6C63FF; margin-bottom: 0.5rem; }
</style>
""", unsafe_allow_html=True)


@dataclass
class AuditRequest:
    url: str
    timeout_ms: int
    user_agent: Optional[str]
    pages: Optional[list[str]]
    crawl_limit: Optional[int]


# ── State helpers ──────────────────────────────────────────────────────────────

def _clear_results():
    st.session_state.pop("audit_report", None)


def _has_result() -> bool:
    return st.session_state.get("audit_report") is not None


# ── Sidebar ────────────────────────────────────────────────────────────────────

def render_sidebar() -> AuditRequest | None:
    with st.sidebar:
        st.markdown('<div class="sidebar-logo">🔍 SEO Audit</div>', unsafe_allow_html=True)
        st.caption("Indexing & technical SEO diagnostics")
        st.divider()

        st.subheader("Target")
        url = st.text_input(
            "Site URL",
            placeholder="https://example.com",
            help="https:// is assumed when no scheme is given",
        )

        st.subheader("Requests")
        timeout_s = st.slider("Request timeout (s)", 1, 60, DEFAULT_TIMEOUT_MS // 1000, 1)
        ua_options = ["default"] + list(USER_AGENT_PRESETS.keys())
        ua_label = st.selectbox("Request as", options=ua_options, index=0)
        user_agent = None if ua_label == "default" else ua_label
        if user_agent:
            st.caption(f"`{USER_AGENT_PRESETS[user_agent]}`")

        st.subheader("Redirect sample pages")
        pages_text = st.text_input(
            "Paths (comma-separated)",
            value=",".join(COMMON_PAGES),
            help="Each path must start with /",
        )

        st.subheader("Crawl mode")
        crawl_enabled = st.toggle("Audit sitemap pages", value=False)
        crawl_limit = st.slider("Max pages", 1, 500, DEFAULT_CRAWL_LIMIT, 1, disabled=not crawl_enabled)

        st.divider()

        if _has_result():
            if st.button("🔄 New Audit", type="primary", use_container_width=True):
                _clear_results()
                st.rerun()
            st.divider()

        start = st.button("Start Audit", type="primary", use_container_width=True)

        if not _has_result():
            st.divider()
            st.caption("Enter a URL and click **Start Audit** to run every check.")

    if not (start and url):
        return None

    try:
        normalize_url(url)
    except ValueError:
        st.sidebar.error(f'Invalid URL "{url}"')
        return None

    pages = [p.strip() for p in pages_text.split(",") if p.strip()]
    bad = [p for p in pages if not p.startswith("/")]
    if bad:
        st.sidebar.error(f'Invalid page path "{bad[0]}": each path must start with "/"')
        return None

    return AuditRequest(
        url=url,
        timeout_ms=timeout_s * 1000,
        user_agent=user_agent,
        pages=pages or None,
        crawl_limit=crawl_limit if crawl_enabled else None,
    )


# ── Run audit ──────────────────────────────────────────────────────────────────

def start_audit(request: AuditRequest) -> None:
    progress_bar = st.progress(0)
    status_text = st.empty()

    def on_progress(update: dict):
        pct = update.get("pct", 0)
        msg = update.get("message", "")
        progress_bar.progress(min(pct, 100))
        status_text.markdown(f"**{msg}**")

    with st.status("Running audit…", expanded=True) as status_widget:
        st.write(f"Auditing **{request.url}**…")
        try:
            report = run_audit(
                request.url,
                timeout_ms=request.timeout_ms,
                pages=request.pages,
                user_agent=request.user_agent,
                crawl_limit=request.crawl_limit,
                progress_callback=on_progress,
            )
        except Exception as exc:
            status_widget.update(label="Audit failed", state="error")
            st.error(f"Audit failed: {exc}")
            return

        st.write(f"Found **{len(report.all_findings)}** findings.")
        status_widget.update(label="Audit complete!", state="complete")

    progress_bar.empty()
    status_text.empty()

    st.session_state.audit_report = report
    st.rerun()


# ── Dashboard: Overview ────────────────────────────────────────────────────────

def render_overview(report: AuditReport) -> None:
    findings = report.all_findings
    summary = report.summary

    c1, c2, c3, c4, c5 = st.columns(5)
    _metric_card(c1, "Errors",    summary.errors,   "error")
    _metric_card(c2, "Warnings",  summary.warnings, "warning")
    _metric_card(c3, "Notices",   summary.info,     "info")
    _metric_card(c4, "Passed",    summary.passed,   "pass")
    _metric_card(c5, "Duration",  f"{report.duration_ms / 1000:.1f}s", "neutral")

    st.divider()
    c_left, c_right = st.columns(2)
    with c_left:
        st.plotly_chart(findings_by_category_bar(findings), use_container_width=True)
    with c_right:
        st.plotly_chart(findings_by_severity_donut(findings), use_container_width=True)

    st.plotly_chart(findings_by_analyzer_bar(report), use_container_width=True)

    st.divider()
    st.subheader("Errors")
    errors = report.findings_by_severity.get(Severity.ERROR, [])
    if errors:
        _render_finding_table(errors)
    else:
        st.success("No errors found!")


# ── Dashboard: Findings by category ────────────────────────────────────────────

def render_by_category(report: AuditReport) -> None:
    by_cat = report.findings_by_category
    if not by_cat:
        st.success("No issues found!")
        return

    categories = sorted(by_cat.keys(), key=lambda c: (
        -sum(1 for f in by_cat[c] if f.severity == Severity.ERROR),
        -sum(1 for f in by_cat[c] if f.severity == Severity.WARNING),
        c,
    ))

    col1, col2 = st.columns(2)
    with col1:
        cat_filter = st.multiselect("Filter by category", options=categories, default=categories)
    with col2:
        sev_filter = st.multiselect(
            "Filter by severity",
            options=Severity.ALL,
            default=[Severity.ERROR, Severity.WARNING, Severity.INFO],
            format_func=lambda s: s.capitalize(),
        )

    for cat in cat_filter:
        cat_findings = [f for f in by_cat.get(cat, []) if f.severity in sev_filter]
        if not cat_findings:
            continue

        sev_counts = {sev: sum(1 for f in cat_findings if f.severity == sev) for sev in Severity.ALL}
        badge_html = " ".join(
            f'<span class="pill {sev}">{n} {sev}</span>' for sev, n in sev_counts.items() if n
        )

        with st.expander(f"**{cat}**: {len(cat_findings)} finding(s)", expanded=(cat == categories[0])):
            st.markdown(badge_html, unsafe_allow_html=True)
            st.markdown("")
            for finding in cat_findings:
                _render_finding(finding)


def _render_finding(finding: Finding) -> None:
    icon = Severity.ICONS.get(finding.severity, "•")
    st.markdown(f"{icon} **{finding.message}** `{finding.code}`")
    st.markdown(f"{finding.explanation}")
    st.markdown(f"**Fix:** {finding.suggestion}")
    if finding.url:
        st.markdown(f"**URL:** `{finding.url}`")
    if finding.details:
        with st.expander("Details"):
            st.json(finding.details)
    st.markdown("---")


# ── Dashboard: Crawled pages ──────────────────────────────────────────────────

def render_pages(report: AuditReport) -> None:
    page_findings = [f for f in report.all_findings if f.url]
    if not page_findings:
        st.info("No page-level findings. Enable crawl mode to audit sitemap pages.")
        return

    df = findings_to_df(page_findings)
    search = st.text_input("Search URL", placeholder="Filter by URL…")
    if search:
        df = df[df["URL"].str.contains(search, case=False, na=False, regex=False)]

    per_url = (
        df.groupby("URL")["Severity"]
        .value_counts()
        .unstack(fill_value=0)
        .reset_index()
    )
    st.caption(f"{len(per_url)} URL(s) with findings")
    st.dataframe(per_url, use_container_width=True, height=400)

    st.divider()
    _render_finding_table_df(df)


# ── Dashboard: Export ─────────────────────────────────────────────────────────

def render_export(report: AuditReport) -> None:
    st.subheader("Export")
    host = urlsplit(report.url).hostname or "site"
    stamp = datetime.now().strftime("%Y%m%d_%H%M")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.download_button(
            "Download Report (JSON)",
            data=report_to_json(report).encode("utf-8"),
            file_name=f"report_{host}_{stamp}.json",
            mime="application/json",
            use_container_width=True,
        )
    with col2:
        st.download_button(
            "Download Report (Markdown)",
            data=format_markdown(report).encode("utf-8"),
            file_name=f"report_{host}_{stamp}.md",
            mime="text/markdown",
            use_container_width=True,
        )
    with col3:
        df_findings = findings_to_df(report.all_findings)
        st.download_button(
            "Download Findings (CSV)",
            data=to_csv_bytes(df_findings),
            file_name=f"findings_{host}_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
        st.caption(f"{len(df_findings)} findings")
    with col4:
        st.download_button(
            "Download Summary (CSV)",
            data=to_csv_bytes(summary_df(report.all_findings)),
            file_name=f"summary_{host}_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )

    st.divider()
    st.subheader("All Findings")
    _render_finding_table(report.all_findings)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _metric_card(col, label: str, value, card_class: str = "neutral") -> None:
    with col:
        st.markdown(
            f'<div class="metric-card {card_class}">'
            f'<div class="metric-lbl">{label}</div>'
            f'<div class="metric-val">{value}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


def _render_finding_table(findings: list[Finding]) -> None:
    if findings:
        _render_finding_table_df(findings_to_df(findings))


def _render_finding_table_df(df: pd.DataFrame) -> None:
    if df.empty:
        return
    st.dataframe(
        df.drop(columns=["Details"]),
        use_container_width=True,
        height=min(600, len(df) * 36 + 60),
        column_config={
            "Severity":    st.column_config.TextColumn("Severity", width="small"),
            "Category":    st.column_config.TextColumn("Category", width="small"),
            "Code":        st.column_config.TextColumn("Code", width="medium"),
            "Message":     st.column_config.TextColumn("Message", width="large"),
            "URL":         st.column_config.TextColumn("URL", width="medium"),
            "Explanation": st.column_config.TextColumn("Explanation", width="large"),
            "Suggestion":  st.column_config.TextColumn("Suggestion", width="large"),
        },
    )


# ── Landing / empty state ──────────────────────────────────────────────────────

def render_landing() -> None:
    st.markdown("""
    <div style="text-align:center; padding: 4rem 2rem;">
        <div style="font-size:4rem">🔍</div>
        <h1 style="font-size:2.5rem; font-weight:800; color:#6C63FF; margin:0.5rem 0">SEO Audit</h1>
        <p style="font-size:1.1rem; color:#888; max-width:600px; margin:0 auto 2rem">
            Finds the reasons a site is not being indexed: robots.txt rules, sitemap problems,
            redirect chains, canonical and metadata issues, structured data, hreflang and more.
        </p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3, col4 = st.columns(4)
    _feature_card(col1, "🤖", "Crawlability", "robots.txt, sitemap.xml and redirect chains")
    _feature_card(col2, "🏷️", "Metadata", "Canonicals, noindex, Open Graph, Twitter cards")
    _feature_card(col3, "🧩", "Structured Data", "JSON-LD validity and required fields, hreflang")
    _feature_card(col4, "⚡", "Performance", "HTML size, render-blocking scripts, preconnects")


def _feature_card(col, icon: str, title: str, desc: str) -> None:
    with col:
        st.markdown(
            f'<div class="metric-card neutral" style="text-align:center">'
            f'<div style="font-size:2rem">{icon}</div>'
            f'<div style="font-weight:700;margin:0.5rem 0">{title}</div>'
            f'<div style="font-size:0.85rem;color:#888">{desc}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


# ── Main ───────────────────────────────────────────────────────────────────────

def main():
    request = render_sidebar()

    if request is not None:
        _clear_results()
        start_audit(request)
        return

    if not _has_result():
        render_landing()
        return

    report: AuditReport = st.session_state.audit_report

    st.title(f"Audit: {report.url}")
    st.caption(
        f"Completed in {report.duration_ms / 1000:.1f}s at {report.timestamp} · "
        f"{report.summary.errors} error(s), {report.summary.warnings} warning(s)"
    )

    tabs = st.tabs(["Overview", "Findings by Category", "Pages", "Export"])

    with tabs[0]:
        render_overview(report)

    with tabs[1]:
        render_by_category(report)

    with tabs[2]:
        render_pages(report)

    with tabs[3]:
        render_export(report)


if __name__ == "__main__":
    main()
