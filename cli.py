"""
Command-line entry point.

    seo-audit https://example.com --verbose --report md
    seo-audit --crawl 20 --diff report.json
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape

from analyzers.orchestrator import run_audit
from config import DEFAULT_CRAWL_LIMIT, DEFAULT_TIMEOUT_MS, RC_FILE_NAME, REPORT_FORMATS
from crawler.urls import normalize_url
from logging_config import get_logger, setup_logging
from models import AuditReport, Summary
from reporting.exporter import report_to_df, to_csv_bytes, to_html_report
from reporting.formatters import format_diff_json, format_markdown, render_console, render_diff
from reporting.serialization import ReportFormatError, diff_reports, load_report, report_to_json

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_USAGE = 2


class ConfigError(Exception):
    """The run-control file is unreadable or holds an invalid value."""


# ── Run-control file ───────────────────────────────────────────────────────────

def load_rc_config(path: str | Path = RC_FILE_NAME) -> dict[str, Any]:
    """
    Read and validate the optional run-control file. A missing file yields {}.
    Keys come back in Python form (``userAgent`` becomes ``user_agent``).
    """
    rc_path = Path(path)
    name = rc_path.name
    try:
        raw_text = rc_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"Error in {name}: {exc}") from exc

    try:
        raw = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Error in {name}: invalid JSON") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Error in {name}: config must be a JSON object")

    config: dict[str, Any] = {}

    if "url" in raw:
        url = raw["url"]
        if not isinstance(url, str):
            raise ConfigError(f'Error in {name}: "url" must be a string')
        try:
            normalize_url(url)
        except ValueError as exc:
            raise ConfigError(f'Error in {name}: "url" must be a valid URL') from exc
        config["url"] = url

    for key in ("strict", "verbose"):
        if key in raw:
            # bool only; 0/1 are not accepted
            if not isinstance(raw[key], bool):
                raise ConfigError(f'Error in {name}: "{key}" must be a boolean')
            config[key] = raw[key]

    if "userAgent" in raw:
        if not isinstance(raw["userAgent"], str):
            raise ConfigError(f'Error in {name}: "userAgent" must be a string')
        config["user_agent"] = raw["userAgent"]

    if "pages" in raw:
        pages = raw["pages"]
        if not isinstance(pages, list) or not all(isinstance(p, str) for p in pages):
            raise ConfigError(f'Error in {name}: "pages" must be an array of strings')
        for page in pages:
            if not page.startswith("/"):
                raise ConfigError(f'Error in {name}: each page must start with "/", got "{page}"')
        config["pages"] = pages

    if "report" in raw:
        if raw["report"] not in REPORT_FORMATS:
            choices = ", ".join(f'"{f}"' for f in REPORT_FORMATS)
            raise ConfigError(f'Error in {name}: "report" must be one of {choices}')
        config["report"] = raw["report"]

    if "timeout" in raw:
        timeout = raw["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout != timeout:
            raise ConfigError(f'Error in {name}: "timeout" must be a number')
        if timeout <= 0 or timeout == float("inf"):
            raise ConfigError(f'Error in {name}: "timeout" must be a positive number')
        config["timeout"] = int(timeout)

    return config


# ── Argument helpers ───────────────────────────────────────────────────────────

def parse_pages(value: str) -> list[str]:
    """Split a comma-separated ``--pages`` value into validated paths."""
    paths = [p.strip() for p in value.split(",") if p.strip()]
    if not paths:
        raise ValueError("--pages must contain at least one path")
    for path in paths:
        if not path.startswith("/"):
            raise ValueError(f'Invalid page path "{path}": each path must start with "/"')
    return paths


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seo-audit",
        description="Diagnose SEO and indexing issues for a website.",
    )
    parser.add_argument("url", nargs="?", help=f"URL to audit (or set \"url\" in {RC_FILE_NAME})")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--verbose", action="store_true", default=None,
                        help="Show finding details")
    parser.add_argument("-S", "--strict", action="store_true", default=None,
                        help="Exit non-zero on warnings as well as errors")
    parser.add_argument("--timeout", type=_positive_int, metavar="MS",
                        help=f"Request timeout in milliseconds (default: {DEFAULT_TIMEOUT_MS})")
    parser.add_argument("--pages", metavar="PATHS",
                        help="Comma-separated page paths to check for redirects, e.g. /about,/pricing")
    parser.add_argument("--user-agent", metavar="PRESET|STRING",
                        help="googlebot, bingbot, or a custom User-Agent string")
    parser.add_argument("--report", choices=REPORT_FORMATS,
                        help="Also write report.<format> to the working directory")
    parser.add_argument("--crawl", nargs="?", const=DEFAULT_CRAWL_LIMIT, type=_positive_int, metavar="LIMIT",
                        help=f"Audit sitemap pages too (default limit: {DEFAULT_CRAWL_LIMIT})")
    parser.add_argument("--diff", metavar="PREVIOUS_JSON",
                        help="Compare against a previous JSON report")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level for stderr (default: WARNING)")
    return parser


# ── Output ─────────────────────────────────────────────────────────────────────

def exit_code(summary: Summary, strict: bool) -> int:
    if summary.errors > 0:
        return EXIT_ISSUES
    if strict and summary.warnings > 0:
        return EXIT_ISSUES
    return EXIT_OK


def write_report(report: AuditReport, fmt: str, directory: str | Path = ".") -> Path:
    path = Path(directory) / f"report.{fmt}"
    if fmt == "json":
        path.write_text(report_to_json(report), encoding="utf-8")
    elif fmt == "md":
        path.write_text(format_markdown(report), encoding="utf-8")
    elif fmt == "html":
        path.write_text(to_html_report(report), encoding="utf-8")
    elif fmt == "csv":
        path.write_bytes(to_csv_bytes(report_to_df(report)))
    else:
        raise ValueError(f"Unknown report format: {fmt}")
    return path


# ── Main ───────────────────────────────────────────────────────────────────────

def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    console = Console()
    err_console = Console(stderr=True)

    try:
        rc = load_rc_config()
    except ConfigError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/]", highlight=False)
        return EXIT_USAGE

    # CLI flags > rc file > defaults
    url = args.url or rc.get("url")
    if not url:
        err_console.print(
            f'[red]Error: URL is required. Provide it as an argument or set "url" in {RC_FILE_NAME}[/]',
            highlight=False,
        )
        return EXIT_USAGE

    verbose = args.verbose if args.verbose is not None else rc.get("verbose", False)
    strict = args.strict if args.strict is not None else rc.get("strict", False)
    timeout_ms = args.timeout if args.timeout is not None else rc.get("timeout", DEFAULT_TIMEOUT_MS)
    user_agent = args.user_agent or rc.get("user_agent")
    report_fmt = args.report or rc.get("report")

    pages = rc.get("pages")
    if args.pages:
        try:
            pages = parse_pages(args.pages)
        except ValueError as exc:
            err_console.print(f"[red]Error: {escape(str(exc))}[/]", highlight=False)
            return EXIT_USAGE

    try:
        normalize_url(url)
    except ValueError:
        err_console.print(f'[red]Error: Invalid URL "{escape(url)}"[/]', highlight=False)
        return EXIT_USAGE

    try:
        report = run_audit(
            url,
            verbose=verbose,
            timeout_ms=timeout_ms,
            pages=pages,
            user_agent=user_agent,
            crawl_limit=args.crawl,
        )
    except Exception as exc:
        logger.exception("Audit failed")
        err_console.print(f"[red]Fatal error: {escape(str(exc))}[/]", highlight=False)
        return EXIT_USAGE

    if args.json:
        sys.stdout.write(report_to_json(report) + "\n")
    else:
        render_console(report, verbose=verbose, console=console)

    if report_fmt:
        path = write_report(report, report_fmt)
        err_console.print(f"Report written to {path.name}")

    if args.diff:
        try:
            previous = load_report(args.diff)
        except ReportFormatError as exc:
            err_console.print(f"[red]Error reading previous report: {escape(str(exc))}[/]", highlight=False)
            return EXIT_USAGE
        diff = diff_reports(report, previous)
        if args.json:
            sys.stdout.write(format_diff_json(diff) + "\n")
        else:
            render_diff(diff, console=console)

    code = exit_code(report.summary, strict)
    if code != EXIT_OK and strict and report.summary.warnings > 0:
        err_console.print("[yellow]Warnings found in strict mode[/]")
    return code


if __name__ == "__main__":
    sys.exit(main())
