"""Tests for the command-line entry point."""

import json
from unittest.mock import patch

import pytest

import cli
from config import DEFAULT_CRAWL_LIMIT, DEFAULT_TIMEOUT_MS
from models import AnalyzerResult, AuditReport, Category, Finding, RobotsCode, Severity, Summary
from reporting.serialization import report_to_json


def make_report(*severities):
    findings = tuple(
        Finding(
            code=RobotsCode.ROBOTS_MISSING, severity=severity, category=Category.ROBOTS,
            message="robots.txt missing", explanation="Explanation.", suggestion="Suggestion.",
        )
        for severity in severities
    )
    results = [AnalyzerResult(analyzer_name="robots", findings=findings)]
    return AuditReport(
        url="https://example.com/",
        timestamp="2026-01-01T00:00:00.000Z",
        duration_ms=5,
        summary=Summary.from_results(results),
        results=results,
    )


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_rc(directory, data):
    path = directory / ".seoauditrc.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


class TestParsePages:

    def test_valid(self):
        assert cli.parse_pages("/about, /pricing,,") == ["/about", "/pricing"]

    def test_empty(self):
        with pytest.raises(ValueError, match="at least one path"):
            cli.parse_pages(" , ")

    def test_missing_slash(self):
        with pytest.raises(ValueError, match='Invalid page path "about"'):
            cli.parse_pages("/ok,about")


class TestExitCode:

    @pytest.mark.parametrize("summary, strict, expected", [
        (Summary(), False, cli.EXIT_OK),
        (Summary(errors=1), False, cli.EXIT_ISSUES),
        (Summary(warnings=3), False, cli.EXIT_OK),
        (Summary(warnings=3), True, cli.EXIT_ISSUES),
        (Summary(info=2, passed=4), True, cli.EXIT_OK),
    ])
    def test_exit_codes(self, summary, strict, expected):
        assert cli.exit_code(summary, strict) == expected


class TestLoadRcConfig:

    def test_missing_file(self, in_tmp_dir):
        assert cli.load_rc_config(in_tmp_dir / ".seoauditrc.json") == {}

    def test_valid_file(self, in_tmp_dir):
        path = write_rc(in_tmp_dir, {
            "url": "example.com", "strict": True, "userAgent": "googlebot",
            "pages": ["/about"], "report": "md", "timeout": 5000.0,
        })

        assert cli.load_rc_config(path) == {
            "url": "example.com", "strict": True, "user_agent": "googlebot",
            "pages": ["/about"], "report": "md", "timeout": 5000,
        }

    @pytest.mark.parametrize("data, message", [
        ("{oops", "invalid JSON"),
        ([1, 2], "JSON object"),
        ({"url": 42}, '"url" must be a string'),
        ({"strict": 1}, '"strict" must be a boolean'),
        ({"verbose": "yes"}, '"verbose" must be a boolean'),
        ({"userAgent": None}, '"userAgent" must be a string'),
        ({"pages": "/about"}, '"pages" must be an array'),
        ({"pages": ["about"]}, 'must start with "/"'),
        ({"report": "pdf"}, '"report" must be one of'),
        ({"timeout": "fast"}, '"timeout" must be a number'),
        ({"timeout": 0}, "positive number"),
        ({"timeout": True}, '"timeout" must be a number'),
    ])
    def test_invalid_values(self, in_tmp_dir, data, message):
        path = write_rc(in_tmp_dir, data)

        with pytest.raises(cli.ConfigError, match="Error in .seoauditrc.json") as exc_info:
            cli.load_rc_config(path)
        assert message in str(exc_info.value)


class TestBuildParser:

    def test_crawl_flag(self):
        parser = cli.build_parser()

        assert parser.parse_args(["example.com"]).crawl is None
        assert parser.parse_args(["example.com", "--crawl"]).crawl == DEFAULT_CRAWL_LIMIT
        assert parser.parse_args(["example.com", "--crawl", "7"]).crawl == 7

    def test_rejects_bad_timeout(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["example.com", "--timeout", "-5"])


class TestWriteReport:

    @pytest.mark.parametrize("fmt, marker", [
        ("json", '"analyzer_name": "robots"'),
        ("md", "# SEO Audit Report"),
        ("html", "<!DOCTYPE html>"),
        ("csv", "Severity,Category,Code"),
    ])
    def test_formats(self, in_tmp_dir, fmt, marker):
        path = cli.write_report(make_report(Severity.WARNING), fmt, in_tmp_dir)

        assert path.name == f"report.{fmt}"
        assert marker in path.read_text(encoding="utf-8")


class TestMain:

    def run(self, argv, report=None):
        with patch.object(cli, "run_audit", return_value=report or make_report()) as run_audit:
            code = cli.main(argv)
        return code, run_audit

    def test_url_is_required(self, capsys):
        code, run_audit = self.run([])

        assert code == cli.EXIT_USAGE
        assert "URL is required" in capsys.readouterr().err
        run_audit.assert_not_called()

    def test_defaults_passed_to_audit(self):
        code, run_audit = self.run(["example.com"])

        assert code == cli.EXIT_OK
        run_audit.assert_called_once_with(
            "example.com", verbose=False, timeout_ms=DEFAULT_TIMEOUT_MS,
            pages=None, user_agent=None, crawl_limit=None,
        )

    def test_errors_exit_one(self):
        code, _ = self.run(["example.com"], make_report(Severity.ERROR))
        assert code == cli.EXIT_ISSUES

    def test_strict_warnings(self, capsys):
        code, _ = self.run(["example.com", "--strict"], make_report(Severity.WARNING))

        assert code == cli.EXIT_ISSUES
        assert "Warnings found in strict mode" in capsys.readouterr().err

    def test_json_output(self, capsys):
        self.run(["example.com", "--json"], make_report(Severity.INFO))
        data = json.loads(capsys.readouterr().out)

        assert data["summary"]["info"] == 1

    def test_rc_file_fills_missing_flags(self, in_tmp_dir):
        write_rc(in_tmp_dir, {"url": "example.org", "verbose": True, "timeout": 3000, "userAgent": "bingbot"})
        _, run_audit = self.run(["--timeout", "9000"])

        run_audit.assert_called_once_with(
            "example.org", verbose=True, timeout_ms=9000,
            pages=None, user_agent="bingbot", crawl_limit=None,
        )

    def test_invalid_rc_file(self, in_tmp_dir, capsys):
        write_rc(in_tmp_dir, "{broken")
        code, run_audit = self.run(["example.com"])

        assert code == cli.EXIT_USAGE
        assert "invalid JSON" in capsys.readouterr().err
        run_audit.assert_not_called()

    def test_invalid_pages(self, capsys):
        code, _ = self.run(["example.com", "--pages", "about"])

        assert code == cli.EXIT_USAGE
        assert 'Invalid page path "about"' in capsys.readouterr().err

    def test_invalid_url(self, capsys):
        code, _ = self.run(["https://"])

        assert code == cli.EXIT_USAGE
        assert "Invalid URL" in capsys.readouterr().err

    def test_audit_crash(self, capsys):
        with patch.object(cli, "run_audit", side_effect=RuntimeError("boom")):
            code = cli.main(["example.com"])

        assert code == cli.EXIT_USAGE
        assert "Fatal error: boom" in capsys.readouterr().err

    def test_report_file(self, in_tmp_dir, capsys):
        self.run(["example.com", "--report", "md"])

        assert (in_tmp_dir / "report.md").exists()
        assert "Report written to report.md" in capsys.readouterr().err

    def test_diff_against_previous(self, in_tmp_dir, capsys):
        previous = in_tmp_dir / "previous.json"
        previous.write_text(report_to_json(make_report(Severity.WARNING)), encoding="utf-8")

        self.run(["example.com", "--json", "--diff", str(previous)], make_report())
        out = capsys.readouterr().out
        diff = json.loads(out[out.index("}\n{") + 2:])

        assert len(diff["resolved"]) == 1
        assert diff["new"] == []

    def test_unreadable_previous_report(self, in_tmp_dir, capsys):
        code, _ = self.run(["example.com", "--diff", str(in_tmp_dir / "nope.json")])

        assert code == cli.EXIT_USAGE
        assert "Error reading previous report" in capsys.readouterr().err
