"""Tests for the command line interface."""

import json
from datetime import date, datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

import main
from worklog.errors import ProviderError, ProviderErrorKind
from worklog.types import SummaryKind, SummaryResult


@pytest.fixture
def workspace(monkeypatch, tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in ("WORK_RECORD_LOG_DIR", "WORK_RECORD_OUTPUT_DIR", "WORK_RECORD_USE_LOCAL"):
        monkeypatch.delenv(name, raising=False)
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir


def _write_today(log_dir: Path, content: str) -> None:
    today = date.today()
    entries = [{"id": "1", "content": content, "created_at": f"{today.isoformat()}T10:00:00"}]
    (log_dir / f"{today.isoformat()}.json").write_text(json.dumps(entries), encoding="utf-8")


def test_show_logs_prints_corpus(workspace):
    _write_today(workspace, "Shipped the exporter")

    result = CliRunner().invoke(main.cli, ["--quiet", "show-logs", "--log-dir", str(workspace)])

    assert result.exit_code == 0
    assert f"## {date.today().isoformat()}" in result.output
    assert "- Shipped the exporter" in result.output


def test_show_logs_without_entries(workspace):
    result = CliRunner().invoke(main.cli, ["--quiet", "show-logs", "--log-dir", str(workspace)])

    assert result.exit_code == 0
    assert "No log entries" in result.output


def test_summarize_refuses_empty_period(workspace, monkeypatch):
    called = []
    monkeypatch.setattr(main, "run_summary", lambda *args, **kwargs: called.append(args))

    result = CliRunner().invoke(main.cli, ["--quiet", "summarize", "--log-dir", str(workspace)])

    assert result.exit_code == 1
    assert called == []


def test_custom_without_dates_exits(workspace):
    result = CliRunner().invoke(
        main.cli, ["--quiet", "summarize", "-k", "custom", "--log-dir", str(workspace)]
    )
    assert result.exit_code == 1


def test_summarize_passes_request_and_reports_path(workspace, monkeypatch, tmp_path):
    _write_today(workspace, "Shipped the exporter")
    captured = {}

    def fake_run_summary(logs, request, config, output_dir, sink=None, now=None):
        captured.update(logs=logs, request=request, config=config, output_dir=output_dir, sink=sink)
        return SummaryResult(full_text="总结", output_path=Path(output_dir) / "weekly_summary.md")

    monkeypatch.setattr(main, "run_summary", fake_run_summary)
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(main.cli, [
        "--quiet", "summarize", "--log-dir", str(workspace),
        "--output-dir", str(out_dir), "--no-stream",
    ])

    assert result.exit_code == 0
    assert captured["request"].kind is SummaryKind.WEEKLY
    assert captured["request"].title == "周报"
    assert captured["output_dir"] == out_dir
    assert captured["sink"] is None
    assert "总结" in result.output
    assert "Summary saved to" in result.output


def test_summarize_reports_provider_error(workspace, monkeypatch):
    _write_today(workspace, "Shipped the exporter")

    def failing_run_summary(*args, **kwargs):
        raise ProviderError(ProviderErrorKind.AUTH_FAILED, "Authentication failed", status_code=401)

    monkeypatch.setattr(main, "run_summary", failing_run_summary)

    result = CliRunner().invoke(main.cli, ["--quiet", "summarize", "--log-dir", str(workspace)])

    assert result.exit_code == 1
    assert "auth_failed" in result.output


def test_summarize_uses_one_clock_reading(workspace, monkeypatch):
    fixed = datetime(2026, 3, 31, 23, 59, 59)

    class FrozenDateTime(datetime):
        @classmethod
        def now(cls, tz=None):
            return fixed

    entries = [{"id": "1", "content": "Quarter close", "created_at": "2026-03-31T18:00:00"}]
    (workspace / "2026-03-31.json").write_text(json.dumps(entries), encoding="utf-8")
    captured = {}

    def fake_run_summary(logs, request, config, output_dir, sink=None, now=None):
        captured.update(logs=logs, now=now)
        return SummaryResult(full_text="", output_path=Path(output_dir) / "quarterly_summary_2026-Q1.md")

    monkeypatch.setattr(main, "datetime", FrozenDateTime)
    monkeypatch.setattr(main, "run_summary", fake_run_summary)

    result = CliRunner().invoke(main.cli, [
        "--quiet", "summarize", "-k", "quarterly", "--log-dir", str(workspace), "--no-stream",
    ])

    assert result.exit_code == 0
    assert captured["now"] == fixed
    assert list(captured["logs"]) == ["2026-03-31"]
