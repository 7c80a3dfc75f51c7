"""Tests for logging setup."""

import logging

import pytest

from journal.logging_config import RedactingFilter, get_default_log_file, setup_logging


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_log_file_env_override(monkeypatch, tmp_path):
    target = tmp_path / "logs" / "wr.log"
    monkeypatch.setenv("WORK_RECORD_LOG_FILE", str(target))

    assert get_default_log_file() == target
    assert target.parent.is_dir()


def test_setup_logging_writes_file_and_quiets_httpx(tmp_path, restore_root):
    log_file = tmp_path / "wr.log"
    root = setup_logging(logging.DEBUG, log_file=log_file, console=False)

    logging.getLogger("worklog.test").info("engine ready")
    for handler in root.handlers:
        handler.flush()

    assert len(root.handlers) == 1
    assert "engine ready" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_redacting_filter_masks_bearer_tokens():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "headers: %s",
                               ({"Authorization": "Bearer sk-secret-123"},), None)
    RedactingFilter().filter(record)

    assert "sk-secret-123" not in record.getMessage()
    assert "Bearer <redacted>" in record.getMessage()
