"""
Test logging configuration: JSON events in the rotated log file.
"""
import gzip
import json
import logging
from logging.handlers import TimedRotatingFileHandler

import pytest
import structlog

from brokerbook.logging_config import LOG_FILE_NAME, configure_logging, gzip_rotated


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    """File logging into tmp_path/logs (LOG_DIR from the environment)."""
    directory = tmp_path / "logs"
    monkeypatch.setenv("LOG_DIR", str(directory))
    configure_logging(log_level="INFO", enable_file_logging=True)
    yield directory
    configure_logging(log_level="WARNING", enable_file_logging=False)


def _file_handler() -> TimedRotatingFileHandler:
    return next(h for h in logging.getLogger().handlers if isinstance(h, TimedRotatingFileHandler))


def _events(text: str, event: str):
    return [json.loads(line) for line in text.splitlines() if event in line]


# ============================================================================
# TESTS: file output
# ============================================================================

def test_file_created_in_log_dir(log_dir):
    handler = _file_handler()
    assert handler.baseFilename == str(log_dir / LOG_FILE_NAME)
    assert (log_dir / LOG_FILE_NAME).exists()


def test_events_written_as_json(log_dir):
    structlog.get_logger("brokerbook.file_check").info("File logging check", statement="psb.xlsx")
    _file_handler().flush()

    (event,) = _events((log_dir / LOG_FILE_NAME).read_text(encoding="utf-8"), "File logging check")
    assert event["event"] == "File logging check"
    assert event["level"] == "INFO"
    assert event["logger"] == "brokerbook.file_check"
    assert event["statement"] == "psb.xlsx"
    assert "timestamp" in event


def test_level_filters_file(log_dir):
    structlog.get_logger("brokerbook.file_check").debug("Debug event not written")
    _file_handler().flush()
    assert "Debug event not written" not in (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")


def test_reconfigure_closes_file_handler(log_dir):
    handler = _file_handler()
    configure_logging(log_level="WARNING", enable_file_logging=False)
    assert handler not in logging.getLogger().handlers
    assert handler.stream is None


def test_explicit_log_dir(tmp_path):
    try:
        configure_logging(log_level="INFO", enable_file_logging=True, log_dir=tmp_path / "explicit")
        assert (tmp_path / "explicit" / LOG_FILE_NAME).exists()
    finally:
        configure_logging(log_level="WARNING", enable_file_logging=False)


# ============================================================================
# TESTS: rotation
# ============================================================================

def test_rotated_file_compressed(tmp_path):
    source = tmp_path / "brokerbook.log.2025-01-06"
    source.write_text('{"event": "old"}\n', encoding="utf-8")
    dest = tmp_path / "brokerbook.log.2025-01-06.gz"

    gzip_rotated(str(source), str(dest))

    assert not source.exists()
    with gzip.open(dest, "rt", encoding="utf-8") as f:
        assert f.read() == '{"event": "old"}\n'


def test_rollover_keeps_gzip_backup(log_dir):
    structlog.get_logger("brokerbook.file_check").info("Before rollover")
    _file_handler().doRollover()

    (backup,) = log_dir.glob(LOG_FILE_NAME + ".*.gz")
    with gzip.open(backup, "rt", encoding="utf-8") as f:
        assert _events(f.read(), "Before rollover")

    structlog.get_logger("brokerbook.file_check").info("After rollover")
    _file_handler().flush()
    text = (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")
    assert "After rollover" in text
    assert "Before rollover" not in text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
