"""Tests for structlog setup and the rotating log file."""

import json
import logging

import pytest

from towerwatch.utils.logging import LOG_FILENAME, get_logger, setup_logging


@pytest.fixture
def log_dir(tmp_path):
    yield tmp_path
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def _flush():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestSetupLogging:
    def test_events_reach_rotating_file(self, log_dir):
        setup_logging(log_dir=str(log_dir))
        get_logger("engine.incident_store").info("incident_created", id="INC9", site_id="SITE01")
        _flush()

        lines = (log_dir / LOG_FILENAME).read_text(encoding="utf-8").splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "incident_created"
        assert record["id"] == "INC9"
        assert record["level"] == "info"
        assert record["logger"] == "engine.incident_store"
        assert "timestamp" in record

    def test_debug_events_filtered_outside_debug(self, log_dir):
        setup_logging(log_dir=str(log_dir))
        get_logger("engine.incident_store").debug("incident_update_unknown_id", id="nope")
        _flush()
        assert "incident_update_unknown_id" not in (log_dir / LOG_FILENAME).read_text(encoding="utf-8")

    def test_debug_mode_renders_console_lines(self, log_dir):
        setup_logging(debug=True, log_dir=str(log_dir))
        get_logger("towerwatch.main").debug("incident_store_changed", incidents=3)
        _flush()

        text = (log_dir / LOG_FILENAME).read_text(encoding="utf-8")
        assert "incident_store_changed" in text
        assert "incidents=3" in text

    def test_stdlib_records_share_the_file(self, log_dir):
        setup_logging(log_dir=str(log_dir))
        logging.getLogger("uvicorn.error").warning("worker restarted")
        _flush()

        record = json.loads((log_dir / LOG_FILENAME).read_text(encoding="utf-8").splitlines()[-1])
        assert record["event"] == "worker restarted"
        assert record["level"] == "warning"

    def test_unwritable_log_dir_keeps_stdout(self, log_dir):
        blocker = log_dir / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        setup_logging(log_dir=str(blocker / "logs"))
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
