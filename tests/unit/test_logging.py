# =============================================================================
# tests/unit/test_logging.py
# Unit Tests for Logging Helpers
# =============================================================================

import logging

import pytest

from medcore.logging import LogContext, get_logger, setup_logging


class TestLogContext:
    """Test operation timing"""

    def test_logs_start_and_completion(self, caplog):
        logger = get_logger("medcore.test")
        with caplog.at_level(logging.INFO, logger="medcore.test"):
            with LogContext(logger, "Draining 2 queued operations") as ctx:
                pass

        messages = [r.getMessage() for r in caplog.records]
        assert messages[0] == "Draining 2 queued operations... started"
        assert messages[1].startswith("Draining 2 queued operations... completed")
        assert ctx.elapsed >= 0

    def test_failure_is_logged_and_propagates(self, caplog):
        logger = get_logger("medcore.test")
        with pytest.raises(RuntimeError):
            with LogContext(logger, "Drain"):
                raise RuntimeError("halted")

        assert any(r.levelno == logging.ERROR and "failed" in r.getMessage()
                   for r in caplog.records)


class TestSetupLogging:
    """Test logging configuration"""

    def test_writes_log_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr("medcore.logging.config.LOG_DIR", tmp_path)
        setup_logging(log_filename="test.log")
        get_logger("medcore").info("hello")

        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in (tmp_path / "test.log").read_text()

    def test_quiets_http_libraries(self):
        setup_logging(log_to_file=False)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_sync_events_get_audit_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr("medcore.logging.config.LOG_DIR", tmp_path)
        setup_logging(log_filename="test.log")
        get_logger("medcore.offline.sync_engine").info("Synced 2 offline change(s).")
        get_logger("medcore.services").info("not a sync event")

        for handler in logging.getLogger("medcore.offline").handlers:
            handler.flush()
        audit = (tmp_path / "medcore_sync.log").read_text()
        assert "Synced 2 offline change(s)." in audit
        assert "not a sync event" not in audit

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("MEDCORE_LOG_LEVEL", "warning")
        setup_logging(log_to_file=False)
        assert logging.getLogger().level == logging.WARNING
