import logging

import pytest

from supplier_dashboard import settings
from supplier_dashboard.logger import setup_logger


@pytest.fixture
def fresh_logger(request):
    name = f"supplier_dashboard_test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogger:
    def test_level_from_settings(self, fresh_logger, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "LOG_LEVEL", "debug")
        logger = setup_logger(fresh_logger, log_dir=tmp_path)
        assert logger.level == logging.DEBUG

    def test_explicit_level_wins(self, fresh_logger, tmp_path):
        logger = setup_logger(fresh_logger, log_level="WARNING", log_dir=tmp_path)
        assert logger.level == logging.WARNING

    def test_unknown_level(self, fresh_logger, tmp_path):
        with pytest.raises(ValueError):
            setup_logger(fresh_logger, log_level="chatty", log_dir=tmp_path)

    def test_log_file_named_after_reports(self, fresh_logger, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "REPORT_FILENAME_BASE", "weekly")
        logger = setup_logger(fresh_logger, log_dir=tmp_path)
        logger.info("fetched 5 orders")
        for handler in logger.handlers:
            handler.flush()
        assert "fetched 5 orders" in (tmp_path / "weekly.log").read_text(encoding="utf-8")

    def test_configured_once_without_propagation(self, fresh_logger, tmp_path):
        first = setup_logger(fresh_logger, log_dir=tmp_path)
        second = setup_logger(fresh_logger, log_dir=tmp_path)
        assert first is second
        assert len(second.handlers) == 2
        assert second.propagate is False
