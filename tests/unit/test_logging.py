"""
Unit tests for logging setup.
"""

import logging

from credvault.core import logging as log_config


def test_level_override_and_quiet_loggers():
    log_config.setup_logging(level="debug")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.WARNING


def test_log_file_receives_records(tmp_path, monkeypatch):
    path = tmp_path / "credvault.log"
    monkeypatch.setattr(log_config.settings, "log_file", str(path))

    log_config.setup_logging(level="INFO")
    log_config.get_logger("credvault.test").info("store opened")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "store opened" in path.read_text(encoding="utf-8")

    # release the file handler before tmp_path is cleaned up
    monkeypatch.setattr(log_config.settings, "log_file", "")
    log_config.setup_logging(level="INFO")
