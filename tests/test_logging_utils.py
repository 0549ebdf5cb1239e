import logging

from meshparam.logging_utils import ENV_LOG_DIR, default_log_dir, log_once, parse_log_level, reset_log_once


def test_parse_log_level():
    assert parse_log_level("debug") == logging.DEBUG
    assert parse_log_level(logging.WARNING) == logging.WARNING
    assert parse_log_level("") == logging.INFO
    assert parse_log_level("chatty") == logging.INFO


def test_default_log_dir_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_LOG_DIR, str(tmp_path))
    assert default_log_dir() == tmp_path


def test_log_once_emits_a_single_record(caplog):
    reset_log_once()
    logger = logging.getLogger("meshparam.test")
    with caplog.at_level(logging.WARNING, logger="meshparam.test"):
        assert log_once(logger, "k", logging.WARNING, "value=%d", 1) is True
        assert log_once(logger, "k", logging.WARNING, "value=%d", 2) is False
        assert log_once(logger, "other", logging.WARNING, "value=%d", 3) is True

    messages = [r.getMessage() for r in caplog.records if r.name == "meshparam.test"]
    assert messages == ["value=1", "value=3"]
