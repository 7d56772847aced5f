"""Tests for logging_config.setup_logging."""

import logging

import pytest

import logging_config
from logging_config import parse_level, setup_logging


@pytest.fixture
def clean_root():
    """Remove handlers added by setup_logging after each test."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _named(root, name):
    return [h for h in root.handlers if getattr(h, "name", "") == name]


class TestParseLevel:
    def test_names(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level(" WARNING ") == logging.WARNING

    def test_unknown_and_empty_default_to_info(self):
        assert parse_level("loud") == logging.INFO
        assert parse_level(None) == logging.INFO

    def test_numbers_pass_through(self):
        assert parse_level(15) == 15


class TestSetupLogging:
    def test_file_handler_created(self, clean_root, tmp_path, monkeypatch):
        monkeypatch.delenv("CARDGAME_LOG_LEVEL", raising=False)
        log_file = tmp_path / "nested" / "engine.log"

        setup_logging(level="DEBUG", log_file=log_file)
        logging.getLogger("cardgame.test").debug("hello file")

        handlers = _named(clean_root, logging_config._FILE_HANDLER_NAME)
        assert len(handlers) == 1
        handlers[0].flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")

    def test_idempotent(self, clean_root, tmp_path):
        log_file = tmp_path / "engine.log"
        setup_logging(log_file=log_file, enable_console=True)
        setup_logging(log_file=log_file, enable_console=True, console_level="ERROR")

        assert len(_named(clean_root, logging_config._FILE_HANDLER_NAME)) == 1
        console = _named(clean_root, logging_config._CONSOLE_HANDLER_NAME)
        assert len(console) == 1
        assert console[0].level == logging.ERROR

    def test_environment_overrides(self, clean_root, tmp_path, monkeypatch):
        env_file = tmp_path / "env.log"
        monkeypatch.setenv("CARDGAME_LOG_LEVEL", "ERROR")
        monkeypatch.setenv("CARDGAME_LOG_FILE", str(env_file))

        setup_logging(level="DEBUG", log_file=tmp_path / "ignored.log")

        handler = _named(clean_root, logging_config._FILE_HANDLER_NAME)[0]
        assert handler.level == logging.ERROR
        assert env_file.exists()
        assert not (tmp_path / "ignored.log").exists()

    def test_file_disabled(self, clean_root):
        setup_logging(enable_file=False)
        assert _named(clean_root, logging_config._FILE_HANDLER_NAME) == []
