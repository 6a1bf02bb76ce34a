import logging

from pythonjsonlogger import jsonlogger

from axis_browser.logging_config import configure_logging


def test_json_is_the_default(monkeypatch):
    monkeypatch.delenv("AXIS_BROWSER_LOG_FORMAT", raising=False)
    configure_logging()
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, jsonlogger.JsonFormatter)


def test_plain_format_from_env(monkeypatch):
    monkeypatch.setenv("AXIS_BROWSER_LOG_FORMAT", "plain")
    configure_logging(level=logging.DEBUG)
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert not isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)


def test_force_format_wins(monkeypatch):
    monkeypatch.setenv("AXIS_BROWSER_LOG_FORMAT", "plain")
    configure_logging(force_format="json")
    assert isinstance(logging.getLogger().handlers[0].formatter, jsonlogger.JsonFormatter)


def test_level_from_env_by_name(monkeypatch):
    monkeypatch.setenv("AXIS_BROWSER_LOG_LEVEL", "warning")
    configure_logging()
    assert logging.getLogger().level == logging.WARNING


def test_unknown_level_name_falls_back_to_info(monkeypatch):
    monkeypatch.delenv("AXIS_BROWSER_LOG_LEVEL", raising=False)
    configure_logging(level="chatty")
    assert logging.getLogger().level == logging.INFO
