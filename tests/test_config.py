import sys
import os
import logging
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("database_url", "sqlite:///:memory:")

from app.core.config import Settings
from app.core.logging_config import JSONFormatter, build_logging_config


def test_settings_cors_origins_list(monkeypatch):
    monkeypatch.setenv("backend_cors_origins", "http://a.test, http://b.test,")
    settings = Settings()
    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


def test_logging_config_selects_formatter():
    assert build_logging_config("debug", "json")["handlers"]["console"]["formatter"] == "json"
    config = build_logging_config()
    assert config["handlers"]["console"]["formatter"] == "standard"
    assert config["root"]["level"] == "INFO"


def test_json_formatter_single_line():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    line = JSONFormatter().format(record)
    assert "\n" not in line
    assert '"message": "hello world"' in line
    assert '"level": "INFO"' in line
