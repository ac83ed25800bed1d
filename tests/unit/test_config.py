"""
Unit tests for ServerConfig and logging setup.
"""

import json
import logging

import pytest

from minihttp.config import ServerConfig
from minihttp.logs import JSONFormatter, setup_logging


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 4221
        assert config.num_workers == 4
        assert config.body_limit == 100 * 1024
        assert config.static_dir is None
        assert config.static_prefix == "/files"
        config.validate()

    def test_port_zero_allowed(self):
        ServerConfig(port=0).validate()

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"num_workers": 0},
        {"body_limit": 0},
        {"backlog": 0},
        {"read_timeout": 0},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
    ])
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    def test_log_level_case_insensitive(self):
        ServerConfig(log_level="debug").validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HTTP_HOST", "0.0.0.0")
        monkeypatch.setenv("HTTP_PORT", "8080")
        monkeypatch.setenv("HTTP_WORKERS", "8")
        monkeypatch.setenv("HTTP_BODY_LIMIT", "2048")
        monkeypatch.setenv("HTTP_STATIC_DIR", "/srv/data")
        monkeypatch.setenv("HTTP_LOG_LEVEL", "DEBUG")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.num_workers == 8
        assert config.body_limit == 2048
        assert config.static_dir == "/srv/data"
        assert config.log_level == "DEBUG"

    def test_from_env_defaults(self, monkeypatch):
        for name in ("HTTP_HOST", "HTTP_PORT", "HTTP_WORKERS",
                     "HTTP_BODY_LIMIT", "HTTP_STATIC_DIR", "HTTP_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        assert ServerConfig.from_env() == ServerConfig()

    def test_from_env_bad_number(self, monkeypatch):
        monkeypatch.setenv("HTTP_PORT", "eighty")

        with pytest.raises(ValueError):
            ServerConfig.from_env()


class TestLogging:
    """Tests for setup_logging and the JSON formatter."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        package_level = logging.getLogger("minihttp").level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("minihttp").setLevel(package_level)

    def test_json_formatter(self):
        record = logging.LogRecord(
            name="minihttp.access", level=logging.INFO, pathname=__file__,
            lineno=1, msg="%s - done", args=("127.0.0.1",), exc_info=None,
        )
        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "minihttp.access"
        assert entry["message"] == "127.0.0.1 - done"
        assert "time" in entry
        assert "exception" not in entry

    def test_json_formatter_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            import sys
            exc_info = sys.exc_info()

        record = logging.LogRecord(
            name="minihttp", level=logging.ERROR, pathname=__file__,
            lineno=1, msg="failed", args=(), exc_info=exc_info,
        )
        entry = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad" in entry["exception"]

    def test_setup_logging_text(self):
        setup_logging("DEBUG", "text")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("minihttp").level == logging.DEBUG

    def test_setup_logging_json(self):
        setup_logging("warning", "json")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
