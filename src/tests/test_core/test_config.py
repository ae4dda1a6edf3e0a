import logging
import logging.handlers

import pytest

from telemetry_gateway.__main__ import ConfigManager
from telemetry_gateway.utils.exceptions import ConfigurationError
from telemetry_gateway.utils.logging import setup_logging, get_logger

VALID_CONFIG = """
api:
  host: "127.0.0.1"
  port: 5000
database:
  path: "telemetry.db"
logging:
  level: "DEBUG"
"""


def test_load_valid_config(tmp_path):
    path = tmp_path / "gateway.yml"
    path.write_text(VALID_CONFIG)

    config = ConfigManager.load_config(str(path))

    assert config["api"]["port"] == 5000
    assert config["database"]["path"] == "telemetry.db"


def test_missing_sections_are_reported(tmp_path):
    path = tmp_path / "gateway.yml"
    path.write_text("api:\n  port: 5000\n")

    with pytest.raises(ConfigurationError, match="database, logging"):
        ConfigManager.load_config(str(path))


@pytest.mark.parametrize("content", ["", "api: [unclosed"])
def test_empty_or_broken_config(tmp_path, content):
    path = tmp_path / "gateway.yml"
    path.write_text(content)

    with pytest.raises(ConfigurationError):
        ConfigManager.load_config(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigManager.load_config(str(tmp_path / "absent.yml"))


def test_setup_logging_writes_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "gateway.log"
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging({"level": "INFO", "file": str(log_file), "max_size": 1, "backup_count": 1})
        get_logger("telemetry_gateway.test").info("hello")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.INFO
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
        assert "hello" in log_file.read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
