"""Tests for configuration module."""
import logging

from src import config
from src.utils.helpers import get_logger, setup_logging


def test_project_root_exists():
    """Test that PROJECT_ROOT is set correctly."""
    assert config.PROJECT_ROOT.exists()
    assert config.PROJECT_ROOT.is_dir()
    assert (config.PROJECT_ROOT / "src" / "config.py").exists()


def test_ensure_cache_dirs(tmp_path, monkeypatch):
    """Test that cache directories are created on demand."""
    monkeypatch.setattr(config, "CACHE_DIR", tmp_path / "cache")
    monkeypatch.setattr(config, "COAST_CACHE", tmp_path / "cache" / "coast")

    config.ensure_cache_dirs()

    assert (tmp_path / "cache").is_dir()
    assert (tmp_path / "cache" / "coast").is_dir()


def test_config_constants():
    """Test that configuration constants are properly set."""
    assert config.COAST_IMAGE.name == config.COAST_IMAGE_NAME
    assert config.NOISE_FLOOR == 0.001
    assert config.QUERY_LAT_LIMIT == 85.0
    assert config.EXTENSION_PASSES >= 1
    assert isinstance(config.DEFAULT_LOG_LEVEL, str)


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging("snow_test_file", log_file=log_file)
    logger.debug("debug line")
    for handler in logger.handlers:
        handler.flush()

    assert "debug line" in log_file.read_text()
    assert logger.level == logging.DEBUG


def test_get_logger_reuses_handlers():
    first = get_logger("snow_test_reuse")
    second = get_logger("snow_test_reuse")
    assert first is second
    assert len(second.handlers) == 1
