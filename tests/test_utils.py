"""
Tests for Utility Functions

Covers:
    - Configuration loading/saving/merging
    - Logging setup
    - Unit helpers
"""

import logging
import pytest
import tempfile
import os

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sysprobe.utils import (
    bytes_to_gb,
    bytes_to_mb,
    get_default_config,
    get_sampling_interval,
    load_config,
    merge_config,
    save_config,
    setup_logging,
)


class TestConfigurationLoading:
    """Tests for configuration loading."""

    def test_load_default_config(self):
        """Test default configuration sections."""
        config = get_default_config()
        assert config["sampling"]["interval_seconds"] == 1.0
        assert config["gpu"]["executable"] is None
        assert "debug" in config

    def test_load_missing_config(self):
        """Test loading missing config file returns defaults."""
        assert load_config("/nonexistent/path/config.yaml") == get_default_config()

    def test_load_valid_config(self, temp_config_file):
        """Test a partial file is merged over defaults."""
        config = load_config(temp_config_file)
        assert config["sampling"]["interval_seconds"] == 2.5
        assert config["summary"]["top_processes"] == 5

    def test_load_invalid_yaml(self):
        """Test invalid YAML falls back to defaults."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("sampling: [unclosed\n")
            temp_path = f.name

        try:
            assert load_config(temp_path) == get_default_config()
        finally:
            os.unlink(temp_path)

    def test_load_non_mapping(self):
        """Test a YAML list is ignored."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("- one\n- two\n")
            temp_path = f.name

        try:
            assert load_config(temp_path) == get_default_config()
        finally:
            os.unlink(temp_path)

    def test_empty_section_keeps_defaults(self):
        """Test an empty section does not erase defaults."""
        merged = merge_config(get_default_config(), {"debug": None})
        assert merged["debug"]["log_level"] == "INFO"

    def test_save_and_reload(self, tmp_path):
        """Test configuration round-trips through YAML."""
        config = get_default_config()
        config["gpu"]["timeout_seconds"] = 3
        path = tmp_path / "nested" / "config.yaml"
        assert save_config(config, str(path)) is True
        assert load_config(str(path))["gpu"]["timeout_seconds"] == 3

    def test_sampling_interval(self):
        """Test interval lookup with and without config."""
        assert get_sampling_interval() == 1.0
        assert get_sampling_interval({"sampling": {"interval_seconds": 0.2}}) == 0.2


class TestLoggingSetup:
    """Tests for logging setup."""

    def test_setup_logging_level(self):
        """Test configured level is applied."""
        config = get_default_config()
        config["debug"]["log_level"] = "DEBUG"
        logger = setup_logging(config)
        assert logger.name == "sysprobe"
        assert logger.level == logging.DEBUG

    def test_setup_logging_idempotent(self):
        """Test repeated setup does not stack handlers."""
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_debug_log_file(self, tmp_path):
        """Test the optional file handler."""
        config = get_default_config()
        config["debug"]["save_debug_logs"] = True
        config["debug"]["debug_log_file"] = str(tmp_path / "logs" / "debug.log")
        logger = setup_logging(config)
        try:
            assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)


class TestUnitHelpers:
    """Tests for binary unit helpers."""

    def test_bytes_to_gb(self):
        assert bytes_to_gb(1024 ** 3) == 1.0
        assert bytes_to_gb(1_000_000_000) == 0.93

    def test_bytes_to_mb(self):
        assert bytes_to_mb(1024 ** 2 * 3 // 2) == 1.5
