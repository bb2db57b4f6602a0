"""
sysprobe Utility Functions

This module provides helper functions for:
    - Configuration management (YAML)
    - Logging utilities
    - Unit formatting shared by the adapters
"""

import copy
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import yaml
from platformdirs import user_config_dir

# Configure module logger
logger = logging.getLogger("sysprobe")

BYTES_PER_GIGABYTE = 1024 ** 3
BYTES_PER_MEGABYTE = 1024 ** 2


# =============================================================================
# Configuration Management
# =============================================================================

def get_default_config_path() -> Path:
    """Location of the per-user configuration file."""
    return Path(user_config_dir("sysprobe")) / "config.yaml"


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "sampling": {
            "interval_seconds": 1.0,
        },
        "gpu": {
            "executable": None,
            "timeout_seconds": 10,
        },
        "summary": {
            "top_processes": 5,
        },
        "debug": {
            "verbose": False,
            "log_level": "INFO",
            "save_debug_logs": False,
            "debug_log_file": "sysprobe-debug.log",
        },
    }


def merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` on top of a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if value is None and isinstance(merged.get(key), dict):
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file, merged over the defaults.

    Args:
        config_path: Path to config file. If None, uses the user config directory.

    Returns:
        Configuration dictionary
    """
    config_path = Path(config_path) if config_path else get_default_config_path()

    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}. Using defaults.")
        return get_default_config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config: {e}")
        return get_default_config()

    if not isinstance(loaded, dict):
        if loaded is not None:
            logger.warning(f"Ignoring config file {config_path}: expected a mapping")
        return get_default_config()

    return merge_config(get_default_config(), loaded)


def save_config(config: Dict[str, Any], config_path: Optional[str] = None) -> bool:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Path to save config file

    Returns:
        True if successful, False otherwise
    """
    config_path = Path(config_path) if config_path else get_default_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)
        return True
    except OSError as e:
        logger.error(f"Error saving config: {e}")
        return False


def get_sampling_interval(config: Optional[Dict[str, Any]] = None) -> float:
    config = config or get_default_config()
    return config.get("sampling", {}).get("interval_seconds", 1.0)


# =============================================================================
# Logging Utilities
# =============================================================================

def setup_logging(config: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Set up logging for sysprobe.

    Args:
        config: Configuration dictionary

    Returns:
        Configured logger
    """
    config = config or get_default_config()
    debug_config = config.get("debug", {})

    log_level = getattr(logging, str(debug_config.get("log_level", "INFO")).upper(), logging.INFO)
    verbose = debug_config.get("verbose", False)

    logger = logging.getLogger("sysprobe")
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    # Warnings always reach the console so absent probes are visible
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level if (verbose or log_level == logging.DEBUG) else logging.WARNING)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if debug_config.get("save_debug_logs", False):
        log_file = Path(debug_config.get("debug_log_file", "sysprobe-debug.log"))
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


# =============================================================================
# Unit Helpers
# =============================================================================

def bytes_to_gb(value: float) -> float:
    """Binary gigabytes, rounded to 2 decimals."""
    return round(value / BYTES_PER_GIGABYTE, 2)


def bytes_to_mb(value: float) -> float:
    """Binary megabytes, rounded to 2 decimals."""
    return round(value / BYTES_PER_MEGABYTE, 2)
