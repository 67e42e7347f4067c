"""
Configuration loading and management for the ETF Dividend Tracker.

This module handles loading tracker settings from YAML files, API key
management, and validation of configuration parameters.
"""

import logging
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from etf_tracker.models import TrackerConfig

logger = logging.getLogger(__name__)


# Default paths for configuration files
PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
DEFAULT_API_KEYS_FILE = PROJECT_ROOT / "config" / "api_keys.yaml"

POLYGON_ENV_VAR = "POLYGON_API_KEY"
POLYGON_KEY_NAME = "polygon_api_key"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def load_api_keys(
    env_file: str | Path | None = None,
    api_keys_file: str | Path | None = None,
) -> dict[str, str]:
    """
    Load API keys from multiple sources with priority.

    Sources are checked in this order (later sources override earlier):
    1. config/api_keys.yaml file
    2. .env file in project root
    3. Environment variables

    Args:
        env_file: Path to .env file (defaults to project root .env)
        api_keys_file: Path to api_keys.yaml (defaults to config/api_keys.yaml)

    Returns:
        Dictionary with API keys:
        - polygon_api_key: Polygon.io API key (if available)

    Example:
        >>> keys = load_api_keys()
        >>> polygon_key = keys.get("polygon_api_key")
    """
    api_keys: dict[str, str] = {}

    # 1. Load from config/api_keys.yaml
    yaml_path = Path(api_keys_file) if api_keys_file else DEFAULT_API_KEYS_FILE
    if yaml_path.exists():
        try:
            with open(yaml_path, "r") as f:
                yaml_config = yaml.safe_load(f) or {}
            if isinstance(yaml_config, dict) and yaml_config.get(POLYGON_KEY_NAME):
                api_keys[POLYGON_KEY_NAME] = str(yaml_config[POLYGON_KEY_NAME])
        except (yaml.YAMLError, OSError) as e:
            logger.warning("Ignoring unreadable API key file %s: %s", yaml_path, e)

    # 2. Load from .env file
    env_path = Path(env_file) if env_file else DEFAULT_ENV_FILE
    if env_path.exists():
        env_values = dotenv_values(env_path)
        if env_values.get(POLYGON_ENV_VAR):
            api_keys[POLYGON_KEY_NAME] = str(env_values[POLYGON_ENV_VAR])

    # 3. Override with environment variables (highest priority)
    if os.environ.get(POLYGON_ENV_VAR):
        api_keys[POLYGON_KEY_NAME] = os.environ[POLYGON_ENV_VAR]

    return api_keys


def get_polygon_api_key(
    env_file: str | Path | None = None,
    api_keys_file: str | Path | None = None,
) -> str:
    """
    Get the Polygon.io API key from available configuration sources.

    Returns:
        The Polygon API key

    Raises:
        ConfigurationError: If POLYGON_API_KEY is not configured
    """
    api_keys = load_api_keys(env_file, api_keys_file)
    if not api_keys.get(POLYGON_KEY_NAME):
        raise ConfigurationError(
            "Polygon API key is not configured. Please set it using one of:\n"
            f"  1. Environment variable: export {POLYGON_ENV_VAR}=your-key\n"
            f"  2. .env file: {POLYGON_ENV_VAR}=your-key\n"
            f"  3. config/api_keys.yaml: {POLYGON_KEY_NAME}: your-key\n"
            "\n"
            "Get your API key at: https://polygon.io/"
        )
    return api_keys[POLYGON_KEY_NAME]


def load_tracker_config(config_path: str | Path) -> TrackerConfig:
    """
    Load tracker configuration from a YAML file.

    Missing fields take their defaults.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        TrackerConfig object with validated settings

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    return _parse_tracker_config(raw_config or {})


def _parse_tracker_config(raw: dict[str, Any]) -> TrackerConfig:
    """
    Parse and validate raw configuration dictionary into TrackerConfig.

    Raises:
        ConfigurationError: If fields are unknown or invalid
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    known = {f.name for f in fields(TrackerConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration field(s): {', '.join(unknown)}")

    defaults = TrackerConfig()

    refresh_cooldown_hours = _parse_number(
        raw.get("refresh_cooldown_hours", defaults.refresh_cooldown_hours),
        "refresh_cooldown_hours",
        min_val=0,
    )
    horizon_days = int(_parse_number(
        raw.get("horizon_days", defaults.horizon_days), "horizon_days", min_val=0
    ))
    payment_offset_days = int(_parse_number(
        raw.get("payment_offset_days", defaults.payment_offset_days),
        "payment_offset_days",
        min_val=0,
    ))
    requests_per_window = int(_parse_number(
        raw.get("requests_per_window", defaults.requests_per_window),
        "requests_per_window",
        min_val=1,
    ))
    rate_window_seconds = _parse_number(
        raw.get("rate_window_seconds", defaults.rate_window_seconds),
        "rate_window_seconds",
        min_val=1,
    )
    cache_ttl_seconds = _parse_number(
        raw.get("cache_ttl_seconds", defaults.cache_ttl_seconds),
        "cache_ttl_seconds",
        min_val=0,
    )

    catalog_path = raw.get("catalog_path", defaults.catalog_path)

    return TrackerConfig(
        refresh_cooldown_hours=refresh_cooldown_hours,
        horizon_days=horizon_days,
        payment_offset_days=payment_offset_days,
        requests_per_window=requests_per_window,
        rate_window_seconds=rate_window_seconds,
        cache_ttl_seconds=cache_ttl_seconds,
        state_path=str(raw.get("state_path", defaults.state_path)),
        log_path=str(raw.get("log_path", defaults.log_path)),
        catalog_path=str(catalog_path) if catalog_path else None,
    )


def _parse_number(
    value: Any,
    field_name: str,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """
    Parse a numeric value with optional range validation.

    Args:
        value: The value to parse
        field_name: Name of the field for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Returns:
        Parsed float

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid numeric value for {field_name}: {value}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid numeric value for {field_name}: {value}")

    if min_val is not None and number < min_val:
        raise ConfigurationError(f"{field_name} must be >= {min_val}, got {number}")

    if max_val is not None and number > max_val:
        raise ConfigurationError(f"{field_name} must be <= {max_val}, got {number}")

    return number


def write_config(config: TrackerConfig, output_path: str | Path) -> None:
    """
    Write a TrackerConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        yaml.dump(asdict(config), f, default_flow_style=False, sort_keys=False)
