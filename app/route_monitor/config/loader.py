"""
Configuration loader with YAML and environment variable support.

Priority (highest to lowest):
1. Environment variables: ROUTE_MONITOR_PROBE__TIMEOUT_SECONDS=10
2. User config: --config-dir path / ~/.route-monitor/config.yaml
3. Built-in defaults: route_monitor/config/defaults/settings.yaml

Command line flags are applied on top by the caller.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml

from route_monitor.config.models import RouteMonitorConfig
from route_monitor.utils import get_logger

logger = get_logger(__name__)

# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".route-monitor"
PACKAGE_DEFAULTS_DIR = Path(__file__).parent / "defaults"

# Environment variable prefix
ENV_PREFIX = "ROUTE_MONITOR_"
ENV_DELIMITER = "__"


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from 'override' take precedence over 'base'.
    Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            content = yaml.safe_load(f)
            return content if content else {}
    except yaml.YAMLError as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return {}


def _get_env_overrides(environ: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """
    Extract configuration overrides from environment variables.

    Environment variables are expected in the format:
    ROUTE_MONITOR_SECTION__KEY=value

    ROUTE_MONITOR_SERVER__PORT=9000 -> {"server": {"port": 9000}}
    ROUTE_MONITOR_MONITOR__ROUTES=ns/a,ns/b -> {"monitor": {"routes": ["ns/a", "ns/b"]}}
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        key_path = key[len(ENV_PREFIX) :].lower().split(ENV_DELIMITER)
        if not all(key_path):
            continue

        # Build nested dict
        current = overrides
        for part in key_path[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]

        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate Python type."""
    # Comma separated list
    if "," in value:
        return [item.strip() for item in value.split(",") if item.strip()]

    # Boolean
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    # Integer
    try:
        return int(value)
    except ValueError:
        pass

    # Float
    try:
        return float(value)
    except ValueError:
        pass

    # String (default)
    return value


def load_config(config_dir: Optional[str | Path] = None) -> RouteMonitorConfig:
    """
    Load configuration from multiple sources.

    Args:
        config_dir: Optional path to configuration directory.
                   If not provided, uses ~/.route-monitor/

    Returns:
        RouteMonitorConfig: Validated configuration object

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    config_data = _load_yaml_file(PACKAGE_DEFAULTS_DIR / "settings.yaml")

    user_config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    user_config = _load_yaml_file(user_config_dir / "config.yaml")
    config_data = _deep_merge(config_data, user_config)

    # Apply environment variable overrides (highest priority)
    config_data = _deep_merge(config_data, _get_env_overrides())

    return RouteMonitorConfig.model_validate(config_data)
