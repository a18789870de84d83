"""
Configuration loader for DockWidgets
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Maximum config file size (1MB should be plenty for YAML configs)
MAX_CONFIG_SIZE = 1024 * 1024

API_KEY_ENV_VAR = "OPENWEATHER_API_KEY"

DEFAULT_CONFIG: Dict[str, Any] = {
    "screen": {
        "x": 0,
        "y": 0,
        "width": 1920,
        "height": 1080,
        "scale_factor": 1.0,
    },
    "dock": {
        "enabled": True,
        "interval": 1.0,
        "icon_count_offset": 2,
        "fallback_tile_size": 60.0,
    },
    "media": {
        "enabled": True,
        "interval": 2.0,
        "sources": ["Music", "Spotify"],
        "timeout": 5.0,
    },
    "weather": {
        "enabled": True,
        "interval": 600.0,
        "api_key": None,
        "location": "New Delhi",
        "latitude": None,
        "longitude": None,
        "location_command": None,
        "base_url": "https://api.openweathermap.org/data/2.5/weather",
        "timeout": 10.0,
        "max_retries": 3,
        "retry_delay": 2.0,
        "unit": "celsius",
    },
    "layout": {
        "left_zone_fraction": 0.5,
        "right_zone_fraction": 0.5,
        "widget_spacing": 140.0,
        "vertical_spacing": 80.0,
        "auto_recompute": False,
    },
}

SECTIONS = tuple(DEFAULT_CONFIG)


class ConfigLoader:
    """Loads and validates YAML configuration files"""

    def load(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Validated configuration dictionary with defaults applied

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config file is invalid or too large
            PermissionError: If config file is not readable
        """
        resolved_path = Path(config_path).expanduser().resolve()

        self._validate_config_path(resolved_path)

        if not resolved_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {resolved_path}")

        file_size = resolved_path.stat().st_size
        if file_size > MAX_CONFIG_SIZE:
            raise ConfigurationError(
                f"Configuration file too large: {file_size} bytes "
                f"(maximum {MAX_CONFIG_SIZE} bytes)"
            )

        try:
            with open(resolved_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except PermissionError as e:
            raise PermissionError(f"Cannot read configuration file: {e}")

        if config is None:
            config = {}

        self._validate(config)
        config = self._apply_defaults(config)
        self._validate_values(config)

        logger.info(f"Loaded configuration from {resolved_path}")
        return config

    def defaults(self) -> Dict[str, Any]:
        """Complete configuration built from defaults alone."""
        return self._apply_defaults({})

    def _validate_config_path(self, config_path: Path) -> None:
        """
        Validate that the configuration file path is safe to load.

        Args:
            config_path: Resolved absolute path to config file

        Raises:
            ConfigurationError: If path is not safe to load
        """
        if config_path.is_dir():
            raise ConfigurationError(f"Path is a directory, not a file: {config_path}")

        if config_path.suffix.lower() not in [".yaml", ".yml"]:
            logger.warning(
                f"Configuration file has unexpected extension: {config_path.suffix}. "
                f"Expected .yaml or .yml"
            )

        logger.debug(f"Configuration path validated: {config_path}")

    def _validate(self, config: Any) -> None:
        """Validate configuration structure"""
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        for section, value in config.items():
            if section not in SECTIONS:
                logger.warning(f"Ignoring unknown configuration section '{section}'")
                continue
            if value is not None and not isinstance(value, dict):
                raise ConfigurationError(f"Section '{section}' must be a dictionary")

    def _apply_defaults(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply default values to configuration"""
        merged = copy.deepcopy(config)
        for section, defaults in DEFAULT_CONFIG.items():
            values = merged.get(section) or {}
            merged[section] = {**copy.deepcopy(defaults), **values}

        merged["weather"]["api_key"] = self._resolve_api_key(merged["weather"].get("api_key"))
        return merged

    def _resolve_api_key(self, api_key: Optional[str]) -> Optional[str]:
        """Expand ${VAR} references, then fall back to OPENWEATHER_API_KEY."""
        if api_key and isinstance(api_key, str) and api_key.startswith("${") and api_key.endswith("}"):
            env_var = api_key[2:-1]
            api_key = os.environ.get(env_var)
            if not api_key:
                logger.warning(f"Weather: environment variable '{env_var}' not set")

        if not api_key:
            api_key = os.environ.get(API_KEY_ENV_VAR)

        return api_key or None

    def _validate_values(self, config: Dict[str, Any]) -> None:
        """Validate individual settings once defaults are in place"""
        for section in ("dock", "media", "weather"):
            interval = config[section].get("interval")
            if not isinstance(interval, (int, float)) or isinstance(interval, bool) or interval <= 0:
                raise ConfigurationError(f"'{section}.interval' must be a positive number")

        screen = config["screen"]
        for key in ("width", "height", "scale_factor"):
            value = screen.get(key)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"'screen.{key}' must be a positive number")

        sources = config["media"].get("sources")
        if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
            raise ConfigurationError("'media.sources' must be a list of application names")

        unit = config["weather"].get("unit")
        if unit not in ("celsius", "fahrenheit"):
            raise ConfigurationError(f"'weather.unit' must be celsius or fahrenheit, got {unit!r}")

        retries = config["weather"].get("max_retries")
        if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
            raise ConfigurationError("'weather.max_retries' must be a non-negative integer")

        layout = config["layout"]
        for key in ("left_zone_fraction", "right_zone_fraction"):
            value = layout.get(key)
            if not isinstance(value, (int, float)) or not 0 <= value <= 1:
                raise ConfigurationError(f"'layout.{key}' must be between 0 and 1")
