"""Configuration management for tradedesk.

Read ``settings.yaml`` (plus an optional ``settings.local.yaml``
override) from the package ``config`` directory, resolve ``${VAR}``
references against the environment, and expose values by dot-notation
key.
"""

import os
import re
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

_ENV_REFERENCE = re.compile(r"\$\{[^}]+\}")


class ConfigError(Exception):
    """Raise when configuration loading or validation fails."""


class ConfigLoader:
    """Load and manage configuration from YAML files with environment variable substitution."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config loader.

        Load environment variables from a ``.env`` file (if present) and
        then read YAML configuration from the given directory.

        Args:
            config_dir: Directory containing config files. Defaults to src/tradedesk/config.

        """
        load_dotenv()
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)
        self._config: dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load base settings, merge local overrides, then substitute env vars."""
        self._config = self._read_yaml(self.config_dir / "settings.yaml")

        local_settings = self.config_dir / "settings.local.yaml"
        if local_settings.exists():
            self._deep_merge(self._config, self._read_yaml(local_settings))

        self._config = self._substitute_env_vars(self._config)

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        """Return the mapping stored in ``path``, or an empty dict if it is missing."""
        if not path.exists():
            return {}
        with path.open() as f:
            loaded: Any = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            msg = f"{path.name} must contain a mapping at the top level"
            raise ConfigError(msg)
        return cast("dict[str, Any]", loaded)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override dict into base dict (``base`` is modified in place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], cast("dict[str, Any]", value))
            else:
                base[key] = value

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute environment variables in config.

        Supports format: ${VAR_NAME:default_value} or ${VAR_NAME}

        Args:
            config: Configuration value (dict, list, or str).

        Returns:
            Configuration with environment variables substituted.

        Raises:
            ConfigError: If a referenced variable is unset and has no default.

        """
        if isinstance(config, dict):
            return {k: self._substitute_env_vars(v) for k, v in config.items()}
        if isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        if isinstance(config, str) and config.startswith("${") and config.endswith("}"):
            var_expr = config[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
            else:
                var_name, default = var_expr, None

            value = os.getenv(var_name, default)
            if value is None:
                msg = f"Required environment variable ${{{var_name}}} is not set and has no default"
                raise ConfigError(msg)
            return value

        if isinstance(config, str) and _ENV_REFERENCE.search(config):
            msg = f"Unresolved environment variable reference in: {config}"
            raise ConfigError(msg)

        return config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key.

        Args:
            key: Configuration key in dot notation (e.g., 'data.yahoo.timeout').
            default: Default value if key not found.

        Returns:
            Configuration value.

        """
        current: Any = self._config
        for k in key.split("."):
            if not isinstance(current, dict):
                return default
            current = cast("dict[str, Any]", current).get(k)
            if current is None:
                return default
        return current

    def get_section(self, key: str) -> dict[str, Any]:
        """Return the mapping stored under ``key`` (empty when absent).

        Raises:
            ConfigError: If the value under ``key`` is not a dictionary.

        """
        result: Any = self.get(key, {})
        if isinstance(result, dict):
            return cast("dict[str, Any]", result)
        msg = f"{key} config must be a dict, got {type(result).__name__}"
        raise ConfigError(msg)


_config: ConfigLoader | None = None


def get_config() -> ConfigLoader:
    """Return the global ``ConfigLoader`` singleton, creating it on first use.

    Lazy initialisation avoids side effects (file I/O, ``load_dotenv``)
    at import time and makes testing easier.
    """
    global _config  # noqa: PLW0603
    if _config is None:
        _config = ConfigLoader()
    return _config


def reset_config() -> None:
    """Drop the cached singleton so the next ``get_config()`` reloads from disk."""
    global _config  # noqa: PLW0603
    _config = None
