"""
Configuration management for logmirror.

Handles loading and merging configuration from:
- Built-in defaults
- Default configuration file (config/default.yaml)
- An explicit configuration file
- Environment variables
"""

import copy
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "remote": {
        "backend": "http",
        "url": None,
        "file_id": None,
        "folder_id": None,
        "path": None,
        "token": None,
        "token_file": None,
        "timeout_seconds": 30.0,
    },
    "mirror": {
        "local_log_file": "./data/live_log.txt",
        "reversed_log_file": "./data/live_log_reversed.txt",
        "fsync": False,
    },
    "sync": {
        "interval_seconds": 60.0,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
        "default_page_size": 100,
        "max_page_size": 1000,
    },
    "logging": {
        "level": "INFO",
        "format": "json",
    },
}

SUPPORTED_BACKENDS = ("http", "drive", "local")

# Environment variable -> (config key, parser)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "LOGMIRROR_REMOTE_URL": ("remote.url", str),
    "GOOGLE_DRIVE_FILE_ID": ("remote.file_id", str),
    "GOOGLE_DRIVE_FOLDER_ID": ("remote.folder_id", str),
    "LOGMIRROR_ACCESS_TOKEN": ("remote.token", str),
    "LOGMIRROR_SYNC_INTERVAL": ("sync.interval_seconds", float),
    "PORT": ("server.port", int),
    "LOG_LEVEL": ("logging.level", str),
}


class Config:
    """Configuration manager for logmirror."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file. If None, only defaults
                and environment overrides apply.
        """
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self._load_default_config()

        if config_file:
            self._load_config_file(config_file)

        self._apply_env_overrides()

    def _load_default_config(self) -> None:
        """Load default configuration file shipped next to the package."""
        default_config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"
        if default_config_path.exists():
            self._load_config_file(str(default_config_path))

    def _load_config_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file
        """
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f) or {}
            self._merge_config(file_config)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Deep merge new configuration into existing configuration."""
        self._config = self._deep_merge(self._config, new_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides.

        Raises:
            ValueError: If a numeric variable does not parse
        """
        for env_var, (key, cast) in ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if not raw:
                continue
            try:
                self.set(key, cast(raw))
            except ValueError as e:
                raise ValueError(f"Invalid value for {env_var}: {raw!r}") from e

        # Data directory relocates both mirror files
        if data_dir := os.getenv("LOGMIRROR_DATA_DIR"):
            self.set("mirror.local_log_file", str(Path(data_dir) / "live_log.txt"))
            self.set("mirror.reversed_log_file", str(Path(data_dir) / "live_log_reversed.txt"))

    def validate(self) -> None:
        """
        Check values that would otherwise fail deep inside a sync cycle.

        Raises:
            ValueError: Naming the first invalid key
        """
        backend = str(self.get("remote.backend", "")).lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"remote.backend must be one of {', '.join(SUPPORTED_BACKENDS)}, got {backend!r}"
            )

        for key in ("mirror.local_log_file", "mirror.reversed_log_file"):
            if not self.get(key):
                raise ValueError(f"{key} is required")
        if Path(self.get("mirror.local_log_file")) == Path(self.get("mirror.reversed_log_file")):
            raise ValueError("mirror.local_log_file and mirror.reversed_log_file must differ")

        if float(self.get("sync.interval_seconds", 0)) <= 0:
            raise ValueError("sync.interval_seconds must be positive")

        default_page_size = int(self.get("server.default_page_size", 0))
        max_page_size = int(self.get("server.max_page_size", 0))
        if not 1 <= default_page_size <= max_page_size:
            raise ValueError(
                "server.default_page_size must be between 1 and server.max_page_size"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "server.port")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Get entire configuration as dictionary."""
        return copy.deepcopy(self._config)


# Global configuration instance
_config: Optional[Config] = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get global configuration instance.

    Args:
        config_file: Optional configuration file path

    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
