"""
User configuration management for findimagedupes.

Supports configuration from multiple sources (in order of priority):
1. Command-line flags (highest priority)
2. Environment variables
3. User config file (~/.findimagedupes/config.json)
4. Default values from config.py (lowest priority)

Configuration file location: ~/.findimagedupes/config.json

Example config.json:
{
    "default_threshold": 0,
    "default_jobs": 8,
    "fingerprint_db": "~/.cache/findimagedupes.db",
    "delimiter": " ",
    "exclude": ["/\\.git/", "/thumbnails/"]
}
"""

import json
import os
from pathlib import Path
from typing import Any, Optional
import logging

from .config import (
    DEFAULT_THRESHOLD,
    DEFAULT_JOBS,
    DEFAULT_DELIMITER,
)

logger = logging.getLogger(__name__)


class UserConfig:
    """
    Manages user configuration from file and environment variables.

    The config file is read lazily and cached.
    """

    def __init__(self):
        self._config_data: Optional[dict] = None

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        env_dir = os.getenv('FINDIMAGEDUPES_CONFIG_DIR')
        if env_dir:
            return Path(env_dir)

        return Path.home() / '.findimagedupes'

    @property
    def config_file_path(self) -> Path:
        """Get the configuration file path."""
        return self.config_dir / 'config.json'

    def _load_config_file(self) -> dict:
        """Load configuration from JSON file."""
        if not self.config_file_path.exists():
            return {}

        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load config file {self.config_file_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_file_path}: not a JSON object")
            return {}
        logger.debug(f"Loaded configuration from {self.config_file_path}")
        return data

    def _get_config_data(self) -> dict:
        """Get cached config data (lazy loading)."""
        if self._config_data is None:
            self._config_data = self._load_config_file()
        return self._config_data

    def reload(self):
        """Reload configuration from file."""
        self._config_data = None

    def get(self, key: str, default: Any = None, env_var: Optional[str] = None) -> Any:
        """
        Get a configuration value with priority:
        1. Environment variable (if env_var specified)
        2. Config file
        3. Default value

        Args:
            key: Configuration key
            default: Default value if not found
            env_var: Optional environment variable name to check

        Returns:
            Configuration value
        """
        if env_var:
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Try to parse as JSON for complex types
                try:
                    return json.loads(env_value)
                except (json.JSONDecodeError, TypeError):
                    return env_value

        config_data = self._get_config_data()
        if key in config_data:
            return config_data[key]

        return default

    @property
    def default_threshold(self) -> int:
        """Hamming distance threshold (0-63)."""
        return self.get(
            'default_threshold',
            default=DEFAULT_THRESHOLD,
            env_var='FINDIMAGEDUPES_THRESHOLD'
        )

    @property
    def default_jobs(self) -> int:
        """Number of fingerprinting workers."""
        return self.get(
            'default_jobs',
            default=DEFAULT_JOBS,
            env_var='FINDIMAGEDUPES_JOBS'
        )

    @property
    def fingerprint_db(self) -> str:
        """Path to the fingerprint database ('' disables caching)."""
        custom = self.get('fingerprint_db', env_var='FINDIMAGEDUPES_DB')
        if custom:
            return os.path.expanduser(str(custom))
        return ""

    @property
    def delimiter(self) -> str:
        """Separator between the paths of a group on stdout."""
        return str(self.get(
            'delimiter',
            default=DEFAULT_DELIMITER,
            env_var='FINDIMAGEDUPES_DELIMITER'
        ))

    @property
    def exclude(self) -> list[str]:
        """Exclusion patterns applied in addition to -e flags."""
        patterns = self.get('exclude', default=[], env_var='FINDIMAGEDUPES_EXCLUDE')
        if isinstance(patterns, str):
            return [patterns]
        return list(patterns or [])

    def create_example_config(self) -> bool:
        """Create an example configuration file."""
        example_config = {
            "_comment": "findimagedupes user configuration",
            "default_threshold": DEFAULT_THRESHOLD,
            "default_jobs": DEFAULT_JOBS,
            "fingerprint_db": None,
            "delimiter": DEFAULT_DELIMITER,
            "exclude": [],
        }

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(example_config, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to create example config: {e}")
            return False

        logger.info(f"Created example config file at {self.config_file_path}")
        return True


# Global instance
_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the global UserConfig instance."""
    return _user_config
