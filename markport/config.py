"""
Configuration management for markport.

This module handles loading and accessing configuration values from config.yaml.
It provides a centralized way to tune parser, exporter and importer defaults
without changing code.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional
import logging


class ConfigManager:
    """
    Manages configuration loading and access for markport.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file, layered over the defaults."""
        self._config = self._get_default_config()

        if not self.config_path.exists():
            logging.debug(f"Configuration file not found, using defaults: {self.config_path}")
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.error(f"Failed to load configuration: {e}")
            return

        if not isinstance(loaded, dict):
            logging.error(f"Configuration root must be a mapping: {self.config_path}")
            return

        self._merge(self._config, loaded)
        logging.info(f"Configuration loaded from {self.config_path}")

    @classmethod
    def _merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        """Recursively merge ``override`` into ``base`` in place."""
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._merge(base[key], value)
            else:
                base[key] = value

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "parser": {
                "parse_semantics": True,
                "strip_frontmatter": True,
                "max_nesting_depth": 64
            },
            "export": {
                "preserve_semantics": True,
                "wiki_link_style": "[[]]",
                "code_block_language_prefix": True,
                "include_frontmatter": False
            },
            "import": {
                "default_title": "Imported Note",
                "title_max_length": 100,
                "words_per_minute": 200
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "paths": {
                "log_file": None
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "parser.max_nesting_depth")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("parser.parse_semantics")  # Returns True
            config.get("export.wiki_link_style")  # Returns "[[]]"
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def parse_semantics(self) -> bool:
        """Whether semantic HTML-comment envelopes are parsed by default."""
        return bool(self.get("parser.parse_semantics", True))

    @property
    def strip_frontmatter(self) -> bool:
        """Whether leading frontmatter is stripped by default."""
        return bool(self.get("parser.strip_frontmatter", True))

    @property
    def max_nesting_depth(self) -> int:
        """Get the nesting cap for blockquotes, lists and inline delimiters."""
        return int(self.get("parser.max_nesting_depth", 64))

    @property
    def default_title(self) -> str:
        """Get the title used when an import yields no better candidate."""
        return self.get("import.default_title", "Imported Note")

    @property
    def title_max_length(self) -> int:
        """Get the maximum length of a title taken from a paragraph."""
        return int(self.get("import.title_max_length", 100))

    @property
    def words_per_minute(self) -> int:
        """Get the reading speed used for reading-time estimates."""
        return int(self.get("import.words_per_minute", 200))

    @property
    def log_filename(self) -> Optional[str]:
        """Get log file name, if file logging is enabled."""
        return self.get("paths.log_file")


# Global configuration instance
config = ConfigManager()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        The global ConfigManager instance
    """
    return config
