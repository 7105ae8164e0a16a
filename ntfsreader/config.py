"""Configuration management for ntfsreader"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any

from .exceptions import ConfigurationError
from .models import Settings, OutputFormat


CONFIG_ENV_VAR = 'NTFSREADER_CONFIG'


class ConfigManager:
    """Manages configuration loading and merging from files and CLI arguments"""

    DEFAULT_CONFIG = {
        'output': {
            'format': 'json',
        },
        'journal': {
            'poll_interval': 0.5,
            'history_size': 1000,
        },
        'logging': {
            'level': 'INFO',
        },
    }

    @classmethod
    def load_settings(
        cls,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> Settings:
        """
        Load settings from file and apply CLI overrides.

        When no file is given, the path in NTFSREADER_CONFIG is used if set.

        Args:
            config_file: Path to YAML config file (optional)
            cli_overrides: Dictionary of CLI argument overrides (optional)

        Returns:
            Settings object with merged configuration

        Raises:
            ConfigurationError: If the file is missing, malformed or holds invalid values
        """
        config_dict = cls._copy_sections(cls.DEFAULT_CONFIG)

        if config_file is None:
            config_file = os.environ.get(CONFIG_ENV_VAR) or None

        if config_file:
            file_config = cls._load_yaml_file(config_file)
            config_dict = cls._merge_sections(config_dict, file_config)

        if cli_overrides:
            config_dict = cls._apply_cli_overrides(config_dict, cli_overrides)

        return cls._dict_to_settings(config_dict)

    @classmethod
    def _load_yaml_file(cls, filepath: str) -> Dict[str, Any]:
        """Load YAML configuration file"""
        path = Path(os.path.expanduser(os.path.expandvars(filepath)))

        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {filepath}")

        if not path.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {filepath}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

        if config is None:
            return {}

        if not isinstance(config, dict):
            raise ConfigurationError("Configuration file must contain a YAML dictionary")

        return config

    @classmethod
    def _merge_sections(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay the keys of each file section on the matching default section"""
        result = cls._copy_sections(base)

        for name, values in override.items():
            if name not in result or values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigurationError(f"Configuration section '{name}' must be a dictionary")
            result[name].update(values)

        return result

    @classmethod
    def _apply_cli_overrides(cls, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Apply CLI argument overrides to configuration"""
        result = cls._copy_sections(config)

        cli_mapping = {
            'output_format': ('output', 'format'),
            'poll_interval': ('journal', 'poll_interval'),
            'history_size': ('journal', 'history_size'),
            'log_level': ('logging', 'level'),
        }

        for cli_key, value in overrides.items():
            if value is None:
                continue

            if cli_key in cli_mapping:
                section, config_key = cli_mapping[cli_key]
                result[section][config_key] = value

        return result

    @classmethod
    def _dict_to_settings(cls, config_dict: Dict[str, Any]) -> Settings:
        """Convert configuration dictionary to Settings object"""
        output = cls._section(config_dict, 'output')
        journal = cls._section(config_dict, 'journal')
        logging_section = cls._section(config_dict, 'logging')

        try:
            poll_interval = float(journal.get('poll_interval', 0.5))
            history_size = int(journal.get('history_size', 1000))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid journal settings: {e}")

        return Settings(
            default_format=OutputFormat.parse(str(output.get('format', 'json'))),
            poll_interval=poll_interval,
            history_size=history_size,
            log_level=str(logging_section.get('level', 'INFO')),
        )

    @classmethod
    def _section(cls, config_dict: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = config_dict.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Configuration section '{name}' must be a dictionary")
        return section

    @staticmethod
    def _copy_sections(config: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        return {name: dict(values) for name, values in config.items()}

    @classmethod
    def create_default_config_file(cls, filepath: str) -> None:
        """Create a default configuration file"""
        config_template = """# ntfsreader configuration file

output:
  # Default for --output: json, json-pretty, csv, bincode, msgpack
  format: json

journal:
  # Seconds to wait between polls when no new events arrive (--continuous)
  poll_interval: 0.5

  # Number of recent file paths kept to resolve deleted or renamed entries
  history_size: 1000

logging:
  # DEBUG, INFO, WARNING, ERROR or CRITICAL
  level: INFO
"""

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            f.write(config_template)
