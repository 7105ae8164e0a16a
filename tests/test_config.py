"""Tests for configuration management"""

from pathlib import Path
import pytest

from ntfsreader.config import CONFIG_ENV_VAR, ConfigManager
from ntfsreader.exceptions import ConfigurationError
from ntfsreader.models import OutputFormat


pytestmark = pytest.mark.unit


class TestConfigManager:
    """Test suite for ConfigManager"""

    def test_defaults(self, monkeypatch):
        """Test built-in defaults without a file"""
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        settings = ConfigManager.load_settings()

        assert settings.default_format is OutputFormat.JSON
        assert settings.poll_interval == 0.5
        assert settings.history_size == 1000
        assert settings.log_level == 'INFO'

    def test_load_from_file(self, config_yaml_file):
        """Test values read from YAML"""
        settings = ConfigManager.load_settings(config_yaml_file)

        assert settings.default_format is OutputFormat.CSV
        assert settings.poll_interval == 0.25
        assert settings.history_size == 50
        assert settings.log_level == 'WARNING'

    def test_env_var_fallback(self, config_yaml_file, monkeypatch):
        """Test that NTFSREADER_CONFIG is used when no file is given"""
        monkeypatch.setenv(CONFIG_ENV_VAR, config_yaml_file)
        settings = ConfigManager.load_settings()
        assert settings.default_format is OutputFormat.CSV

    def test_cli_overrides_win(self, config_yaml_file):
        """Test that CLI values override the file"""
        settings = ConfigManager.load_settings(
            config_yaml_file,
            {'log_level': 'DEBUG', 'output_format': 'msgpack', 'history_size': None},
        )

        assert settings.log_level == 'DEBUG'
        assert settings.default_format is OutputFormat.MSGPACK
        assert settings.history_size == 50

    def test_partial_file_merges_with_defaults(self, temp_dir):
        """Test deep merge of a partial configuration"""
        path = Path(temp_dir) / 'partial.yaml'
        path.write_text("journal:\n  history_size: 10\n")

        settings = ConfigManager.load_settings(str(path))
        assert settings.history_size == 10
        assert settings.poll_interval == 0.5

    def test_empty_and_unknown_sections(self, temp_dir):
        """Test that null sections keep defaults and unknown sections are ignored"""
        path = Path(temp_dir) / 'sections.yaml'
        path.write_text("journal:\nalerts:\n  email: ops@example.com\n")

        settings = ConfigManager.load_settings(str(path))
        assert settings.history_size == 1000
        assert settings.poll_interval == 0.5

    def test_defaults_are_not_mutated(self, config_yaml_file):
        """Test that loading a file leaves the built-in defaults intact"""
        ConfigManager.load_settings(config_yaml_file, {'log_level': 'DEBUG'})

        assert ConfigManager.DEFAULT_CONFIG['journal']['history_size'] == 1000
        assert ConfigManager.DEFAULT_CONFIG['logging']['level'] == 'INFO'

    def test_empty_file(self, temp_dir):
        """Test that an empty file means defaults"""
        path = Path(temp_dir) / 'empty.yaml'
        path.write_text("")
        assert ConfigManager.load_settings(str(path)).history_size == 1000

    def test_missing_file(self, temp_dir):
        """Test error for a missing file"""
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager.load_settings(str(Path(temp_dir) / 'missing.yaml'))

    def test_invalid_yaml(self, temp_dir):
        """Test error for malformed YAML"""
        path = Path(temp_dir) / 'bad.yaml'
        path.write_text("output: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigManager.load_settings(str(path))

    def test_non_mapping(self, temp_dir):
        """Test error for a YAML list"""
        path = Path(temp_dir) / 'list.yaml'
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="dictionary"):
            ConfigManager.load_settings(str(path))

    @pytest.mark.parametrize('content', [
        "journal:\n  poll_interval: 0\n",
        "journal:\n  history_size: -5\n",
        "journal:\n  history_size: many\n",
        "output:\n  format: xml\n",
        "logging: verbose\n",
    ])
    def test_invalid_values(self, temp_dir, content):
        """Test rejected configuration values"""
        path = Path(temp_dir) / 'invalid.yaml'
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            ConfigManager.load_settings(str(path))

    def test_default_file_round_trip(self, temp_dir):
        """Test that the generated default file loads to the defaults"""
        path = Path(temp_dir) / 'nested' / 'ntfsreader.yaml'
        ConfigManager.create_default_config_file(str(path))

        assert path.exists()
        settings = ConfigManager.load_settings(str(path))
        assert settings == ConfigManager.load_settings(str(path), {})
        assert settings.default_format is OutputFormat.JSON
        assert settings.history_size == 1000
