"""
Unit tests for configuration loading and the configuration singleton.
"""

import pytest

from sentinel_agent.config import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)
from sentinel_agent.validation import ValidationError


@pytest.mark.unit
class TestConfigManager:
    """Test cases for get_config and friends."""

    def test_load_from_files(self, config_files):
        """Test configuration and rules are loaded from TOML files."""
        set_config_path(config_files["config"])
        config = get_config()

        assert config.server.port == 8899
        assert config.store.capacity == 10
        assert [r.tier for r in config.rules] == ["web", "cli", "cli"]
        assert config.source_path == str(config_files["config"])

    def test_config_is_cached(self, config_files):
        """Test repeated access returns the same instance."""
        set_config_path(config_files["config"])
        assert get_config() is get_config()
        assert is_config_loaded()

    def test_clear_cache(self, config_files):
        """Test clearing forces a reload."""
        set_config_path(config_files["config"])
        first = get_config()
        clear_config_cache()
        assert not is_config_loaded()
        assert get_config() is not first

    def test_missing_file_uses_defaults(self, temp_dir):
        """Test a missing config file falls back to built-in defaults."""
        set_config_path(temp_dir / "absent.toml")
        config = get_config()
        assert config.server.port == 8888
        assert config.source_path is None
        assert len(config.rules) == 5

    def test_no_rules_path_uses_default_rules(self, temp_dir):
        """Test a config without [paths] uses the built-in rules."""
        config_file = temp_dir / "config.toml"
        config_file.write_text("[store]\ncapacity = 7\n")
        set_config_path(config_file)
        config = get_config()
        assert config.store.capacity == 7
        assert {r.tier for r in config.rules} == {"web", "cli"}

    def test_missing_rules_file_fails(self, temp_dir):
        """Test a configured but missing rules file is an error."""
        config_file = temp_dir / "config.toml"
        config_file.write_text('[paths]\nrules_config = "nope.toml"\n')
        set_config_path(config_file)
        with pytest.raises(FileNotFoundError):
            get_config()

    def test_invalid_value_fails(self, temp_dir):
        """Test validation errors propagate."""
        config_file = temp_dir / "config.toml"
        config_file.write_text("[server]\nport = 0\n")
        set_config_path(config_file)
        with pytest.raises(ValidationError):
            get_config()

    def test_config_info(self, config_files):
        """Test configuration metadata reporting."""
        set_config_path(config_files["config"])
        get_config()
        info = get_config_info()
        assert info["config_loaded"] is True
        assert info["config_path"] == str(config_files["config"])
        assert info["rules_count"] == 3

    def test_to_dict(self, config_files):
        """Test the configuration serialises to plain data."""
        set_config_path(config_files["config"])
        data = get_config().to_dict()
        assert data["watchdog"]["cpu_threshold"] == 80
        assert data["rules"][0]["tier"] == "web"
