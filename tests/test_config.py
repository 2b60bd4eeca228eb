"""Tests for configuration management."""

from pathlib import Path

import pytest

from green_pantry.config import ConfigManager


@pytest.fixture
def config_file(tmp_path):
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text("""
[data]
storage_dir = "/custom/data"
backend = "sqlite"

[user]
id = "maria"
name = "Maria Santos"

[logging]
level = "debug"
""")
    return config_path


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_load_data_config(self, config_file):
        """Load data configuration from file."""
        manager = ConfigManager(config_path=config_file)

        assert manager.data.storage_dir == Path("/custom/data")
        assert manager.data.backend == "sqlite"

    def test_user_config(self, config_file):
        """Load user configuration."""
        manager = ConfigManager(config_path=config_file)

        assert manager.user.id == "maria"
        assert manager.user.name == "Maria Santos"

    def test_logging_level_uppercased(self, config_file):
        manager = ConfigManager(config_path=config_file)
        assert manager.logging.level == "DEBUG"

    def test_numeric_user_id(self, tmp_path):
        config_path = tmp_path / "config.toml"
        config_path.write_text("[user]\nid = 42\n")
        manager = ConfigManager(config_path=config_path)
        assert manager.user.id == "42"

    def test_storage_dir_expands_home(self, tmp_path):
        config_path = tmp_path / "config.toml"
        config_path.write_text('[data]\nstorage_dir = "~/pantry"\n')
        manager = ConfigManager(config_path=config_path)
        assert manager.data.storage_dir == Path.home() / "pantry"

    def test_missing_config_uses_defaults(self, tmp_path):
        """Missing config file uses default values."""
        manager = ConfigManager(config_path=tmp_path / "nonexistent.toml")

        assert manager.data.storage_dir == Path.home() / "green-pantry" / "data"
        assert manager.data.backend == "json"
        assert manager.user.id is None
        assert manager.logging.level == "WARNING"

    def test_partial_config(self, tmp_path):
        """Config file with only some sections."""
        config_path = tmp_path / "partial.toml"
        config_path.write_text("""
[user]
name = "Ben"
""")
        manager = ConfigManager(config_path=config_path)

        assert manager.user.name == "Ben"
        assert manager.user.id is None
        assert manager.data.backend == "json"  # Default
        assert manager.logging.level == "WARNING"  # Default

    def test_get_by_path(self, config_file):
        """Get config value by dot-notation path."""
        manager = ConfigManager(config_path=config_file)

        assert manager.get("user.id") == "maria"
        assert manager.get("data.backend") == "sqlite"

    def test_get_with_default(self, config_file):
        """Get returns default for missing path."""
        manager = ConfigManager(config_path=config_file)

        assert manager.get("nonexistent.key", "default") == "default"
        assert manager.get("nonexistent", None) is None

    def test_get_none_value_returns_default(self, tmp_path):
        manager = ConfigManager(config_path=tmp_path / "nonexistent.toml")
        assert manager.get("user.name", "anonymous") == "anonymous"


class TestConfigDiscovery:
    """Tests for config file discovery."""

    def test_finds_local_config(self, tmp_path, monkeypatch):
        """Finds config.toml in current directory."""
        monkeypatch.chdir(tmp_path)

        config_path = tmp_path / "config.toml"
        config_path.write_text("""
[user]
id = "local"
""")

        manager = ConfigManager()
        assert manager.user.id == "local"

    def test_prefers_explicit_path(self, tmp_path, monkeypatch):
        """Explicit path takes precedence over discovery."""
        monkeypatch.chdir(tmp_path)

        local_config = tmp_path / "config.toml"
        local_config.write_text('[user]\nid = "local"')

        explicit_config = tmp_path / "explicit.toml"
        explicit_config.write_text('[user]\nid = "explicit"')

        manager = ConfigManager(config_path=explicit_config)
        assert manager.user.id == "explicit"

    def test_no_config_uses_default_path(self, tmp_path, monkeypatch):
        """When no config file exists anywhere, returns default home config path."""
        empty_dir = tmp_path / "empty"
        empty_dir.mkdir()
        monkeypatch.chdir(empty_dir)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))

        manager = ConfigManager()
        expected = Path.home() / ".config" / "green-pantry" / "config.toml"
        assert manager.config_path == expected
        assert manager.data.backend == "json"
