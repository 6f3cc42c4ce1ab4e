"""
Tests for the Depot configuration manager.
"""

import json
import logging

from depot import Config
from depot.Config import ConfigManager
from depot.Config.schema import ConfigCategory, get_schema_by_category, get_schema_by_key


class TestConfigManager:
    """Tests for value resolution."""

    def test_defaults(self):
        manager = ConfigManager()

        assert manager.get("STORAGE_ROOT") == "uploads"
        assert manager.get("MAX_UPLOAD_MB") == 100
        assert manager.get("UPLOAD_CHUNK_SIZE") == 1024 * 1024
        assert manager.get("PORT") == 3000
        assert manager.get("CORS_ORIGINS") == ["*"]

    def test_json_file_over_default(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"MAX_UPLOAD_MB": 20, "STORAGE_ROOT": "/srv/files"}))

        manager = ConfigManager(str(config_file))

        assert manager.get("MAX_UPLOAD_MB") == 20
        assert manager.get("STORAGE_ROOT") == "/srv/files"

    def test_env_over_json_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"MAX_UPLOAD_MB": 20}))
        monkeypatch.setenv("MAX_UPLOAD_MB", "7")

        assert ConfigManager(str(config_file)).get("MAX_UPLOAD_MB") == 7

    def test_config_file_from_env(self, tmp_path, monkeypatch):
        """DEPOT_CONFIG_FILE names the JSON file."""
        config_file = tmp_path / "alt.json"
        config_file.write_text(json.dumps({"PORT": 8080}))
        monkeypatch.setenv("DEPOT_CONFIG_FILE", str(config_file))

        assert ConfigManager().get("PORT") == 8080

    def test_unreadable_config_file(self, tmp_path, caplog):
        """Broken JSON is ignored with a warning."""
        config_file = tmp_path / "broken.json"
        config_file.write_text("{not json")

        with caplog.at_level(logging.WARNING):
            manager = ConfigManager(str(config_file))

        assert manager.get("PORT") == 3000
        assert "Ignoring unreadable config file" in caplog.text

    def test_bad_integer_falls_back(self, monkeypatch):
        monkeypatch.setenv("PORT", "eighty")

        assert ConfigManager().get("PORT") == 3000

    def test_list_from_env(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

        assert ConfigManager().get("CORS_ORIGINS") == ["http://a.test", "http://b.test"]

    def test_get_with_default(self):
        assert ConfigManager().get("NOT_A_KEY", "fallback") == "fallback"


class TestValidation:
    """Tests for validate() and get_status()."""

    def test_defaults_are_valid(self):
        is_valid, errors = ConfigManager().validate()

        assert is_valid
        assert errors == []

    def test_below_minimum(self, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_MB", "0")

        is_valid, errors = ConfigManager().validate()

        assert not is_valid
        assert "MAX_UPLOAD_MB must be at least 1" in errors

    def test_invalid_option(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        status = ConfigManager().get_status()

        assert status["status"] == "invalid"
        assert any("LOG_LEVEL" in error for error in status["errors"])

    def test_status_config_file_is_relative(self, monkeypatch):
        monkeypatch.delenv("DEPOT_CONFIG_FILE", raising=False)

        status = ConfigManager().get_status()

        assert status["config_file"] == "data/config.json"

    def test_status_hides_outside_config_location(self, tmp_path):
        """A config file outside the project shows by name only."""
        config_file = tmp_path / "private" / "depot.json"

        status = ConfigManager(str(config_file)).get_status()

        assert status["config_file"] == "depot.json"
        assert str(tmp_path) not in str(status)


class TestModuleFunctions:
    """Tests for the module-level helpers."""

    def test_get_uses_shared_manager(self):
        assert Config.get_manager() is Config.get_manager()
        assert Config.get("HOST") == "0.0.0.0"

    def test_reload_picks_up_env(self, monkeypatch):
        assert Config.get("PORT") == 3000
        monkeypatch.setenv("PORT", "9000")

        Config.reload()

        assert Config.get("PORT") == 9000

    def test_get_all_lists_every_key(self):
        assert set(Config.get_all()) == {
            "STORAGE_ROOT", "MAX_UPLOAD_MB", "UPLOAD_CHUNK_SIZE",
            "HOST", "PORT", "CORS_ORIGINS", "LOG_LEVEL",
        }


class TestSchema:
    """Tests for schema helpers."""

    def test_lookup_by_key(self):
        assert get_schema_by_key("STORAGE_ROOT").restart_required
        assert get_schema_by_key("MISSING") is None

    def test_by_category(self):
        keys = [field.key for field in get_schema_by_category(ConfigCategory.STORAGE)]

        assert keys == ["STORAGE_ROOT", "MAX_UPLOAD_MB", "UPLOAD_CHUNK_SIZE"]

    def test_schema_dict(self):
        schema = Config.get_schema()

        assert set(schema) == {"storage", "server", "logging"}
        assert schema["logging"][0]["key"] == "LOG_LEVEL"
