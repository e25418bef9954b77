"""
Tests for process-wide settings.
"""

import json

import pytest

from xmlbuilder.core.settings import Settings, get_setting, resolve, settings


class TestSettings:
    """Tests for the Settings singleton."""

    def test_singleton(self):
        """Test that Settings always returns the same instance."""
        assert Settings() is settings

    def test_defaults(self):
        """Test the default values."""
        assert settings.get_all() == {
            "namespace_aware": True,
            "enable_external_entities": False,
            "strict_security": True,
            "omit_xml_declaration": True,
        }

    def test_set_and_reset(self):
        """Test changing and resetting a setting."""
        settings.set("omit_xml_declaration", False)
        assert get_setting("omit_xml_declaration") is False
        settings.reset()
        assert get_setting("omit_xml_declaration") is True

    def test_unknown_setting(self):
        """Test that unknown names are rejected."""
        with pytest.raises(KeyError):
            settings.set("no_such_setting", True)
        with pytest.raises(KeyError):
            settings.get("no_such_setting")

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("ON", True), ("no", False)])
    def test_environment(self, monkeypatch, value, expected):
        """Test loading values from environment variables."""
        monkeypatch.setenv("XMLBUILDER_ENABLE_EXTERNAL_ENTITIES", value)
        settings._load_from_env()
        assert settings.get("enable_external_entities") is expected

    def test_load_file(self, tmp_path, caplog):
        """Test loading values from a JSON file, ignoring unknown keys."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"namespace_aware": False, "bogus": True}))
        settings.load_file(str(path))
        assert settings.get("namespace_aware") is False
        assert "bogus" not in settings.get_all()
        assert "bogus" in caplog.text

    def test_load_invalid_file(self, tmp_path):
        """Test that an unreadable file leaves the settings unchanged."""
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        settings.load_file(str(path))
        assert settings.get("namespace_aware") is True

    def test_save_to_file(self, tmp_path):
        """Test saving and reloading settings."""
        path = tmp_path / "nested" / "settings.json"
        settings.set("strict_security", False)
        settings.save_to_file(str(path))
        settings.reset()
        settings.load_file(str(path))
        assert settings.get("strict_security") is False


def test_resolve():
    """Test that explicit values win over settings."""
    assert resolve("namespace_aware", None) is True
    assert resolve("namespace_aware", False) is False
