"""
Tests for application settings.
"""

import json

from proflow.models.settings import BUNDLED_TEMPLATES_DIR, LIBRARY_ENV_VAR, Settings


class TestSettings:
    """Tests for loading and saving settings."""

    def test_defaults(self, temp_dir, monkeypatch):
        """A missing file gives the defaults."""
        monkeypatch.delenv(LIBRARY_ENV_VAR, raising=False)
        settings = Settings.load(str(temp_dir / "missing.json"))
        assert settings == Settings()
        assert settings.get_library_path() is None
        assert settings.get_templates_path() == BUNDLED_TEMPLATES_DIR

    def test_save_and_load(self, temp_dir, monkeypatch):
        """Saved settings load back unchanged."""
        monkeypatch.delenv(LIBRARY_ENV_VAR, raising=False)
        path = str(temp_dir / "config" / "settings.json")
        Settings(wrap_column=38, playlist_name="Sunday").save(path)
        loaded = Settings.load(path)
        assert loaded.wrap_column == 38
        assert loaded.playlist_name == "Sunday"

    def test_unknown_keys_ignored(self, temp_dir, monkeypatch):
        """Keys from other versions are ignored."""
        monkeypatch.delenv(LIBRARY_ENV_VAR, raising=False)
        path = temp_dir / "settings.json"
        path.write_text(json.dumps({"max_lines_per_slide": 6, "obsolete": True}), encoding="utf-8")
        assert Settings.load(str(path)).max_lines_per_slide == 6

    def test_invalid_json(self, temp_dir, monkeypatch):
        """A corrupt file falls back to the defaults."""
        monkeypatch.delenv(LIBRARY_ENV_VAR, raising=False)
        path = temp_dir / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert Settings.load(str(path)) == Settings()

    def test_library_from_environment(self, temp_dir, monkeypatch):
        """The environment variable overrides the library folder."""
        monkeypatch.setenv(LIBRARY_ENV_VAR, str(temp_dir))
        settings = Settings.load(str(temp_dir / "missing.json"))
        assert settings.get_library_path() == str(temp_dir)

    def test_wrap_column_minimum(self):
        """The wrap column never drops below the minimum."""
        assert Settings(wrap_column=5).get_effective_wrap_column() == 20
