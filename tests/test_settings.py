"""Tests for settings load/save and environment overrides."""

import pytest
from holoself.settings import (
    AppSettings,
    SettingsError,
    load_settings,
    save_settings,
    settings_path,
)


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "CARTESIA_API_KEY", "WHISPER_CPP_PATH", "WHISPER_MODEL_PATH", "HOLOSELF_DB_PATH"):
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:

    def test_defaults_when_missing(self, tmp_path):
        settings = load_settings(tmp_path)
        assert settings.gemini_model == "gemini-2.0-flash"
        assert settings.skin_type == 4
        assert settings.gemini_configured is False

    def test_round_trip_through_file(self, tmp_path):
        path = save_settings(AppSettings(skin_type=2, timezone="Europe/Lisbon"), tmp_path)
        assert path == settings_path(tmp_path)
        loaded = load_settings(tmp_path)
        assert loaded.skin_type == 2
        assert loaded.timezone == "Europe/Lisbon"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        save_settings(AppSettings(gemini_api_key="from-file"), tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        monkeypatch.setenv("HOLOSELF_DB_PATH", str(tmp_path / "h.db"))
        settings = load_settings(tmp_path)
        assert settings.gemini_api_key == "from-env"
        assert settings.database_path() == tmp_path / "h.db"

    def test_corrupt_file_raises(self, tmp_path):
        settings_path(tmp_path).write_text("{not json", encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(tmp_path)


class TestAppSettings:

    def test_configured_flags(self):
        settings = AppSettings(gemini_api_key="k", cartesia_api_key="c")
        assert settings.gemini_configured is True
        assert settings.cartesia_configured is True
