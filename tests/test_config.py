"""
Тесты загрузки настроек.
"""

from datetime import timedelta

import pytest

from roomify import bootstrap_app
from roomify.config import CONFIG_ENV_VAR, RoomifySettings, load_settings


class TestLoadSettings:
    """Тесты для чтения YAML-файла настроек."""

    def test_defaults_without_file(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        settings = load_settings()

        assert settings == RoomifySettings()
        assert settings.reminder_lead_time == timedelta(minutes=30)

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "roomify.yaml"
        path.write_text(
            "log_level: debug\n"
            "seed_mock_data: false\n"
            "reminder_lead_minutes: 15\n",
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.log_level == "DEBUG"
        assert settings.seed_mock_data is False
        assert settings.reminder_lead_time == timedelta(minutes=15)
        assert settings.utilization_window_hours == 40.0

    def test_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("recent_bookings_limit: 3\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert load_settings().recent_bookings_limit == 3

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_settings(path) == RoomifySettings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("log_level: loud\nreminder_lead_minutes: -5\n", encoding="utf-8")

        with pytest.raises(ValueError, match="bad.yaml"):
            load_settings(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("log_level: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="broken.yaml"):
            load_settings(path)


def test_bootstrap_without_seed_data():
    app = bootstrap_app(RoomifySettings(seed_mock_data=False))

    assert app.rooms.list_rooms() == []
    assert app.users.list_users() == []
