# =============================================================================
# tests/unit/test_settings.py
# Unit Tests for Settings Resolution
# =============================================================================

from pathlib import Path

import pytest

from medcore.config.settings import load_settings
from medcore.errors.exceptions import ConfigurationError


@pytest.fixture
def secrets_file(tmp_path):
    path = tmp_path / "secrets.toml"
    path.write_text(
        '[supabase]\n'
        'url = "https://abc.supabase.co"\n'
        'key = "anon-key"\n'
        '\n'
        '[medcore]\n'
        'history_limit = 50\n'
    )
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("SUPABASE_URL", "SUPABASE_KEY", "OPENAI_API_KEY", "OPENAI_MODEL",
                "MEDCORE_DB_PATH", "MEDCORE_NOTIFICATION_TTL", "MEDCORE_HISTORY_LIMIT",
                "MEDCORE_MONITOR_CONNECTIVITY"):
        monkeypatch.delenv(var, raising=False)


class TestLoadSettings:
    """Test source precedence and coercion"""

    def test_defaults(self, tmp_path):
        settings = load_settings(secrets_path=tmp_path / "missing.toml", use_env=False)

        assert settings.notification_ttl == 3.0
        assert settings.history_limit == 20
        assert not settings.has_supabase

    def test_reads_secrets(self, secrets_file):
        settings = load_settings(secrets_path=secrets_file, use_env=False)

        assert settings.supabase_url == "https://abc.supabase.co"
        assert settings.has_supabase
        assert settings.history_limit == 50

    def test_secrets_beat_environment(self, secrets_file, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        settings = load_settings(secrets_path=secrets_file)

        assert settings.supabase_url == "https://abc.supabase.co"
        assert settings.openai_api_key == "sk-env"

    def test_overrides_win(self, secrets_file):
        settings = load_settings(secrets_path=secrets_file, use_env=False, history_limit=5)
        assert settings.history_limit == 5

    def test_env_values_are_coerced(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEDCORE_NOTIFICATION_TTL", "1.5")
        monkeypatch.setenv("MEDCORE_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("MEDCORE_MONITOR_CONNECTIVITY", "false")

        settings = load_settings(secrets_path=tmp_path / "missing.toml")

        assert settings.notification_ttl == 1.5
        assert settings.db_path == Path(tmp_path / "x.db")
        assert settings.monitor_connectivity is False

    def test_invalid_value_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEDCORE_HISTORY_LIMIT", "lots")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(secrets_path=tmp_path / "missing.toml")
        assert exc_info.value.details["config_key"] == "history_limit"

    def test_unknown_override_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(secrets_path=tmp_path / "missing.toml", use_env=False, colour="blue")

    def test_unreadable_secrets_ignored(self, tmp_path):
        path = tmp_path / "secrets.toml"
        path.write_text("[supabase\nurl = ")

        settings = load_settings(secrets_path=path, use_env=False)
        assert settings.supabase_url is None
