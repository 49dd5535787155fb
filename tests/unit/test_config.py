"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from policy_generator import config
from policy_generator.config import Settings, get_settings, settings
from policy_generator.models import CloudProvider


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Clear settings variables and run from a directory without a .env file."""
    for name in (
        "LOG_LEVEL",
        "DEFAULT_CLOUD_PROVIDER",
        "CLOUD_PROVIDER",
        "POLICY_PATH",
        "POLICY_FILE_PATH",
        "EXPORT_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_settings", None)


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, clean_env):
        current = get_settings()
        assert current.log_level == "INFO"
        assert current.default_provider == CloudProvider.AWS
        assert current.policy_path is None
        assert current.export_dir == "exports"

    def test_environment_overrides(self, clean_env, test_env):
        current = get_settings()
        assert current.log_level == "DEBUG"
        assert current.default_provider == CloudProvider.GCP
        assert current.export_dir == test_env["EXPORT_DIR"]

    def test_alias_names(self, clean_env, monkeypatch):
        monkeypatch.setenv("CLOUD_PROVIDER", "Azure")
        monkeypatch.setenv("POLICY_FILE_PATH", "/tmp/policy.json")
        current = get_settings()
        assert current.default_provider == CloudProvider.AZURE
        assert current.policy_path == "/tmp/policy.json"

    def test_log_level_is_normalized(self, clean_env, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", " warning ")
        assert get_settings().log_level == "WARNING"

    def test_unknown_provider_is_rejected(self, clean_env, monkeypatch):
        monkeypatch.setenv("DEFAULT_CLOUD_PROVIDER", "oracle")
        with pytest.raises(ValidationError):
            Settings()

    def test_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("EXPORT_DIR=from-dotenv\n", encoding="utf-8")
        assert get_settings().export_dir == "from-dotenv"

    def test_settings_are_cached(self, clean_env, monkeypatch):
        first = settings()
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert settings() is first
        assert settings().log_level == "INFO"
