"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from toolhost import __version__
from toolhost.core.config.settings import (
    ApplicationSettings,
    ServerSettings,
    Settings,
    get_settings,
    reset_settings,
)


class TestApplicationSettings:
    """Test application-level settings."""

    @pytest.mark.unit
    def test_defaults(self):
        """Test default values."""
        settings = ApplicationSettings()

        assert settings.debug is False
        assert settings.log_level == "INFO"

    @pytest.mark.unit
    def test_log_level_normalized(self, monkeypatch):
        """Test log level is upper-cased."""
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert ApplicationSettings().log_level == "DEBUG"

    @pytest.mark.unit
    def test_invalid_log_level(self, monkeypatch):
        """Test unknown log levels are rejected."""
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError):
            ApplicationSettings()


class TestServerSettings:
    """Test server settings."""

    @pytest.mark.unit
    def test_defaults(self):
        """Test default values."""
        settings = ServerSettings()

        assert settings.server_name == "toolhost"
        assert settings.server_version == __version__
        assert settings.instructions is None
        assert settings.duplicate_policy == "replace"
        assert settings.require_initialize is False
        assert settings.prompts_dir is None

    @pytest.mark.unit
    def test_from_environment(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("TOOLHOST_DUPLICATE_POLICY", "REJECT")
        monkeypatch.setenv("TOOLHOST_REQUIRE_INITIALIZE", "true")
        monkeypatch.setenv("TOOLHOST_PROMPTS_DIR", "/srv/prompts")

        settings = ServerSettings()

        assert settings.duplicate_policy == "reject"
        assert settings.require_initialize is True
        assert settings.prompts_dir == Path("/srv/prompts")

    @pytest.mark.unit
    def test_invalid_duplicate_policy(self, monkeypatch):
        """Test unknown duplicate policies are rejected."""
        monkeypatch.setenv("TOOLHOST_DUPLICATE_POLICY", "merge")

        with pytest.raises(ValidationError):
            ServerSettings()


class TestSettings:
    """Test the combined settings and cache."""

    @pytest.mark.unit
    def test_sections_read_environment(self, monkeypatch):
        """Test each section is loaded from the environment."""
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("TOOLHOST_SERVER_NAME", "inventory")

        settings = Settings()

        assert settings.application.debug is True
        assert settings.server.server_name == "inventory"

    @pytest.mark.unit
    def test_cached(self):
        """Test get_settings returns the same instance until reset."""
        first = get_settings()

        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
