"""Unit tests for configuration module."""

import pytest

from mailbox_cache.config import Settings, get_settings


class TestSettings:
    """Test suite for Settings class."""

    def test_default_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that default settings are properly initialized."""
        monkeypatch.delenv("MAILBOX_CACHE_PAGE_SIZE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.page_size == 50
        assert settings.suppress_push_off_first_page is False
        assert settings.log_level == "INFO"
        assert settings.debug is False

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading settings from environment variables."""
        monkeypatch.setenv("MAILBOX_CACHE_PAGE_SIZE", "25")
        monkeypatch.setenv("MAILBOX_CACHE_SUPPRESS_PUSH_OFF_FIRST_PAGE", "true")
        monkeypatch.setenv("MAILBOX_CACHE_LOG_LEVEL", "DEBUG")

        # Clear the cache to ensure fresh settings
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.page_size == 25
        assert settings.suppress_push_off_first_page is True
        assert settings.log_level == "DEBUG"

        # Clean up
        get_settings.cache_clear()

    def test_page_size_must_be_positive(self) -> None:
        """Test that a zero page size is rejected."""
        with pytest.raises(Exception):  # Pydantic ValidationError
            Settings(page_size=0)

    def test_get_settings_returns_cached_instance(self) -> None:
        """Test that get_settings returns the same cached instance."""
        get_settings.cache_clear()

        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

        # Clean up
        get_settings.cache_clear()
