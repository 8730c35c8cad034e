"""
Tests for configuration module.
"""

import pytest


class TestFeatureFlags:
    """Feature flags tests."""

    def test_default_features_enabled(self):
        """Test all features are enabled by default."""
        from logdeck.config import FeatureFlags

        flags = FeatureFlags()
        assert flags.ingest is True
        assert flags.query is True
        assert flags.stats is True
        assert flags.bulk is True
        assert flags.stream is True

    def test_to_dict(self):
        """Test feature flags to dict."""
        from logdeck.config import FeatureFlags

        result = FeatureFlags().to_dict()

        assert isinstance(result, dict)
        assert len(result) == 5
        assert result["query"] is True

    def test_env_override(self, monkeypatch):
        """Test a flag can be switched off from the environment."""
        from logdeck.config import FeatureFlags

        monkeypatch.setenv("FEATURE_STREAM", "false")
        assert FeatureFlags().stream is False


class TestSettings:
    """Settings tests."""

    def test_defaults(self, monkeypatch):
        from logdeck.config import Settings

        monkeypatch.delenv("STORAGE_PATH", raising=False)
        settings = Settings()
        assert settings.storage.path == "data/logs.json"
        assert settings.api_prefix == "/api"
        assert settings.default_page_size == 50
        assert settings.is_production is False

    def test_storage_path_from_env(self, monkeypatch):
        from logdeck.config import Settings

        monkeypatch.setenv("STORAGE_PATH", "/tmp/elsewhere.json")
        assert Settings().storage.path == "/tmp/elsewhere.json"

    def test_get_settings_cached(self):
        from logdeck.config import get_settings

        assert get_settings() is get_settings()


class TestExceptions:
    """Exception tests."""

    def test_not_found_exception(self):
        from logdeck.exceptions import NotFoundException

        exc = NotFoundException("Log", "123")
        assert exc.status_code == 404
        assert exc.code == "NOT_FOUND"
        assert exc.details["resource_id"] == "123"

    def test_validation_exception(self):
        from logdeck.exceptions import ValidationException

        exc = ValidationException("bad", errors=[{"loc": ["level"], "msg": "nope"}])
        assert exc.status_code == 400
        assert exc.code == "VALIDATION_ERROR"
        assert exc.details["errors"][0]["loc"] == ["level"]

    @pytest.mark.parametrize("cls,code", [
        ("StorageReadException", "STORAGE_READ_ERROR"),
        ("StorageWriteException", "STORAGE_WRITE_ERROR"),
    ])
    def test_storage_exceptions(self, cls, code):
        from logdeck import exceptions

        exc = getattr(exceptions, cls)("data/logs.json", "disk on fire")
        assert exc.status_code == 500
        assert exc.code == code
        assert "disk on fire" in exc.message
        assert exc.details == {"path": "data/logs.json"}

    def test_feature_disabled_exception(self):
        from logdeck.exceptions import FeatureDisabledException

        exc = FeatureDisabledException("bulk")
        assert exc.status_code == 503
        assert exc.code == "FEATURE_DISABLED"
        assert "bulk" in exc.message
