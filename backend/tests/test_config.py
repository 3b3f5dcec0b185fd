"""
Notes Backend — Configuration Tests
====================================

What:  Tests for Settings validators and the startup configuration check.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.config import Settings
from app.exceptions import ConfigurationError


class TestValidators:

    def test_log_level_is_uppercased(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(PydanticValidationError):
            Settings(log_level="chatty")

    def test_only_hmac_algorithms(self):
        assert Settings(jwt_algorithm="hs512").jwt_algorithm == "HS512"
        with pytest.raises(PydanticValidationError):
            Settings(jwt_algorithm="RS256")

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


class TestRequiredForProduction:

    def test_passes_when_configured(self):
        Settings(jwt_secret="s3cret", google_client_id="cid").validate_required_for_production()

    def test_missing_secret_is_fatal(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(jwt_secret="", google_client_id="cid").validate_required_for_production()

        assert "JWT_SECRET" in exc_info.value.message

    def test_reports_every_missing_value(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(jwt_secret="", google_client_id="").validate_required_for_production()

        assert "JWT_SECRET" in exc_info.value.message
        assert "GOOGLE_CLIENT_ID" in exc_info.value.message
        assert exc_info.value.context == {"missing": 2}


class TestLifespan:

    @pytest.mark.asyncio
    async def test_startup_aborts_without_secret(self, monkeypatch):
        from app import main

        monkeypatch.setattr(main, "setup_logging", lambda: None)
        monkeypatch.setattr(main.settings, "jwt_secret", "")
        create_tables_called = []

        async def fake_create_tables():
            create_tables_called.append(True)

        monkeypatch.setattr(main, "create_tables", fake_create_tables)

        with pytest.raises(ConfigurationError):
            async with main.lifespan(main.app):
                pass

        assert create_tables_called == []
