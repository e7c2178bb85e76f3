from __future__ import annotations

import pytest

from taskvault.app.core.config import MEBIBYTE, MULTIPART_OVERHEAD_BYTES, Settings


def test_environment_profiles_apply_defaults() -> None:
    dev = Settings(environment="development")
    assert dev.environment == "development"
    assert dev.log_level == "DEBUG"
    assert dev.reload is True
    assert dev.auto_create_tables is True
    assert dev.session_cookie_secure is False

    test_profile = Settings(environment="test")
    assert test_profile.log_level == "WARNING"
    assert test_profile.reload is False
    assert test_profile.auto_create_tables is False

    production = Settings(environment="production")
    assert production.log_level == "INFO"
    assert production.session_cookie_secure is True


def test_environment_aliases_are_normalised() -> None:
    assert Settings(environment="DEV").environment == "development"
    assert Settings(environment="prod").environment == "production"
    assert Settings(environment="testing").environment == "test"


def test_environment_profile_respects_explicit_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKVAULT_LOG_LEVEL", "error")
    assert Settings(environment="test").log_level == "ERROR"

    monkeypatch.setenv("TASKVAULT_SESSION_COOKIE_SECURE", "false")
    assert Settings(environment="production").session_cookie_secure is False


def test_session_and_upload_defaults() -> None:
    settings = Settings(environment="test")

    assert settings.session_cookie_name == "token"
    assert settings.session_max_age_seconds == 7 * 24 * 60 * 60
    assert settings.max_upload_bytes == 5 * MEBIBYTE


def test_cors_lists_accept_comma_separated_strings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKVAULT_CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")

    assert Settings().cors_allow_origins == ["https://a.example", "https://b.example"]


def test_non_positive_limits_are_rejected() -> None:
    with pytest.raises(ValueError):
        Settings(max_upload_bytes=0)


def test_cors_lists_accept_json_arrays(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKVAULT_CORS_ALLOW_METHODS", '["GET", "POST"]')
    monkeypatch.setenv("TASKVAULT_CORS_ALLOW_HEADERS", "*")

    settings = Settings()

    assert settings.cors_allow_methods == ["GET", "POST"]
    assert settings.cors_allow_headers == ["*"]


def test_upload_request_cap_covers_every_allowed_file() -> None:
    settings = Settings(environment="test", max_upload_bytes=MEBIBYTE, max_upload_files=3)

    assert settings.max_upload_request_bytes == 3 * MEBIBYTE + MULTIPART_OVERHEAD_BYTES
