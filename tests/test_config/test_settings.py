"""Testes para config.settings (base e servidor)."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from config.settings import (
    DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    BaseSettings,
    ServerSettings,
    get_base_settings,
    get_server_settings,
)
from config.settings.base.core import _parse_environment


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_base_settings.cache_clear()
    get_server_settings.cache_clear()
    yield
    get_base_settings.cache_clear()
    get_server_settings.cache_clear()


class TestBaseSettings:
    """Testes para BaseSettings."""

    def test_defaults(self) -> None:
        settings = BaseSettings()
        assert settings.environment == "development"
        assert settings.service_name == "ezcx"
        assert settings.is_development
        assert settings.validate() == []

    def test_invalid_values(self) -> None:
        errors = BaseSettings(service_name="", log_level="LOUD").validate()
        assert len(errors) == 2

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("prod", "production"), ("STAGE", "staging"), ("qa", "development")],
    )
    def test_parse_environment(self, raw: str, expected: str) -> None:
        assert _parse_environment(raw) == expected

    def test_load_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("DEBUG", "true")
        settings = get_base_settings()
        assert settings.is_production
        assert settings.log_level == "DEBUG"
        assert settings.debug is True


class TestServerSettings:
    """Testes para ServerSettings."""

    def test_defaults(self) -> None:
        settings = ServerSettings()
        assert settings.address == ":8080"
        assert settings.shutdown_timeout_seconds == DEFAULT_SHUTDOWN_TIMEOUT_SECONDS == 5.0
        assert settings.tls_enabled is False
        assert settings.validate() == []

    def test_load_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("SHUTDOWN_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("TLS_CERT_FILE", "cert.pem")
        monkeypatch.setenv("TLS_KEY_FILE", "key.pem")
        settings = get_server_settings()
        assert settings.address == "127.0.0.1:9090"
        assert settings.shutdown_timeout_seconds == 2.5
        assert settings.tls_enabled is True

    def test_unparseable_numbers_fall_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "http")
        monkeypatch.setenv("SHUTDOWN_TIMEOUT_SECONDS", "soon")
        settings = get_server_settings()
        assert settings.port == 8080
        assert settings.shutdown_timeout_seconds == 5.0

    def test_validation_errors(self) -> None:
        errors = ServerSettings(port=70000, shutdown_timeout_seconds=0, tls_cert_file="c").validate()
        assert len(errors) == 3
