"""Unit tests for modular Pydantic Settings v2."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from registration_service.core.settings import (
    AppSettings,
    ConsulSettings,
    CustomersSettings,
    CustomSettings,
    RegistrationSettings,
    Settings,
    TerminalPolicy,
    clear_all_caches,
    get_custom_settings,
    get_registration_settings,
    get_settings,
)


@pytest.mark.unit
class TestRegistrationSettings:
    """Test suite for guard and replay settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("REGISTRATION_REPLAY_ENABLED", raising=False)

        settings = RegistrationSettings()

        assert settings.guard_timeout == 0.5
        assert settings.guard_max_concurrent == 10
        assert settings.cancel_on_timeout is False
        assert settings.replay_enabled is True
        assert settings.replay_interval_seconds == 10.0
        assert settings.replay_max_attempts is None
        assert settings.terminal_policy is TerminalPolicy.RESOLVE
        assert settings.dead_letter_capacity == 100

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REGISTRATION_GUARD_TIMEOUT", "1.5")
        monkeypatch.setenv("REGISTRATION_TERMINAL_POLICY", "dead_letter")
        monkeypatch.setenv("REGISTRATION_REPLAY_MAX_ATTEMPTS", "5")

        settings = RegistrationSettings()

        assert settings.guard_timeout == 1.5
        assert settings.terminal_policy is TerminalPolicy.DEAD_LETTER
        assert settings.replay_max_attempts == 5

    @pytest.mark.parametrize(
        "overrides",
        [
            {"guard_timeout": 0},
            {"guard_max_concurrent": 0},
            {"replay_interval_seconds": -1},
            {"replay_max_attempts": 0},
            {"terminal_policy": "ignore"},
        ],
    )
    def test_invalid_values_rejected(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            RegistrationSettings(**overrides)

    def test_frozen(self) -> None:
        settings = RegistrationSettings()

        with pytest.raises(ValidationError):
            settings.guard_timeout = 2.0

    def test_loader_is_cached(self) -> None:
        assert get_registration_settings() is get_registration_settings()

    def test_clear_all_caches_reloads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_registration_settings()
        monkeypatch.setenv("REGISTRATION_GUARD_TIMEOUT", "2.0")
        clear_all_caches()

        second = get_registration_settings()

        assert second is not first
        assert second.guard_timeout == 2.0


@pytest.mark.unit
class TestCustomersSettings:
    def test_defaults(self) -> None:
        settings = CustomersSettings(mock=False)

        assert settings.service_name == "Customers"
        assert settings.base_url == "http://localhost:8081"
        assert settings.request_timeout == 5.0

    def test_trailing_slash_stripped(self) -> None:
        assert CustomersSettings(base_url="http://customers:8080/").base_url == (
            "http://customers:8080"
        )

    def test_base_url_requires_scheme(self) -> None:
        with pytest.raises(ValidationError):
            CustomersSettings(base_url="customers:8080")


@pytest.mark.unit
class TestConsulSettings:
    def test_disabled_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CONSUL_ENABLED", raising=False)
        settings = ConsulSettings()

        assert settings.is_configured is False
        assert settings.base_url == "http://127.0.0.1:8500"
        assert settings.get_auth_headers() == {}

    def test_token_header(self) -> None:
        settings = ConsulSettings(token="secret")
        assert settings.get_auth_headers() == {"X-Consul-Token": "secret"}


@pytest.mark.unit
class TestAppSettings:
    def test_debug_rejected_in_production(self) -> None:
        with pytest.raises(ValidationError, match="Debug mode"):
            AppSettings(environment="production", debug=True)

    def test_docs_can_be_disabled(self) -> None:
        settings = AppSettings(disable_docs=True)

        assert settings.docs_enabled is False
        assert settings.get_docs_url() is None
        assert settings.get_openapi_url() is None


@pytest.mark.unit
class TestCustomSettings:
    def test_api_version_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CUSTOM_API_VERSION", "2.3.1")
        clear_all_caches()

        assert get_custom_settings().api_version == "2.3.1"

    def test_api_version_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CUSTOM_API_VERSION", raising=False)
        assert CustomSettings().api_version is None


@pytest.mark.unit
class TestYamlSources:
    """Test conf.d YAML loading."""

    def test_conf_d_overrides_base_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "registration.yaml").write_text("guard_timeout: 1.0\nguard_max_concurrent: 4\n")
        confd = tmp_path / "registration.d"
        confd.mkdir()
        (confd / "10-override.yaml").write_text("guard_timeout: 2.0\n")
        monkeypatch.setenv("REGISTRATION_CONFIG_DIR", str(tmp_path))

        settings = RegistrationSettings()

        assert settings.guard_timeout == 2.0
        assert settings.guard_max_concurrent == 4

    def test_yaml_wins_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "customers.yaml").write_text("base_url: http://from-yaml:8080\n")
        monkeypatch.setenv("CUSTOMERS_CONFIG_DIR", str(tmp_path))
        monkeypatch.setenv("CUSTOMERS_BASE_URL", "http://from-env:8080")

        assert CustomersSettings().base_url == "http://from-yaml:8080"


@pytest.mark.unit
class TestUnifiedSettings:
    def test_composes_every_domain(self) -> None:
        settings = Settings()

        assert isinstance(settings.registration, RegistrationSettings)
        assert isinstance(settings.customers, CustomersSettings)
        assert settings.app.service_name == "registration-service"

    def test_get_settings_cached(self) -> None:
        assert get_settings() is get_settings()
