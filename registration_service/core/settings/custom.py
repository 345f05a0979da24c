"""Custom API settings (the ``custom.*`` property namespace)."""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_custom_yaml_source


class CustomSettings(BaseSettings):
    """Operator-supplied properties reported by the service.

    Environment variables use CUSTOM_ prefix, so the ``custom.api.version``
    property is set with CUSTOM_API_VERSION.
    """

    api_version: str | None = Field(
        default=None,
        max_length=100,
        description="Value of custom.api.version, returned by GET /version",
    )

    model_config = SettingsConfigDict(
        env_prefix="CUSTOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_custom_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
