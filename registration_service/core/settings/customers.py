"""Settings for the downstream Customers service."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_customers_yaml_source


class CustomersSettings(BaseSettings):
    """Customers service client configuration.

    Environment variables use CUSTOMERS_ prefix.
    Example: CUSTOMERS_BASE_URL=http://customers:8080

    The service is addressed by name. When Consul is enabled the name is
    resolved through the Consul catalog, otherwise ``base_url`` is used.
    """

    service_name: str = Field(
        default="Customers",
        min_length=1,
        max_length=100,
        description="Logical name of the downstream service",
    )
    base_url: str = Field(
        default="http://localhost:8081",
        pattern=r"^https?://",
        description="Static base URL used when service discovery is disabled",
    )
    request_timeout: float = Field(
        default=5.0,
        gt=0,
        le=120.0,
        description="HTTP timeout for a single downstream request in seconds",
    )
    max_connections: int = Field(
        default=100, ge=1, le=1000, description="Connection pool size",
    )
    mock: bool = Field(
        default=False,
        description="Use an in-memory Customers service (local development only)",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    model_config = SettingsConfigDict(
        env_prefix="CUSTOMERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
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
            create_customers_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
