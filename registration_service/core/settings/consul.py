"""Consul service discovery configuration settings.

Environment variables use CONSUL_ prefix.
Example: CONSUL_ENABLED=true, CONSUL_HOST=consul.local

Consul is used to resolve downstream services by name. When disabled,
downstream base URLs come from static configuration.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_consul_yaml_source


class ConsulSettings(BaseSettings):
    """Consul service discovery settings.

    Environment variables use CONSUL_ prefix.
    Example: CONSUL_ENABLED=true
    """

    # ──────────────────────────────────────────────────────────────
    # Enable/Disable toggle
    # ──────────────────────────────────────────────────────────────

    enabled: bool = Field(
        default=False,
        description="Resolve downstream services through Consul (disabled by default)",
    )

    # ──────────────────────────────────────────────────────────────
    # Consul agent connection
    # ──────────────────────────────────────────────────────────────

    host: str = Field(
        default="127.0.0.1",
        description="Consul agent hostname or IP address",
    )

    port: int = Field(
        default=8500,
        ge=1,
        le=65535,
        description="Consul agent HTTP API port",
    )

    scheme: str = Field(
        default="http",
        pattern=r"^https?$",
        description="HTTP scheme for Consul API (http or https)",
    )

    token: SecretStr | None = Field(
        default=None,
        description="Consul ACL token for authentication",
    )

    datacenter: str | None = Field(
        default=None,
        description="Consul datacenter (defaults to agent's datacenter)",
    )

    verify_ssl: bool = Field(
        default=True,
        description="Verify SSL certificates when using HTTPS",
    )

    connect_timeout: float = Field(
        default=5.0,
        ge=0.5,
        le=30.0,
        description="HTTP connection timeout in seconds",
    )

    # ──────────────────────────────────────────────────────────────
    # Resolution
    # ──────────────────────────────────────────────────────────────

    only_passing: bool = Field(
        default=True,
        description="Only resolve to instances whose health checks are passing",
    )

    instance_scheme: str = Field(
        default="http",
        pattern=r"^https?$",
        description="Scheme used to build base URLs of resolved instances",
    )

    # ──────────────────────────────────────────────────────────────
    # Computed properties
    # ──────────────────────────────────────────────────────────────

    @computed_field
    @property
    def is_configured(self) -> bool:
        """Check if Consul service discovery is enabled."""
        return self.enabled

    @computed_field
    @property
    def base_url(self) -> str:
        """Build Consul agent base URL."""
        return f"{self.scheme}://{self.host}:{self.port}"

    def get_auth_headers(self) -> dict[str, str]:
        """Get HTTP headers for Consul API authentication.

        Returns:
            Dictionary with X-Consul-Token header if token is set.
        """
        if self.token:
            return {"X-Consul-Token": self.token.get_secret_value()}
        return {}

    model_config = SettingsConfigDict(
        env_prefix="CONSUL_",
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
            create_consul_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
