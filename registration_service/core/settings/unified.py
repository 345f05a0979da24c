"""Unified settings composition for convenient access.

Usage:
    from registration_service.core.settings import get_settings

    settings = get_settings()
    print(settings.app.port)
    print(settings.registration.guard_timeout)

Each nested settings class still respects its own env prefix. Code that
only needs one domain should prefer the individual get_*_settings() loaders.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .app import AppSettings
from .consul import ConsulSettings
from .custom import CustomSettings
from .customers import CustomersSettings
from .logs import LoggingSettings
from .registration import RegistrationSettings


class Settings(BaseSettings):
    """Unified settings composing all domain settings.

    Example:
        settings = Settings()
        assert settings.registration.guard_timeout == 0.5
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    custom: CustomSettings = Field(default_factory=CustomSettings)
    customers: CustomersSettings = Field(default_factory=CustomersSettings)
    consul: ConsulSettings = Field(default_factory=ConsulSettings)
    registration: RegistrationSettings = Field(default_factory=RegistrationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached).

    Returns:
        Settings: Unified settings with all domain configurations.
    """
    return Settings()
