"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from registration_service.core.settings.loader import get_registration_settings

    settings = get_registration_settings()  # First call: loads and validates
    settings = get_registration_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the caches to force reload:
    clear_all_caches()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .consul import ConsulSettings
from .custom import CustomSettings
from .customers import CustomersSettings
from .logs import LoggingSettings
from .registration import RegistrationSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings.

    Returns:
        Validated and frozen AppSettings instance.
    """
    return AppSettings()


@lru_cache(maxsize=1)
def get_custom_settings() -> CustomSettings:
    """Get cached custom.* properties."""
    return CustomSettings()


@lru_cache(maxsize=1)
def get_customers_settings() -> CustomersSettings:
    """Get cached Customers service client settings.

    Returns:
        Validated and frozen CustomersSettings instance.
    """
    return CustomersSettings()


@lru_cache(maxsize=1)
def get_consul_settings() -> ConsulSettings:
    """Get cached Consul service discovery settings.

    Returns:
        Validated and frozen ConsulSettings instance.
    """
    return ConsulSettings()


@lru_cache(maxsize=1)
def get_registration_settings() -> RegistrationSettings:
    """Get cached guard and replay settings.

    Returns:
        Validated and frozen RegistrationSettings instance.
    """
    return RegistrationSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear all settings caches.

    Useful for testing or when you need to force reload settings.
    In production, prefer process restarts over cache clearing.
    """
    get_app_settings.cache_clear()
    get_custom_settings.cache_clear()
    get_customers_settings.cache_clear()
    get_consul_settings.cache_clear()
    get_registration_settings.cache_clear()
    get_logging_settings.cache_clear()

    from .unified import get_settings

    get_settings.cache_clear()
