"""Modular Pydantic Settings v2 configuration.

Import settings via cached loaders:
    from registration_service.core.settings import get_registration_settings

Or use unified settings for convenient access to all domains:
    from registration_service.core.settings import get_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files (optional, local/dev)
    3. Environment variables (production)
    4. .env file (development only)
    5. secrets_dir (Kubernetes/Docker secrets)
"""

from __future__ import annotations

from .app import AppSettings
from .consul import ConsulSettings
from .custom import CustomSettings
from .customers import CustomersSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_consul_settings,
    get_custom_settings,
    get_customers_settings,
    get_logging_settings,
    get_registration_settings,
)
from .logs import LoggingSettings
from .registration import RegistrationSettings, TerminalPolicy
from .unified import Settings, get_settings

__all__ = [
    "AppSettings",
    "ConsulSettings",
    "CustomSettings",
    "CustomersSettings",
    "LoggingSettings",
    "RegistrationSettings",
    "Settings",
    "TerminalPolicy",
    "clear_all_caches",
    "get_app_settings",
    "get_consul_settings",
    "get_custom_settings",
    "get_customers_settings",
    "get_logging_settings",
    "get_registration_settings",
    "get_settings",
]
