"""Settings for the guarded write path and the replay loop."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_registration_yaml_source


class TerminalPolicy(StrEnum):
    """What the replay loop does with an entry whose replay is rejected.

    A replayed register that reports ``conflict`` or a replayed close that
    reports ``not_found`` will never report ``ok`` on later ticks.
    """

    RESOLVE = "resolve"  # Desired end state already holds, drop the entry
    DEAD_LETTER = "dead_letter"  # Move the entry to the dead-letter list
    RETAIN = "retain"  # Keep the entry at the head of the queue


class RegistrationSettings(BaseSettings):
    """Guard, queue and replay configuration.

    Environment variables use REGISTRATION_ prefix.
    Example: REGISTRATION_GUARD_TIMEOUT=0.5, REGISTRATION_REPLAY_INTERVAL_SECONDS=10
    """

    # ──────────────────────────────────────────────────────────────
    # Guarded operations
    # ──────────────────────────────────────────────────────────────

    guard_timeout: float = Field(
        default=0.5,
        gt=0,
        le=60.0,
        description="Hard timeout for guarded register/close calls in seconds",
    )
    guard_max_concurrent: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Maximum in-flight guarded calls before new calls go to the fallback",
    )
    cancel_on_timeout: bool = Field(
        default=False,
        description="Cancel the timed-out call instead of letting it finish in the background",
    )

    # ──────────────────────────────────────────────────────────────
    # Replay loop
    # ──────────────────────────────────────────────────────────────

    replay_enabled: bool = Field(
        default=True, description="Run the periodic replay of queued operations",
    )
    replay_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        le=3600.0,
        description="Interval between replay passes in seconds",
    )
    replay_max_attempts: int | None = Field(
        default=None,
        ge=1,
        description="Failed replays before an entry is dead-lettered (None = unlimited)",
    )
    terminal_policy: TerminalPolicy = Field(
        default=TerminalPolicy.RESOLVE,
        description="Handling of replays reporting conflict/not_found: resolve|dead_letter|retain",
    )
    dead_letter_capacity: int = Field(
        default=100,
        ge=1,
        le=100_000,
        description="Dead-lettered entries kept for inspection (oldest dropped first)",
    )

    model_config = SettingsConfigDict(
        env_prefix="REGISTRATION_",
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
            create_registration_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
