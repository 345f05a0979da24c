"""Configuration management commands."""

import json
from typing import Any

import click
from pydantic import SecretStr, ValidationError
import yaml

from registration_service.cli.utils import error, info, section, success, warning
from registration_service.core.settings import get_settings

SECRET_MASK = "***"


def _mask(value: Any, show_secrets: bool) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value() if show_secrets else SECRET_MASK
    if isinstance(value, dict):
        return {k: _mask(v, show_secrets) for k, v in value.items()}
    return value


def collect_settings(show_secrets: bool = False) -> dict[str, dict[str, Any]]:
    """Effective settings per domain, secrets masked unless ``show_secrets``."""
    settings = get_settings()
    return {
        domain: _mask(getattr(settings, domain).model_dump(), show_secrets)
        for domain in type(settings).model_fields
    }


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""


@config.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml", "table"]),
    default="table",
    help="Output format",
)
@click.option(
    "--show-secrets/--hide-secrets",
    default=False,
    help="Show sensitive values (tokens)",
)
def show(output_format: str, show_secrets: bool) -> None:
    """Display the effective configuration."""
    try:
        config_dict = collect_settings(show_secrets=show_secrets)
    except ValidationError as e:
        error(f"Invalid configuration:\n{e}")
        raise SystemExit(1) from e

    if output_format == "json":
        click.echo(json.dumps(config_dict, indent=2, default=str))
        return
    if output_format == "yaml":
        click.echo(yaml.safe_dump(json.loads(json.dumps(config_dict, default=str)), sort_keys=False))
        return

    if not show_secrets:
        warning("Secrets are hidden. Use --show-secrets to display them.")
    section("CONFIGURATION SETTINGS", width=80)
    for domain, values in config_dict.items():
        click.echo(f"\n[{domain.upper()}]")
        for key, value in values.items():
            click.echo(f"  {key:30} = {value}")


@config.command()
def validate() -> None:
    """Load every settings domain and report validation errors."""
    info("Validating configuration...")
    try:
        collect_settings()
    except ValidationError as e:
        error(f"Invalid configuration:\n{e}")
        raise SystemExit(1) from e
    success("Configuration is valid")
