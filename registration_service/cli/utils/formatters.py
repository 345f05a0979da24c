"""Output formatting utilities for CLI commands."""

import click


def success(message: str) -> None:
    """Print a success message in green."""
    click.secho(f"✓ {message}", fg="green")


def error(message: str) -> None:
    """Print an error message in red on stderr."""
    click.secho(f"✗ {message}", fg="red", err=True)


def warning(message: str) -> None:
    click.secho(f"⚠ {message}", fg="yellow")


def info(message: str) -> None:
    click.secho(f"ℹ {message}", fg="blue")


def header(message: str) -> None:
    click.secho(f"\n{message}", fg="cyan", bold=True)


def section(title: str, width: int = 60) -> None:
    """Print a titled divider."""
    click.secho(f"\n{'=' * width}", fg="white", dim=True)
    click.secho(title, fg="white", bold=True)
    click.secho("=" * width, fg="white", dim=True)
