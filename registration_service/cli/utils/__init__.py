"""CLI output helpers."""

from registration_service.cli.utils.formatters import (
    error,
    header,
    info,
    section,
    success,
    warning,
)

__all__ = [
    "error",
    "header",
    "info",
    "section",
    "success",
    "warning",
]
