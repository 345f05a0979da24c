"""CLI command modules."""

from registration_service.cli.commands import config, queues, server

__all__ = ["config", "queues", "server"]
