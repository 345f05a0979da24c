"""Main CLI entry point for registration-service management commands."""

import click

from registration_service.cli.commands import config, queues, server
from registration_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(package_name="registration-service", prog_name="registration-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Registration Service CLI.

    \b
    Command Groups:
      server     Development and production servers
      config     Show and validate configuration
      queues     Inspect and replay retry queues of a running service

    \b
    Quick Start:
      registration-service config show
      registration-service server dev
      registration-service queues show
    """
    ctx.ensure_object(dict)


cli.add_command(server.server)
cli.add_command(config.config)
cli.add_command(queues.queues)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
