"""Server management commands."""

import subprocess
import sys

import click

from registration_service.cli.utils import error, info, success, warning
from registration_service.core.settings import get_app_settings

APP_IMPORT_PATH = "registration_service.app.main:app"


@click.group(name="server")
def server() -> None:
    """Server management commands."""


def _run(cmd: list[str]) -> None:
    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        info("\nShutting down server...")
    except (OSError, subprocess.CalledProcessError) as e:
        error(f"Failed to start server: {e}")
        sys.exit(1)


@server.command()
@click.option("--host", default=None, help="Host to bind (default: APP_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind (default: APP_PORT)")
@click.option("--reload/--no-reload", default=True, help="Enable auto-reload on code changes")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["critical", "error", "warning", "info", "debug", "trace"]),
    help="Uvicorn log level",
)
def dev(host: str | None, port: int | None, reload: bool, log_level: str) -> None:
    """Run development server with auto-reload."""
    info("Starting development server...")

    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port

    info(f"Server will run at: http://{host}:{port}")
    info(f"Environment: {settings.environment}")
    info(f"Auto-reload: {'enabled' if reload else 'disabled'}")

    cmd = ["uvicorn", APP_IMPORT_PATH, "--host", host, "--port", str(port), "--log-level", log_level]
    if reload:
        cmd.append("--reload")

    success("Starting uvicorn...")
    _run(cmd)


@server.command()
@click.option("--host", default=None, help="Host to bind (default: APP_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind (default: APP_PORT)")
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes. Each worker keeps its own retry queues.",
)
@click.option("--access-log/--no-access-log", default=True, help="Enable access logging")
def prod(host: str | None, port: int | None, workers: int, access_log: bool) -> None:
    """Run production server (no auto-reload)."""
    info("Starting production server...")

    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port

    info(f"Server will run at: http://{host}:{port}")
    info(f"Environment: {settings.environment}")
    info(f"Workers: {workers}")
    if workers > 1:
        warning("Retry queues are per worker; GET /queues only shows the worker that answers")

    cmd = [
        "uvicorn",
        APP_IMPORT_PATH,
        "--host",
        host,
        "--port",
        str(port),
        "--workers",
        str(workers),
        "--log-level",
        "info",
    ]
    if not access_log:
        cmd.append("--no-access-log")

    success("Starting uvicorn in production mode...")
    _run(cmd)
