"""Retry queue commands against a running service."""

import json

import click
import httpx

from registration_service.cli.utils import error, header, info, success, warning
from registration_service.core.settings import get_app_settings


def _default_url() -> str:
    settings = get_app_settings()
    host = "localhost" if settings.host in {"0.0.0.0", "::"} else settings.host
    return f"http://{host}:{settings.port}"


def _request(method: str, url: str) -> dict:
    try:
        response = httpx.request(method, url, timeout=10.0)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        error(f"{method} {url} failed: {e}")
        raise SystemExit(1) from e
    except ValueError as e:
        error(f"{method} {url} returned a body that is not JSON: {e}")
        raise SystemExit(1) from e


@click.group(name="queues")
@click.option("--url", default=None, help="Service base URL (default: from APP_HOST/APP_PORT)")
@click.pass_context
def queues(ctx: click.Context, url: str | None) -> None:
    """Inspect and replay the retry queues of a running service."""
    ctx.ensure_object(dict)
    ctx.obj["url"] = (url or _default_url()).rstrip("/")


@queues.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """Show depth, head entry and dead letters of each queue."""
    data = _request("GET", f"{ctx.obj['url']}/queues")
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    for name in ("register", "close"):
        queue = data[name]
        header(f"{name} queue: {queue['depth']} pending")
        head = queue.get("head")
        if head:
            info(
                f"head: {head['request']} (attempts={head['attempts']}, "
                f"last error={head.get('lastError')})"
            )
        for letter in queue.get("deadLetters", []):
            warning(f"dead letter: {letter['request']} ({letter['reason']})")


@queues.command()
@click.pass_context
def replay(ctx: click.Context) -> None:
    """Run one replay pass now."""
    data = _request("POST", f"{ctx.obj['url']}/queues/replay")
    for result in data["results"]:
        success(f"{result['queue']}: {result['result']} (depth now {result['depth']})")
