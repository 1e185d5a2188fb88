"""CLI commands for the feed relay."""

import asyncio
import json
import logging
import os
import socket
import sys

import click
import structlog
import uvicorn

from src.api.app import create_app
from src.api.responses import to_service_response
from src.fetch.client import FeedResolver
from src.observability.logging import configure_logging
from src.settings import AppSettings, get_settings


logger = structlog.get_logger()

# First descriptor handed over by the socket activation protocol
# (systemd, systemfd/listenfd).
LISTEN_FDS_START = 3


def inherited_listener_fd(environ: dict[str, str] | None = None) -> int | None:
    """Return the inherited listening socket descriptor, if any.

    Args:
        environ: Environment to inspect (defaults to os.environ).

    Returns:
        File descriptor of the first passed socket, or None.
    """
    env = os.environ if environ is None else environ

    try:
        count = int(env.get("LISTEN_FDS", "0"))
    except ValueError:
        return None
    if count < 1:
        return None

    listen_pid = env.get("LISTEN_PID")
    if listen_pid and listen_pid != str(os.getpid()):
        return None

    return LISTEN_FDS_START


def _resolve_settings(
    host: str | None,
    port: int | None,
    json_logs: bool | None,
    verbose: bool,
) -> AppSettings:
    """Overlay command-line flags on environment settings."""
    settings = get_settings()
    updates: dict[str, object] = {}
    if host is not None:
        updates["host"] = host
    if port is not None:
        updates["port"] = port
    if json_logs is not None:
        updates["json_logs"] = json_logs
    if verbose:
        updates["log_level"] = "DEBUG"
    return settings.model_copy(update=updates)


def _setup_logging(settings: AppSettings) -> int:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    configure_logging(level=level, json_format=settings.json_logs)
    return level


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """rssss feed relay CLI."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: 127.0.0.1).")
@click.option("--port", type=int, default=None, help="Bind port (default: 8080).")
@click.option(
    "--json-logs/--console-logs",
    "json_logs",
    default=None,
    help="Emit JSON logs (default) or human-readable console logs.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def serve(
    host: str | None,
    port: int | None,
    json_logs: bool | None,
    verbose: bool,
) -> None:
    """Serve GET /feed.

    Uses a listening socket passed through LISTEN_FDS when present, so the
    process can be restarted without dropping the port.
    """
    settings = _resolve_settings(host, port, json_logs, verbose)
    level = _setup_logging(settings)
    log = logger.bind(component="cli", command="serve")

    app = create_app(FeedResolver(settings.fetch_config()))
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=level,
    )
    server = uvicorn.Server(config)

    fd = inherited_listener_fd()
    if fd is not None:
        sock = socket.socket(fileno=fd)
        log.info("serve_started", inherited_fd=fd, address=str(sock.getsockname()))
        server.run(sockets=[sock])
        return

    log.info("serve_started", host=settings.host, port=settings.port)
    server.run()


@cli.command()
@click.argument("url")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def fetch(url: str, verbose: bool) -> None:
    """Resolve URL once and print the response the relay would send."""
    if not url.strip():
        raise click.BadParameter("URL must not be empty", param_hint="URL")

    settings = _resolve_settings(None, None, False, verbose)
    _setup_logging(settings)

    resolver = FeedResolver(settings.fetch_config())
    outcome = asyncio.run(resolver.resolve(url))
    result = to_service_response(outcome)

    if result.body is None:
        click.echo(f"HTTP {result.status_code} ({outcome.kind.value})", err=True)
        sys.exit(1)

    click.echo(json.dumps(result.body, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
