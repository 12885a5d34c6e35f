"""Command line entry point for the client/server demo."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import click

from tracelink.config import TracelinkConfig, configure_logging, load_config
from tracelink.errors import ConfigError

logger = logging.getLogger(__name__)


def _load(ctx: click.Context, overrides: Dict[str, Any]) -> TracelinkConfig:
    merged = dict(ctx.obj["overrides"])
    for section, values in overrides.items():
        merged.setdefault(section, {}).update(values)
    try:
        config = load_config(config_file=ctx.obj["config_file"], overrides=merged)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(config)
    return config


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a tracelink.toml file.",
)
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], debug: bool) -> None:
    """Distributed tracing demo: a client and a server sharing one trace."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["overrides"] = {"logging": {"debug": True}} if debug else {}


@cli.command()
@click.option("--host", default=None, help="Interface to bind.")
@click.option("--port", type=int, default=None, help="Port to listen on.")
@click.pass_context
def server(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Run the hello server."""
    from tracelink.demo.server import run_server

    section: Dict[str, Any] = {}
    if host is not None:
        section["host"] = host
    if port is not None:
        section["port"] = port
    config = _load(ctx, {"server": section} if section else {})
    run_server(config)


@cli.command()
@click.option("--url", default=None, help="Server URL to call.")
@click.option("--interval-ms", type=int, default=None, help="Delay between requests.")
@click.option("--count", type=int, default=None, help="Stop after this many requests.")
@click.pass_context
def client(ctx: click.Context, url: Optional[str], interval_ms: Optional[int], count: Optional[int]) -> None:
    """Run the periodic hello client."""
    from tracelink.demo.client import run_client

    section: Dict[str, Any] = {}
    if url is not None:
        section["url"] = url
    if interval_ms is not None:
        section["request_interval_millis"] = interval_ms
    config = _load(ctx, {"client": section} if section else {})
    try:
        run_client(config, max_requests=count)
    except KeyboardInterrupt:
        logger.info("Client stopped")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
