"""
cepweather.cli - Command-line entry point for the two services.

Usage:
    cepweather [-v] {edge,resolver} [--host HOST] [--port PORT] [--log-level LEVEL]

Examples:
    cepweather edge
    cepweather resolver --port 9081
    cepweather -v edge --host 127.0.0.1
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List

from fastapi import FastAPI

from cepweather import __version__
from cepweather.config import Settings
from cepweather.core.errors import TracerInitError
from cepweather.log import configure_logging
from cepweather.services import create_edge_app, create_resolver_app
from cepweather.tracing import instrument_logging, setup_tracing

logger = logging.getLogger(__name__)

SERVICES = ("edge", "resolver")


def parse_args(args: List[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="cepweather",
        description="Run the CEP edge service or the weather resolver service",
        epilog="Example: cepweather resolver --port 8081",
    )

    parser.add_argument(
        "service",
        choices=SERVICES,
        help="Service to run: edge (POST /cep) or resolver (POST /weather)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Listen address (defaults to EDGE_HOST / RESOLVER_HOST)",
    )

    parser.add_argument(
        "-p", "--port",
        type=int,
        default=None,
        help="Listen port (defaults to EDGE_PORT=8080 / RESOLVER_PORT=8081)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (defaults to LOG_LEVEL or INFO)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def build_app(service: str, settings: Settings) -> FastAPI:
    """Initialize tracing and build the application for one service.

    Raises:
        TracerInitError: If the tracing runtime cannot be constructed
    """
    if service == "edge":
        runtime = setup_tracing(settings.edge_service_name, settings.zipkin_endpoint)
        return create_edge_app(settings, runtime)

    runtime = setup_tracing(settings.resolver_service_name, settings.zipkin_endpoint)
    return create_resolver_app(settings, runtime)


def serve(app: FastAPI, host: str, port: int, log_level: str) -> None:
    import uvicorn

    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


def main(args: List[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 on normal shutdown, 1 if tracing cannot start,
        2 on invalid configuration)
    """
    parsed_args = parse_args(args)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 2

    log_level = "DEBUG" if parsed_args.verbose else (parsed_args.log_level or settings.log_level)
    settings = replace(settings, log_level=log_level.upper())
    configure_logging(settings.log_level)
    if settings.instrument_logging:
        instrument_logging()

    if parsed_args.service == "edge":
        host = parsed_args.host or settings.edge_host
        port = parsed_args.port or settings.edge_port
    else:
        host = parsed_args.host or settings.resolver_host
        port = parsed_args.port or settings.resolver_port

    try:
        app = build_app(parsed_args.service, settings)
    except TracerInitError as e:
        logger.error("Failed to initialize tracer: %s", e)
        return 1

    logger.info("Service %s listening on %s:%d", parsed_args.service, host, port)
    try:
        serve(app, host, port, settings.log_level)
    finally:
        app.state.tracing.shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(main())
