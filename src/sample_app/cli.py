"""
Command-line interface for the sample service.

Provides commands for:
- Serving /health, /work and /metrics with telemetry export (default)
- Generating demo traffic against a running instance
"""

import argparse
import logging
import sys

from . import __version__
from .config import ConfigError, load_config, parse_bool, with_overrides
from .defaults import EXPORTER_KINDS, OTLP_PROTOCOLS
from .load_generator import LoadGenerator
from .server import create_app, serve
from .statistics import SystemRandomSource
from .telemetry import TelemetryInitError, init_telemetry

logger = logging.getLogger("sample_app")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DEFAULT_TARGET = "http://sample-app-service"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sample-app",
        description="Sample HTTP service emitting OpenTelemetry traces, metrics and logs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve on $PORT (default 8080), exporting to the collector from OTEL_EXPORTER_OTLP_ENDPOINT
  sample-app serve

  # Serve locally and print telemetry to stdout
  sample-app serve --port 9090 --exporter console

  # Send 100 requests to a running instance
  sample-app loadgen --target http://localhost:8080 --count 100
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service (default)")
    serve_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file with server/telemetry sections (or SAMPLE_APP_CONFIG)",
    )
    serve_parser.add_argument("--host", type=str, default=None, help="Listen address")
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Listen port (default: $PORT or 8080)"
    )
    serve_parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="OTLP collector base URL (default: exporter reads OTEL_EXPORTER_OTLP_ENDPOINT)",
    )
    serve_parser.add_argument(
        "--protocol", type=str, choices=OTLP_PROTOCOLS, default=None, help="OTLP protocol"
    )
    serve_parser.add_argument(
        "--insecure",
        type=str,
        default=None,
        metavar="BOOL",
        help="Use plain-text transport to the collector (default: true)",
    )
    serve_parser.add_argument(
        "--exporter",
        type=str,
        choices=EXPORTER_KINDS,
        default=None,
        help="Where telemetry goes: otlp (default), console or none",
    )
    serve_parser.add_argument("--service-name", type=str, default=None, help="service.name")

    loadgen_parser = subparsers.add_parser("loadgen", help="Generate demo traffic")
    loadgen_parser.add_argument(
        "--target",
        type=str,
        default=_DEFAULT_TARGET,
        help=f"Base URL of the service (default: {_DEFAULT_TARGET})",
    )
    loadgen_parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Number of requests (default: run until interrupted)",
    )
    loadgen_parser.add_argument(
        "--min-delay", type=int, default=1, help="Minimum delay between requests in s (default: 1)"
    )
    loadgen_parser.add_argument(
        "--max-delay", type=int, default=5, help="Maximum delay between requests in s (default: 5)"
    )
    loadgen_parser.add_argument(
        "--seed", type=int, default=None, help="Seed for endpoint and delay selection"
    )

    return parser


def cmd_serve(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Initialize telemetry and serve until interrupted."""
    try:
        config = load_config(getattr(args, "config", None))
        insecure = getattr(args, "insecure", None)
        config = with_overrides(
            config,
            host=getattr(args, "host", None),
            port=getattr(args, "port", None),
            endpoint=getattr(args, "endpoint", None),
            protocol=getattr(args, "protocol", None),
            insecure=parse_bool(insecure, "--insecure") if insecure is not None else None,
            exporter=getattr(args, "exporter", None),
            service_name=getattr(args, "service_name", None),
        )
    except ConfigError as e:
        parser.error(str(e))

    try:
        telemetry = init_telemetry(config.telemetry)
    except TelemetryInitError as e:
        logger.critical("Failed to initialize telemetry: %s", e)
        sys.exit(1)

    app = create_app(telemetry, random_source=SystemRandomSource())
    try:
        serve(app, config.server)
    except OSError as e:
        logger.critical("Server failed to start: %s", e)
        sys.exit(1)
    finally:
        telemetry.shutdown()


def cmd_loadgen(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Send demo traffic and print a summary."""
    if args.count is not None and args.count <= 0:
        parser.error("--count must be positive")
    try:
        generator = LoadGenerator(
            args.target,
            random_source=SystemRandomSource(args.seed),
            min_delay_s=args.min_delay,
            max_delay_s=args.max_delay,
        )
    except ValueError as e:
        parser.error(str(e))

    summary = generator.run(args.count)

    print()
    print(f"Sent {summary.requests} requests to {generator.base_url}")
    for status in sorted(summary.status_counts):
        print(f"   {status}: {summary.status_counts[status]}")
    if summary.failures:
        print(f"   connection failures: {summary.failures}")
    if summary.unexpected:
        print(f"   unexpected status codes: {summary.unexpected}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=_LOG_FORMAT)

    if args.command is None or args.command == "serve":
        cmd_serve(args, parser)
    elif args.command == "loadgen":
        cmd_loadgen(args, parser)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
