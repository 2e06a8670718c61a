"""Flask application factory and threaded HTTP server."""

import logging
import socket

from flask import Flask
from werkzeug.serving import BaseWSGIServer, make_server, select_address_family

from ..config import ServerConfig
from ..statistics import RandomSource
from ..telemetry import Telemetry
from .handlers import (
    HEALTH_ENDPOINT,
    METRICS_ENDPOINT,
    WORK_ENDPOINT,
    PlainResponse,
    RequestHandlers,
)
from .work_simulator import WorkSimulator

logger = logging.getLogger(__name__)

_METHODS = ["GET", "POST"]


def create_app(
    telemetry: Telemetry,
    random_source: RandomSource | None = None,
    work_simulator: WorkSimulator | None = None,
) -> Flask:
    """Build the Flask app with /health, /work and /metrics registered."""
    app = Flask(__name__, static_folder=None)
    app.response_class = PlainResponse
    handlers = RequestHandlers(telemetry, random_source, work_simulator)

    app.add_url_rule(HEALTH_ENDPOINT, "health", handlers.health, methods=_METHODS)
    app.add_url_rule(WORK_ENDPOINT, "work", handlers.work, methods=_METHODS)
    app.add_url_rule(METRICS_ENDPOINT, "metrics", handlers.metrics, methods=_METHODS)

    app.extensions["sample_app.handlers"] = handlers
    return app


def bind_server(app: Flask, host: str, port: int) -> BaseWSGIServer:
    """
    Bind host:port and wrap the listening socket in a threaded WSGI server.

    The socket is bound here rather than by make_server, which reports bind
    errors on stderr and exits; this raises OSError instead. Port 0 picks a
    free port (see server.port).
    """
    family = select_address_family(host, port)
    sock = socket.create_server((host, port), family=family)
    try:
        server = make_server(host, port, app, threaded=True, fd=sock.fileno())
    finally:
        # make_server keeps a duplicate of the descriptor.
        sock.close()
    return server


def serve(app: Flask, config: ServerConfig) -> None:
    """
    Serve app on config.host:config.port, one thread per request.

    Blocks until interrupted. Raises OSError when the port cannot be bound.
    """
    server = bind_server(app, config.host, config.port)
    logger.info("Starting server on port %d", server.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down server")
    finally:
        server.server_close()
