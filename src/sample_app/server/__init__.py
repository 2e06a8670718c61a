"""HTTP surface: application factory, handlers and the work simulator."""

from .app import bind_server, create_app, serve
from .handlers import PlainResponse, RequestHandlers
from .work_simulator import WorkSimulator

__all__ = [
    "bind_server",
    "create_app",
    "serve",
    "RequestHandlers",
    "PlainResponse",
    "WorkSimulator",
]
