"""
Default values for the service and its telemetry resource.

Node identity comes from the environment when the pod spec injects it
(K8S_NODE_NAME, or K8s_NODE_NAME as the collector's resource detector reads it);
otherwise the host name is used.
"""

import os
import socket

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_SERVICE_NAME = "sample-app"
DEFAULT_SERVICE_VERSION = "1.0.0"
DEFAULT_DEPLOYMENT_ENVIRONMENT = "kubernetes"
DEFAULT_OTLP_PROTOCOL = "http"
DEFAULT_METRIC_EXPORT_INTERVAL_MS = 60000

OTLP_PROTOCOLS = ("http", "grpc")
EXPORTER_KINDS = ("otlp", "console", "none")


def get_default_node_name() -> str:
    """Node name from K8S_NODE_NAME / K8s_NODE_NAME env, else the host name."""
    for key in ("K8S_NODE_NAME", "K8s_NODE_NAME"):
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return socket.gethostname()
