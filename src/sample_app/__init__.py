"""
Sample App - an HTTP service instrumented with OpenTelemetry.

Serves /health, /work and /metrics, and emits spans, request metrics and
logs over OTLP to a collector sidecar.
"""

__version__ = "1.0.0"
