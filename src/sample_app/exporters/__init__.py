"""Telemetry exporters for the collector sidecar and for local runs."""

from .console_exporter import create_console_exporters, format_span_line
from .otlp_exporter import (
    create_otlp_log_exporter,
    create_otlp_metric_exporter,
    create_otlp_trace_exporter,
)

__all__ = [
    "create_otlp_trace_exporter",
    "create_otlp_metric_exporter",
    "create_otlp_log_exporter",
    "create_console_exporters",
    "format_span_line",
]
