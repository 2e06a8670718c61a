"""
Console exporters for running the service without a collector.

Spans are printed one line each (name, ids, status, duration) so request
traffic stays readable; metrics and log records use the SDK's JSON output.
"""

import os
import sys
from typing import IO

from opentelemetry.sdk._logs.export import ConsoleLogRecordExporter
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import ConsoleSpanExporter


def format_span_line(span: ReadableSpan) -> str:
    duration_ms = 0.0
    if span.start_time is not None and span.end_time is not None:
        duration_ms = (span.end_time - span.start_time) / 1e6
    parent = format(span.parent.span_id, "016x") if span.parent else "-"
    return (
        f"span {span.name} trace={format(span.context.trace_id, '032x')} "
        f"span_id={format(span.context.span_id, '016x')} parent={parent} "
        f"status={span.status.status_code.name} duration_ms={duration_ms:.1f}"
        f"{os.linesep}"
    )


def create_console_exporters(out: IO[str] | None = None):
    """
    Create console exporters for all signal types.

    Args:
        out: Stream to write to (default: sys.stdout at call time)

    Returns:
        Tuple of (trace_exporter, metric_exporter, log_exporter)
    """
    stream = out or sys.stdout
    return (
        ConsoleSpanExporter(out=stream, formatter=format_span_line),
        ConsoleMetricExporter(out=stream),
        ConsoleLogRecordExporter(out=stream),
    )
