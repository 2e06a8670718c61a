"""
OTLP exporters for traces, metrics, and logs.

Factory functions build exporters for the collector sidecar over HTTP
(default, port 4318) or gRPC (port 4317). When no endpoint is given the
exporter falls back to its own OTEL_EXPORTER_OTLP_* environment variables.
"""

from typing import Any

_SIGNAL_PATHS = {
    "traces": "/v1/traces",
    "metrics": "/v1/metrics",
    "logs": "/v1/logs",
}


def _with_scheme(endpoint: str, insecure: bool) -> str:
    """Prefix a bare host:port with http:// (insecure) or https://."""
    if "://" in endpoint:
        return endpoint
    return f"{'http' if insecure else 'https'}://{endpoint}"


def _http_signal_endpoint(endpoint: str | None, signal: str, insecure: bool) -> str | None:
    """Append the per-signal path (/v1/traces etc.) unless already present."""
    if endpoint is None:
        return None
    url = _with_scheme(endpoint, insecure).rstrip("/")
    path = _SIGNAL_PATHS[signal]
    if not url.endswith(path):
        url = f"{url}{path}"
    return url


def _grpc_endpoint(endpoint: str | None) -> str | None:
    if endpoint is None:
        return None
    return endpoint.replace("http://", "").replace("https://", "")


def _exporter_kwargs(
    endpoint: str | None,
    headers: dict[str, str] | None,
    extra: dict[str, Any],
) -> dict[str, Any]:
    """Only pass explicit options so the exporter's own env handling stays in effect."""
    kwargs: dict[str, Any] = dict(extra)
    if endpoint is not None:
        kwargs["endpoint"] = endpoint
    if headers:
        kwargs["headers"] = headers
    return kwargs


def create_otlp_trace_exporter(
    endpoint: str | None = None,
    protocol: str = "http",
    insecure: bool = True,
    headers: dict[str, str] | None = None,
    **kwargs: Any,
):
    """
    Create an OTLP trace exporter.

    Args:
        endpoint: Collector base URL (e.g. http://localhost:4318); None to use env vars
        protocol: "http" or "grpc"
        insecure: Plain-text transport (no TLS)
        headers: Optional headers to include
        **kwargs: Additional exporter configuration

    Returns:
        Configured SpanExporter
    """
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(
            insecure=insecure,
            **_exporter_kwargs(_grpc_endpoint(endpoint), headers, kwargs),
        )
    else:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (  # type: ignore[assignment]
            OTLPSpanExporter,
        )

        return OTLPSpanExporter(
            **_exporter_kwargs(
                _http_signal_endpoint(endpoint, "traces", insecure), headers, kwargs
            )
        )


def create_otlp_metric_exporter(
    endpoint: str | None = None,
    protocol: str = "http",
    insecure: bool = True,
    headers: dict[str, str] | None = None,
    **kwargs: Any,
):
    """
    Create an OTLP metric exporter.

    Args:
        endpoint: Collector base URL; None to use env vars
        protocol: "http" or "grpc"
        insecure: Plain-text transport (no TLS)
        headers: Optional headers to include
        **kwargs: Additional exporter configuration

    Returns:
        Configured MetricExporter
    """
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        return OTLPMetricExporter(
            insecure=insecure,
            **_exporter_kwargs(_grpc_endpoint(endpoint), headers, kwargs),
        )
    else:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import (  # type: ignore[assignment]
            OTLPMetricExporter,
        )

        return OTLPMetricExporter(
            **_exporter_kwargs(
                _http_signal_endpoint(endpoint, "metrics", insecure), headers, kwargs
            )
        )


def create_otlp_log_exporter(
    endpoint: str | None = None,
    protocol: str = "http",
    insecure: bool = True,
    headers: dict[str, str] | None = None,
    **kwargs: Any,
):
    """Create an OTLP log exporter (same arguments as the trace factory)."""
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

        return OTLPLogExporter(
            insecure=insecure,
            **_exporter_kwargs(_grpc_endpoint(endpoint), headers, kwargs),
        )
    else:
        from opentelemetry.exporter.otlp.proto.http._log_exporter import (  # type: ignore[assignment]
            OTLPLogExporter,
        )

        return OTLPLogExporter(
            **_exporter_kwargs(_http_signal_endpoint(endpoint, "logs", insecure), headers, kwargs)
        )
