"""
Telemetry client: tracer, request instruments and provider lifecycle.

init_telemetry() builds the process-wide providers once at startup and
returns a Telemetry object that is passed to the HTTP handlers. After
construction the object is read-only; the SDK instruments are safe to use
from concurrent request threads.

Pipelines:
  spans   -> BatchSpanProcessor            -> exporter
  metrics -> PeriodicExportingMetricReader -> exporter
  logs    -> BatchLogRecordProcessor       -> exporter (root logger via LoggingHandler)
"""

import logging
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from . import __version__
from .config import TelemetryConfig
from .exporters import (
    create_console_exporters,
    create_otlp_log_exporter,
    create_otlp_metric_exporter,
    create_otlp_trace_exporter,
)

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "sample-app"
REQUEST_COUNTER_NAME = "http_requests_total"
REQUEST_DURATION_NAME = "http_request_duration_seconds"

# Seconds; the default SDK boundaries are tuned for milliseconds.
_DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class TelemetryInitError(RuntimeError):
    """Raised when a resource, exporter or provider cannot be constructed."""


def create_resource(config: TelemetryConfig) -> Resource:
    """
    Resource attached to every span, metric and log record of this process.

    Attributes from OTEL_RESOURCE_ATTRIBUTES are merged in by the SDK; the
    values below take precedence.
    """
    return Resource.create(
        {
            "service.name": config.service_name,
            "service.version": config.service_version,
            "deployment.environment": config.deployment_environment,
            "k8s.node.name": config.node_name,
        }
    )


class Telemetry:
    """Tracer and request instruments shared by all handlers."""

    def __init__(
        self,
        tracer_provider: TracerProvider,
        meter_provider: MeterProvider,
        logger_provider: LoggerProvider | None = None,
        instrumentation_version: str = __version__,
    ):
        self.tracer_provider = tracer_provider
        self.meter_provider = meter_provider
        self.logger_provider = logger_provider
        self._log_handler: logging.Handler | None = None
        self._log_target = logging.getLogger()

        self.tracer = tracer_provider.get_tracer(INSTRUMENTATION_NAME, instrumentation_version)
        self.meter = meter_provider.get_meter(INSTRUMENTATION_NAME, instrumentation_version)

        self.request_counter = self.meter.create_counter(
            REQUEST_COUNTER_NAME,
            description="Total number of HTTP requests",
            unit="1",
        )
        self.request_duration = self.meter.create_histogram(
            REQUEST_DURATION_NAME,
            description="HTTP request duration in seconds",
            unit="s",
            explicit_bucket_boundaries_advisory=list(_DURATION_BUCKETS),
        )

    def record_request(self, method: str, endpoint: str, status: int, duration_s: float) -> None:
        """One counter increment and one duration observation for a handled request."""
        self.request_counter.add(
            1,
            {"method": method, "endpoint": endpoint, "status": str(status)},
        )
        self.request_duration.record(duration_s, {"method": method, "endpoint": endpoint})

    def install_log_handler(self, target: logging.Logger | None = None) -> None:
        """Forward records of target (root logger by default) to the logger provider."""
        if self.logger_provider is None or self._log_handler is not None:
            return
        self._log_target = target or logging.getLogger()
        self._log_handler = LoggingHandler(level=logging.NOTSET, logger_provider=self.logger_provider)
        self._log_target.addHandler(self._log_handler)

    def _providers(self) -> list[Any]:
        providers: list[Any] = [self.tracer_provider, self.meter_provider]
        if self.logger_provider is not None:
            providers.append(self.logger_provider)
        return providers

    def shutdown(self) -> None:
        """Flush every provider before shutting any down so pending batches reach the exporter."""
        if self._log_handler is not None:
            self._log_target.removeHandler(self._log_handler)
            self._log_handler = None
        for prov in self._providers():
            try:
                prov.force_flush(5000)
            except Exception:
                logger.warning("Telemetry flush failed for %s", type(prov).__name__, exc_info=True)
        for prov in self._providers():
            prov.shutdown()


def _create_exporters(config: TelemetryConfig) -> tuple[Any, Any, Any]:
    if config.exporter == "none":
        return None, None, None
    if config.exporter == "console":
        return create_console_exporters()

    options = {
        "endpoint": config.endpoint,
        "protocol": config.protocol,
        "insecure": config.insecure,
        "headers": config.headers or None,
    }
    try:
        span_exporter = create_otlp_trace_exporter(**options)
    except Exception as e:
        raise TelemetryInitError(f"failed to create trace exporter: {e}") from e
    try:
        metric_exporter = create_otlp_metric_exporter(**options)
    except Exception as e:
        raise TelemetryInitError(f"failed to create metric exporter: {e}") from e
    try:
        log_exporter = create_otlp_log_exporter(**options)
    except Exception as e:
        raise TelemetryInitError(f"failed to create log exporter: {e}") from e
    return span_exporter, metric_exporter, log_exporter


def init_telemetry(
    config: TelemetryConfig,
    span_exporter: Any = None,
    metric_exporter: Any = None,
    log_exporter: Any = None,
    set_global: bool = True,
) -> Telemetry:
    """
    Build providers and instruments for this process.

    Exporters passed explicitly take precedence over the ones selected by
    config.exporter. With set_global (the default for the server) the
    providers become the OpenTelemetry globals, W3C TraceContext becomes the
    propagator and root-logger records are exported as OTLP logs.

    Raises:
        TelemetryInitError: if any exporter, the resource or a provider fails to build.
    """
    if span_exporter is None and metric_exporter is None and log_exporter is None:
        span_exporter, metric_exporter, log_exporter = _create_exporters(config)

    try:
        resource = create_resource(config)
    except Exception as e:
        raise TelemetryInitError(f"failed to create resource: {e}") from e

    try:
        tracer_provider = TracerProvider(resource=resource)
        if span_exporter is not None:
            tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))

        readers = []
        if metric_exporter is not None:
            readers.append(
                PeriodicExportingMetricReader(
                    metric_exporter,
                    export_interval_millis=config.metric_export_interval_ms,
                )
            )
        meter_provider = MeterProvider(resource=resource, metric_readers=readers)

        logger_provider = LoggerProvider(resource=resource)
        if log_exporter is not None:
            logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))

        telemetry = Telemetry(tracer_provider, meter_provider, logger_provider)
    except Exception as e:
        raise TelemetryInitError(f"failed to create telemetry providers: {e}") from e

    if set_global:
        trace.set_tracer_provider(tracer_provider)
        metrics.set_meter_provider(meter_provider)
        set_logger_provider(logger_provider)
        set_global_textmap(TraceContextTextMapPropagator())
        if log_exporter is not None:
            telemetry.install_log_handler()

    logger.info(
        "Telemetry initialized: service=%s version=%s exporter=%s protocol=%s endpoint=%s",
        config.service_name,
        config.service_version,
        config.exporter,
        config.protocol,
        config.endpoint or "(from OTEL_EXPORTER_OTLP_* env)",
    )
    return telemetry
