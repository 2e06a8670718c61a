"""
HTTP handlers for /health, /work and /metrics.

Every handler runs inside its own SERVER span (continuing an incoming W3C
traceparent when present) and records exactly one request-counter increment
and one duration observation, on success and simulated-failure paths alike.

Span tree for /work:
  do_work (SERVER)
  └── nested_operation (INTERNAL)   # WorkSimulator runs here
"""

import time
from collections.abc import Callable

from flask import Response, request
from opentelemetry.propagate import extract
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from ..statistics import (
    BernoulliDistribution,
    RandomSource,
    SystemRandomSource,
    UniformDistribution,
)
from ..telemetry import Telemetry
from .work_simulator import WorkSimulator

HEALTH_ENDPOINT = "/health"
WORK_ENDPOINT = "/work"
METRICS_ENDPOINT = "/metrics"

WORK_FAILURE_RATE = 0.05
MAX_CPU_USAGE = 100.0
MAX_MEMORY_USAGE = float(1 << 30)

HEALTH_BODY = "OK"
WORK_SUCCESS_BODY = "Work completed successfully"
WORK_FAILURE_BODY = "Internal Server Error"
METRICS_BODY_FORMAT = '{"cpu_usage": %.2f, "memory_usage": %.2f}'


class PlainResponse(Response):
    """Response that sends no Content-Type unless one is given explicitly."""

    default_mimetype = None


class RequestHandlers:
    """The three endpoints, bound to one Telemetry object and one random source."""

    def __init__(
        self,
        telemetry: Telemetry,
        random_source: RandomSource | None = None,
        work_simulator: WorkSimulator | None = None,
    ):
        self.telemetry = telemetry
        self.random_source = random_source or SystemRandomSource()
        self.work_simulator = work_simulator or WorkSimulator(self.random_source)
        self.work_failure = BernoulliDistribution(WORK_FAILURE_RATE, self.random_source)
        self.cpu_usage = UniformDistribution(0.0, MAX_CPU_USAGE, self.random_source)
        self.memory_usage = UniformDistribution(0.0, MAX_MEMORY_USAGE, self.random_source)

    def _instrumented(
        self,
        span_name: str,
        endpoint: str,
        respond: Callable[[Span], Response],
    ) -> Response:
        """Run respond() inside the request span and record the request metrics."""
        method = request.method
        parent = extract(request.headers)
        with self.telemetry.tracer.start_as_current_span(
            span_name, context=parent, kind=SpanKind.SERVER
        ) as span:
            start = time.perf_counter()
            span.set_attribute("http.request.method", method)
            span.set_attribute("url.path", request.path)
            status = 500
            try:
                response = respond(span)
                status = response.status_code
            finally:
                span.set_attribute("http.response.status_code", status)
                self.telemetry.record_request(
                    method, endpoint, status, time.perf_counter() - start
                )
        return response

    def health(self) -> Response:
        return self._instrumented("health_check", HEALTH_ENDPOINT, self._health)

    def work(self) -> Response:
        return self._instrumented("do_work", WORK_ENDPOINT, self._work)

    def metrics(self) -> Response:
        return self._instrumented("metrics", METRICS_ENDPOINT, self._metrics)

    def _health(self, span: Span) -> Response:
        return PlainResponse(HEALTH_BODY, status=200)

    def _work(self, span: Span) -> Response:
        # Synthetic identifiers; not derived from the request.
        span.set_attribute("user.id", f"user-{self.random_source.next_int(100)}")
        span.set_attribute("request.id", f"req-{self.random_source.next_int(10000)}")

        with self.telemetry.tracer.start_as_current_span(
            "nested_operation", kind=SpanKind.INTERNAL
        ) as child:
            self.work_simulator.simulate(child)

        # Independent of the simulator's own anomaly draw.
        if self.work_failure.sample_bool():
            span.set_attribute("error", True)
            span.set_status(Status(StatusCode.ERROR, "Simulated internal server error"))
            return PlainResponse(WORK_FAILURE_BODY, status=500)
        return PlainResponse(WORK_SUCCESS_BODY, status=200)

    def _metrics(self, span: Span) -> Response:
        cpu_usage = self.cpu_usage.sample()
        memory_usage = self.memory_usage.sample()

        span.set_attribute("system.cpu.usage", cpu_usage)
        span.set_attribute("system.memory.usage", memory_usage)

        return PlainResponse(
            METRICS_BODY_FORMAT % (cpu_usage, memory_usage),
            status=200,
            content_type="application/json",
        )
