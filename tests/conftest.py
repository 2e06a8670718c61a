"""Shared fixtures: in-memory telemetry pipeline and a Flask test client."""

from collections.abc import Iterator
from typing import Any

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from sample_app.config import TelemetryConfig
from sample_app.server import WorkSimulator, create_app
from sample_app.statistics import RandomSource, SystemRandomSource
from sample_app.telemetry import Telemetry, create_resource


class SleepRecorder:
    """Stand-in for time.sleep that records requested durations."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def metric_points(reader: InMemoryMetricReader, name: str) -> list[Any]:
    """All data points of the named metric currently held by the reader."""
    data = reader.get_metrics_data()
    points: list[Any] = []
    if data is None:
        return points
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                if metric.name == name:
                    points.extend(metric.data.data_points)
    return points


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def telemetry(
    span_exporter: InMemorySpanExporter, metric_reader: InMemoryMetricReader
) -> Iterator[Telemetry]:
    """Telemetry with synchronous span export and on-demand metric collection."""
    resource = create_resource(TelemetryConfig(service_name="test-app", node_name="test-node"))
    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    tel = Telemetry(tracer_provider, meter_provider)
    yield tel
    tel.shutdown()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def random_source() -> RandomSource:
    return SystemRandomSource(seed=20240607)


@pytest.fixture
def make_client(telemetry: Telemetry, sleep_recorder: SleepRecorder):
    """Factory for a test client bound to a given random source; work never really sleeps."""

    def _make(source: RandomSource):
        app = create_app(
            telemetry,
            random_source=source,
            work_simulator=WorkSimulator(source, sleep=sleep_recorder),
        )
        app.testing = True
        return app.test_client()

    return _make


@pytest.fixture
def client(make_client, random_source: RandomSource):
    return make_client(random_source)


@pytest.fixture
def points(metric_reader: InMemoryMetricReader):
    """Callable returning the data points of a metric by name."""

    def _points(name: str) -> list[Any]:
        return metric_points(metric_reader, name)

    return _points
