"""Simulated blocking work that annotates the current span."""

import logging
import time
from collections.abc import Callable

from opentelemetry import trace
from opentelemetry.trace import Span

from ..statistics import BernoulliDistribution, RandomSource, SystemRandomSource

logger = logging.getLogger(__name__)

MAX_WORK_DURATION_MS = 500
WORK_ANOMALY_RATE = 0.1


class WorkSimulator:
    """
    Block for a random duration and describe it on the span.

    With probability WORK_ANOMALY_RATE the span is flagged error=true and a
    warning is logged. This is telemetry noise only: simulate() never raises
    and the caller's response does not depend on it.
    """

    def __init__(
        self,
        random_source: RandomSource | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_duration_ms: int = MAX_WORK_DURATION_MS,
        anomaly_rate: float = WORK_ANOMALY_RATE,
    ):
        self.random_source = random_source or SystemRandomSource()
        self.sleep = sleep
        self.max_duration_ms = max_duration_ms
        self.anomaly = BernoulliDistribution(anomaly_rate, self.random_source)

    def simulate(self, span: Span | None = None) -> int:
        """Run one unit of simulated work; returns the sampled duration in ms."""
        if span is None:
            span = trace.get_current_span()

        duration_ms = self.random_source.next_duration_ms(self.max_duration_ms)
        self.sleep(duration_ms / 1000.0)

        span.set_attribute("work.type", "processing")
        span.set_attribute("work.duration_ms", duration_ms)

        if self.anomaly.sample_bool():
            span.set_attribute("error", True)
            logger.warning("Simulated error occurred")

        return duration_ms
