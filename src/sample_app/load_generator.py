"""
Demo traffic generator for the sample service.

Picks one of /health, /work, /metrics uniformly at random, issues a GET,
logs the status code and waits a random whole number of seconds before the
next request. Status codes other than 200 and 500 are logged as unexpected
together with the response body.
"""

import logging
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field

import requests

from .server.handlers import HEALTH_ENDPOINT, METRICS_ENDPOINT, WORK_ENDPOINT
from .statistics import RandomSource, SystemRandomSource

logger = logging.getLogger(__name__)

ENDPOINTS = (HEALTH_ENDPOINT, WORK_ENDPOINT, METRICS_ENDPOINT)
EXPECTED_STATUS_CODES = frozenset({200, 500})
DEFAULT_TIMEOUT_S = 10.0


@dataclass
class LoadSummary:
    """Outcome counts of a load-generation run."""

    requests: int = 0
    status_counts: Counter = field(default_factory=Counter)
    unexpected: int = 0
    failures: int = 0

    @property
    def success_count(self) -> int:
        return self.status_counts.get(200, 0)

    @property
    def error_count(self) -> int:
        return self.status_counts.get(500, 0)


class LoadGenerator:
    """Send randomized requests to a running sample service."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        random_source: RandomSource | None = None,
        sleep: Callable[[float], None] = time.sleep,
        min_delay_s: int = 1,
        max_delay_s: int = 5,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        if min_delay_s < 0 or max_delay_s < min_delay_s:
            raise ValueError("Delays must satisfy 0 <= min_delay_s <= max_delay_s")
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.random_source = random_source or SystemRandomSource()
        self.sleep = sleep
        self.min_delay_s = min_delay_s
        self.max_delay_s = max_delay_s
        self.timeout_s = timeout_s

    def next_endpoint(self) -> str:
        return ENDPOINTS[self.random_source.next_int(len(ENDPOINTS))]

    def next_delay_s(self) -> int:
        """Whole seconds in [min_delay_s, max_delay_s]."""
        span = self.max_delay_s - self.min_delay_s + 1
        return self.min_delay_s + self.random_source.next_int(span)

    def send_one(self, summary: LoadSummary) -> int | None:
        """Issue one request and update summary; returns the status code or None on failure."""
        endpoint = self.next_endpoint()
        url = f"{self.base_url}{endpoint}"
        logger.info("Making request to %s", url)
        summary.requests += 1
        try:
            response = self.session.get(url, timeout=self.timeout_s)
        except requests.RequestException as e:
            summary.failures += 1
            logger.warning("Request to %s failed: %s", url, e)
            return None

        status = response.status_code
        summary.status_counts[status] += 1
        logger.info("Response code: %d", status)
        if status not in EXPECTED_STATUS_CODES:
            summary.unexpected += 1
            logger.warning("Unexpected response code: %d", status)
            logger.warning("Response body: %s", response.text)
        return status

    def run(self, count: int | None = None) -> LoadSummary:
        """Send count requests (forever when None) and return the summary."""
        summary = LoadSummary()
        logger.info("Starting load generation against %s", self.base_url)
        sent = 0
        try:
            while count is None or sent < count:
                self.send_one(summary)
                sent += 1
                if count is None or sent < count:
                    self.sleep(self.next_delay_s())
        except KeyboardInterrupt:
            logger.info("Load generation interrupted")
        return summary
