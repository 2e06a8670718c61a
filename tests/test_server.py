"""Tests that run the real threaded HTTP server on a local port."""

import socket
import threading
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from sample_app.config import ServerConfig
from sample_app.server import WorkSimulator, bind_server, create_app, serve
from sample_app.statistics import ScriptedRandomSource
from sample_app.telemetry import REQUEST_COUNTER_NAME, REQUEST_DURATION_NAME

PARALLEL_REQUESTS = 8
WORK_SECONDS = 0.4


@pytest.fixture
def held_port() -> Iterator[int]:
    """A loopback port already taken by another listening socket."""
    sock = socket.create_server(("127.0.0.1", 0))
    try:
        yield sock.getsockname()[1]
    finally:
        sock.close()


def fetch(url: str) -> requests.Response:
    with requests.Session() as session:
        session.trust_env = False
        return session.get(url, timeout=10)


def test_bind_server_picks_free_port(telemetry) -> None:
    server = bind_server(create_app(telemetry), "127.0.0.1", 0)
    try:
        assert server.port > 0
        assert server.multithread
    finally:
        server.server_close()


def test_serve_raises_when_port_in_use(telemetry, held_port: int) -> None:
    """A taken port surfaces as OSError rather than an exit from the server library."""
    with pytest.raises(OSError):
        serve(create_app(telemetry), ServerConfig(host="127.0.0.1", port=held_port))


def test_work_requests_are_served_concurrently(telemetry, span_exporter, points) -> None:
    """Parallel /work calls overlap their sleeps and each is counted once."""
    # 0.8 -> 400 ms of work, no anomaly, no failure
    source = ScriptedRandomSource([0.8])
    app = create_app(telemetry, random_source=source, work_simulator=WorkSimulator(source))
    server = bind_server(app, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    url = f"http://127.0.0.1:{server.port}/work"
    try:
        start = time.perf_counter()
        with ThreadPoolExecutor(max_workers=PARALLEL_REQUESTS) as pool:
            responses = list(pool.map(fetch, [url] * PARALLEL_REQUESTS))
        elapsed = time.perf_counter() - start
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)

    assert [r.status_code for r in responses] == [200] * PARALLEL_REQUESTS
    assert all(r.text == "Work completed successfully" for r in responses)
    assert elapsed < PARALLEL_REQUESTS * WORK_SECONDS / 2

    assert sum(p.value for p in points(REQUEST_COUNTER_NAME)) == PARALLEL_REQUESTS
    assert sum(p.count for p in points(REQUEST_DURATION_NAME)) == PARALLEL_REQUESTS

    roots = [s for s in span_exporter.get_finished_spans() if s.name == "do_work"]
    assert len(roots) == PARALLEL_REQUESTS
    assert len({s.context.trace_id for s in roots}) == PARALLEL_REQUESTS
