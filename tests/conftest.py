"""Shared test fixtures for rtapi tests."""

import asyncio
from typing import List

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from rtapi.core.metrics import Metrics, Result
from rtapi.core.models import EndpointDetails, EndpointQuery, EndpointTarget


@pytest.fixture
def make_metrics():
    """Factory building closed Metrics from a list of latencies in ms."""

    def _make(latencies_ms: List[float], code: int = 200, start: float = 1_700_000_000.0) -> Metrics:
        metrics = Metrics()
        for i, ms in enumerate(latencies_ms):
            metrics.add(
                Result(
                    seq=i,
                    code=code,
                    timestamp=start + i * 0.01,
                    latency=int(ms * 1_000_000),
                    bytes_out=10,
                    bytes_in=100,
                    error="" if 200 <= code < 400 else f"{code} Error",
                )
            )
        return metrics.close()

    return _make


@pytest.fixture
def make_endpoint(make_metrics):
    """Factory building a measured EndpointDetails."""

    def _make(url: str, latencies_ms: List[float]) -> EndpointDetails:
        endpoint = EndpointDetails(
            target=EndpointTarget(url=url, header={"Accept": ["application/json"]}),
            query=EndpointQuery(duration="1s", request_rate=len(latencies_ms)),
        )
        endpoint.attach_metrics(make_metrics(latencies_ms))
        return endpoint

    return _make


@pytest_asyncio.fixture
async def api_server():
    """Local HTTP server standing in for the API under test."""
    received = []

    async def ok(request: web.Request) -> web.Response:
        received.append(
            {
                "method": request.method,
                "path": request.path,
                "body": await request.read(),
                "multi": request.headers.getall("X-Multi", []),
            }
        )
        return web.Response(text="ok")

    async def missing(request: web.Request) -> web.Response:
        received.append({"method": request.method, "path": request.path})
        return web.Response(status=404, text="nope")

    async def slow(request: web.Request) -> web.Response:
        received.append({"method": request.method, "path": request.path})
        await asyncio.sleep(0.05)
        return web.Response(text="slow")

    app = web.Application()
    app.router.add_route("*", "/ok", ok)
    app.router.add_route("*", "/missing", missing)
    app.router.add_route("*", "/slow", slow)

    server = TestServer(app)
    await server.start_server()
    server.received = received
    yield server
    await server.close()
