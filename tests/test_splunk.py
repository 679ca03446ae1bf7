"""Tests for forwarding results to a Splunk event collector."""

import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from rtapi.core.errors import ForwardError
from rtapi.core.models import SplunkSettings
from rtapi.results.splunk import build_event, send_to_splunk


@pytest_asyncio.fixture
async def collector():
    """Event collector that fails on the request numbers listed in ``fail_on``."""
    received = []

    async def handler(request: web.Request) -> web.Response:
        received.append(
            {
                "authorization": request.headers.get("Authorization"),
                "content_type": request.headers.get("Content-Type"),
                "payload": await request.json(),
            }
        )
        if len(received) in fail_on:
            return web.json_response({"text": "Server is busy", "code": 9}, status=500)
        return web.json_response({"text": "Success", "code": 0})

    app = web.Application()
    fail_on = set()
    app.router.add_post("/services/collector", handler)

    server = TestServer(app)
    await server.start_server()
    server.received = received
    server.fail_on = fail_on
    yield server
    await server.close()


def _settings(server):
    return SplunkSettings(
        url=str(server.make_url("/services/collector")),
        authkey="Splunk 0000-1111",
        source="rtapi-tests",
    )


@pytest.mark.asyncio
async def test_one_event_per_endpoint(collector, make_endpoint):
    endpoints = [make_endpoint(f"http://{name}.example", [1, 2, 3]) for name in ("a", "b", "c")]

    sent = await send_to_splunk(endpoints, _settings(collector))

    assert sent == 3
    assert [r["payload"]["event"]["target"]["url"] for r in collector.received] == [
        "http://a.example",
        "http://b.example",
        "http://c.example",
    ]
    for request in collector.received:
        assert request["authorization"] == "Splunk 0000-1111"
        assert request["content_type"] == "application/json"
        assert request["payload"]["source"] == "rtapi-tests"
        assert request["payload"]["host"]
        assert isinstance(request["payload"]["time"], int)
        assert request["payload"]["event"]["metrics"]["requests"] == 3


@pytest.mark.asyncio
async def test_failed_event_stops_forwarding(collector, make_endpoint):
    collector.fail_on.add(2)
    endpoints = [make_endpoint(f"http://{name}.example", [1, 2, 3]) for name in ("a", "b", "c")]

    with pytest.raises(ForwardError, match="500"):
        await send_to_splunk(endpoints, _settings(collector))

    assert len(collector.received) == 2


@pytest.mark.asyncio
async def test_unreachable_collector(make_endpoint):
    settings = SplunkSettings(url=f"http://127.0.0.1:{unused_port()}/services/collector")

    with pytest.raises(ForwardError):
        await send_to_splunk([make_endpoint("http://a.example", [1])], settings)


def test_build_event_wraps_endpoint(make_endpoint):
    endpoint = make_endpoint("http://a.example", [1, 2])
    event = build_event(endpoint, SplunkSettings(url="http://splunk", source="ci"), host="runner-1")

    data = json.loads(json.dumps(event.to_dict()))
    assert data["host"] == "runner-1"
    assert data["source"] == "ci"
    assert data["event"] == json.loads(json.dumps(endpoint.to_dict()))
