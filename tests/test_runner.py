"""Tests for sequential endpoint execution."""

import asyncio

import pytest

from rtapi.core.errors import ConfigError
from rtapi.core.metrics import Metrics
from rtapi.core.models import EndpointDetails, EndpointQuery, EndpointTarget
from rtapi.core.runner import EndpointRunner


class FakeQuery:
    """Stands in for the attack engine and records how it was driven."""

    def __init__(self, make_metrics):
        self.make_metrics = make_metrics
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, endpoint: EndpointDetails) -> Metrics:
        self.calls.append(endpoint.url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        return self.make_metrics([1, 2, 3])


def _endpoint(url, duration="1s"):
    return EndpointDetails(target=EndpointTarget(url=url), query=EndpointQuery(duration=duration))


@pytest.mark.asyncio
async def test_endpoints_run_once_each_in_order(make_metrics):
    query = FakeQuery(make_metrics)
    endpoints = [_endpoint("http://a.example"), _endpoint("http://b.example")]

    result = await EndpointRunner(query=query, show_progress=False).run(endpoints)

    assert result is endpoints
    assert query.calls == ["http://a.example", "http://b.example"]
    assert query.max_in_flight == 1
    assert all(e.metrics is not None and e.metrics.requests == 3 for e in endpoints)


@pytest.mark.asyncio
async def test_bad_duration_fails_before_any_query(make_metrics):
    query = FakeQuery(make_metrics)
    endpoints = [_endpoint("http://a.example"), _endpoint("http://b.example", duration="soon")]

    with pytest.raises(ConfigError):
        await EndpointRunner(query=query, show_progress=False).run(endpoints)

    assert query.calls == []
    assert endpoints[0].metrics is None


@pytest.mark.asyncio
async def test_progress_bar_is_stopped_when_runs_finish(make_metrics):
    query = FakeQuery(make_metrics)
    endpoints = [_endpoint("http://a.example", duration="30s")]

    await EndpointRunner(query=query, show_progress=True).run(endpoints)

    assert asyncio.all_tasks() == {asyncio.current_task()}
    assert endpoints[0].metrics is not None


def test_estimate_sums_durations():
    endpoints = [_endpoint("http://a", "10s"), _endpoint("http://b", "1m"), _endpoint("http://c", "500ms")]
    assert EndpointRunner.estimate_seconds(endpoints) == pytest.approx(70.5)


def test_metrics_attach_only_once(make_metrics):
    endpoint = _endpoint("http://a.example")
    endpoint.attach_metrics(make_metrics([1]))
    with pytest.raises(RuntimeError):
        endpoint.attach_metrics(make_metrics([2]))
