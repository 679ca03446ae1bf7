"""Tests for text and JSON reports and the summary table."""

import io
import json

from rtapi.core.config import load_endpoints
from rtapi.results.aggregator import ResultAggregator, is_real_time
from rtapi.results.reporters import (
    REPORT_TITLE,
    format_duration,
    print_json,
    print_text,
    text_report,
)


def test_format_duration():
    assert format_duration(512) == "512ns"
    assert format_duration(1_500) == "1.500µs"
    assert format_duration(12_345_678) == "12.346ms"
    assert format_duration(2_500_000_000) == "2.500s"
    assert format_duration(90_000_000_000) == "1m30.000s"


def test_text_report_lines(make_metrics):
    metrics = make_metrics([10, 20, 30, 40])

    report = text_report(metrics)

    assert report.startswith("Requests")
    assert "[min, mean, 50, 90, 95, 99, 99.9, max]  10.000ms, 25.000ms" in report
    assert "Status Codes  [code:count]  200:4" in report
    assert "Success       [ratio]  100.00%" in report
    assert report.rstrip().endswith("Error Set:")


def test_text_report_lists_unique_errors(make_metrics):
    metrics = make_metrics([5, 6, 7], code=503)

    report = text_report(metrics)

    assert report.rstrip().splitlines()[-1] == "503 Error"
    assert "Success       [ratio]  0.00%" in report


def test_print_text_covers_every_endpoint(make_endpoint):
    endpoints = [
        make_endpoint("http://fast.example", [1, 2, 3]),
        make_endpoint("http://slow.example", [100, 200, 300]),
    ]
    out = io.StringIO()

    print_text(endpoints, stream=out)

    text = out.getvalue()
    assert REPORT_TITLE in text
    assert "API Endpoint: http://fast.example" in text
    assert "API Endpoint: http://slow.example" in text
    assert "REAL-TIME SUMMARY" in text
    assert text.index("http://fast.example") < text.index("http://slow.example")


def test_json_output_loads_back_as_endpoints(make_endpoint, tmp_path):
    endpoints = [
        make_endpoint("http://one.example", [4, 8, 15, 16, 23, 42]),
        make_endpoint("http://two.example", [1, 1, 2, 3, 5, 8]),
    ]
    out = io.StringIO()

    print_json(endpoints, stream=out)

    decoded = json.loads(out.getvalue())
    assert [record["target"]["url"] for record in decoded] == ["http://one.example", "http://two.example"]
    assert decoded[0]["metrics"]["latencies"]["99th"] == endpoints[0].metrics.latencies.p99

    path = tmp_path / "results.json"
    path.write_text(out.getvalue())
    restored = load_endpoints(file=str(path), with_metrics=True)

    for original, loaded in zip(endpoints, restored):
        assert loaded.target == original.target
        assert loaded.query == original.query
        assert loaded.metrics == original.metrics
        assert loaded.metrics.percentile(99.9) == original.metrics.percentile(99.9)


def test_real_time_verdict(make_endpoint):
    fast = make_endpoint("http://fast.example", [5] * 100)
    slow = make_endpoint("http://slow.example", [5] * 90 + [45] * 10)

    assert is_real_time(fast)
    assert not is_real_time(slow)

    df = ResultAggregator([fast, slow]).to_dataframe()
    assert list(df["Real-Time"]) == ["yes", "no"]
    assert list(df["Endpoint"]) == ["http://fast.example", "http://slow.example"]


def test_summary_without_measurements():
    assert ResultAggregator().format_summary_table() == "No results to display.\n"
