"""Tests for the latency graph."""

import pytest

from rtapi.results.charts import (
    COLORS,
    X_TICKS,
    generate_latency_graph,
    parse_hdr_plot,
    percentile_to_x,
    series_style,
    y_ticks,
)
from rtapi.results.reporters import HDR_HEADER, HDR_QUANTILES, hdr_plot_report

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.mark.parametrize(
    "percentile, x",
    [(0, 1), (50, 2), (90, 10), (99, 100), (99.9, 1000), (99.99, 10000), (100, 10_000_000)],
)
def test_percentile_to_x(percentile, x):
    assert percentile_to_x(percentile) == pytest.approx(x)


def test_percentile_to_x_strictly_increasing():
    percentiles = [0, 10, 50, 75, 90, 95, 99, 99.5, 99.9, 99.99, 99.999, 100]
    xs = [percentile_to_x(p) for p in percentiles]
    assert all(a < b for a, b in zip(xs, xs[1:]))


@pytest.mark.parametrize("percentile", [-0.1, 100.1])
def test_percentile_to_x_out_of_range(percentile):
    with pytest.raises(ValueError):
        percentile_to_x(percentile)


def test_x_ticks_line_up_with_percentiles():
    for value, label in X_TICKS:
        assert percentile_to_x(float(label.rstrip("%"))) == pytest.approx(value)


def test_y_ticks_every_fifty_ms_plus_threshold():
    ticks = y_ticks(160)

    assert ticks[:-1] == [(0.0, "0ms"), (50.0, "50ms"), (100.0, "100ms"), (150.0, "150ms")]
    assert ticks[-1] == (30.0, "Real-Time -- 30ms")


def test_parse_hdr_plot_skips_header_and_malformed_rows():
    text = "\n".join(
        [
            HDR_HEADER,
            "1.500000  0.500000  5  2.000000",
            "garbage",
            "2.0  0.9  9",
            "abc  0.9  9  10.0",
            "",
            "3.250000  0.990000  10  100.000000",
        ]
    )

    assert parse_hdr_plot(text) == [(2.0, 1.5), (100.0, 3.25)]


def test_hdr_plot_report_round_trips_through_parser(make_metrics):
    metrics = make_metrics([float(ms) for ms in range(1, 201)])
    report = hdr_plot_report(metrics)

    lines = report.splitlines()
    assert lines[0] == HDR_HEADER
    assert len(lines) == len(HDR_QUANTILES) + 1

    points = parse_hdr_plot(report)
    assert len(points) == len(HDR_QUANTILES)
    latencies = [y for _, y in points]
    assert latencies == sorted(latencies)
    assert latencies[-1] == pytest.approx(200.0, rel=1e-3)


def test_series_style_never_uses_annotation_color():
    styles = [series_style(i) for i in range(20)]

    assert all(style["color"] != COLORS[0] for style in styles)
    first = [style["color"] for style in styles[: len(COLORS) - 1]]
    assert len(set(first)) == len(first)


def test_graph_is_png(make_endpoint):
    endpoints = [
        make_endpoint("http://fast.example", [1, 2, 3, 4, 5] * 20),
        make_endpoint("http://slow.example", [20, 40, 60, 80, 250] * 20),
    ]

    image = generate_latency_graph(endpoints)

    assert image.startswith(PNG_SIGNATURE)


def test_graph_without_measurements_still_renders():
    assert generate_latency_graph([]).startswith(PNG_SIGNATURE)
