"""Text, JSON and HDR plot reports."""

import json
import sys
from typing import List, Optional, TextIO

from ..core.metrics import NANOSECONDS_PER_MILLISECOND, Metrics
from ..core.models import EndpointDetails
from ..core.presets import REAL_TIME_THRESHOLD_MS
from .aggregator import ResultAggregator

REPORT_TITLE = "Real-Time API Latency Report"

PREAMBLE = (
    "APIs sit at the heart of modern applications, and users notice every "
    "millisecond they spend waiting on one.\n\n",
    f"We consider an API real time when it processes end-to-end calls in "
    f"{REAL_TIME_THRESHOLD_MS}ms or less at the 99th percentile.\n\n",
    "Here is how your API endpoints stack up.\n\n",
)

CLOSING = (
    f"Endpoints whose 99th percentile latency is above {REAL_TIME_THRESHOLD_MS}ms "
    "are not yet real time.\n"
)

# Quantiles reported in the HDR plot output
HDR_QUANTILES = (
    0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.55, 0.6, 0.65, 0.7, 0.75, 0.775, 0.8,
    0.825, 0.85, 0.875, 0.8875, 0.9, 0.9125, 0.925, 0.9375, 0.94375, 0.95,
    0.95625, 0.9625, 0.96875, 0.971875, 0.975, 0.978125, 0.98125, 0.984375,
    0.985938, 0.9875, 0.989062, 0.990625, 0.992188, 0.992969, 0.99375,
    0.994531, 0.995313, 0.996094, 0.996484, 0.996875, 0.997266, 0.997656,
    0.998047, 0.998242, 0.998437, 0.998633, 0.998828, 0.999023, 0.999121,
    0.999219, 0.999316, 0.999414, 0.999512, 0.999561, 0.999609, 0.999658,
    0.999707, 0.999756, 0.99978, 0.999805, 0.999829, 0.999854, 0.999878,
    0.99989, 0.999902, 0.999915, 0.999927, 0.999939, 0.999945, 0.999951,
    0.999957, 0.999963, 0.999969, 0.999973, 0.999976, 0.999979, 0.999982,
    0.999985, 0.999986, 0.999988, 0.999989, 0.999991, 0.999992, 0.999993,
    0.999994, 0.999995, 0.999996, 0.999997, 0.999998, 0.999999, 1.0,
)
HDR_MAX_ONE_BY = 10_000_000.0
HDR_HEADER = "Value(ms)  Percentile  TotalCount  1/(1-Percentile)"


def format_duration(nanoseconds: float) -> str:
    """Format a nanosecond duration with a readable unit."""
    if nanoseconds < 1_000:
        return f"{nanoseconds:.0f}ns"
    if nanoseconds < 1_000_000:
        return f"{nanoseconds / 1_000:.3f}µs"
    if nanoseconds < 1_000_000_000:
        return f"{nanoseconds / 1_000_000:.3f}ms"
    seconds = nanoseconds / 1_000_000_000
    if seconds < 60:
        return f"{seconds:.3f}s"
    minutes, seconds = divmod(seconds, 60)
    return f"{int(minutes)}m{seconds:.3f}s"


def text_report(metrics: Metrics) -> str:
    """Technical summary of one run."""
    latencies = metrics.latencies
    lines = [
        f"{'Requests':<14}[total, rate, throughput]  "
        f"{metrics.requests}, {metrics.rate:.2f}, {metrics.throughput:.2f}",
        f"{'Duration':<14}[total, attack, wait]  "
        f"{format_duration(metrics.duration + metrics.wait)}, "
        f"{format_duration(metrics.duration)}, {format_duration(metrics.wait)}",
        f"{'Latencies':<14}[min, mean, 50, 90, 95, 99, 99.9, max]  "
        + ", ".join(
            format_duration(v)
            for v in (
                latencies.min, latencies.mean, latencies.p50, latencies.p90,
                latencies.p95, latencies.p99, latencies.p999, latencies.max,
            )
        ),
        f"{'Bytes In':<14}[total, mean]  {metrics.bytes_in.total}, {metrics.bytes_in.mean:.2f}",
        f"{'Bytes Out':<14}[total, mean]  {metrics.bytes_out.total}, {metrics.bytes_out.mean:.2f}",
        f"{'Success':<14}[ratio]  {metrics.success * 100:.2f}%",
        f"{'Status Codes':<14}[code:count]  "
        + "  ".join(f"{code}:{count}" for code, count in sorted(metrics.status_codes.items())),
        "Error Set:",
    ]
    lines.extend(metrics.errors)
    return "\n".join(lines) + "\n"


def hdr_plot_report(metrics: Metrics) -> str:
    """
    Percentile distribution in HDR histogram plot format.

    One header line followed by one row per quantile:
    latency (ms), quantile, count at quantile, 1/(1-quantile).
    """
    rows = [HDR_HEADER]
    for q in HDR_QUANTILES:
        value = metrics.percentile(q * 100) / NANOSECONDS_PER_MILLISECOND
        one_by = 1 / (1 - q) if q < 1.0 else HDR_MAX_ONE_BY
        count = int(q * metrics.requests + 0.5)
        rows.append(f"{value:f}  {q:f}  {count}  {one_by:f}")
    return "\n".join(rows) + "\n"


def print_text(endpoints: List[EndpointDetails], stream: Optional[TextIO] = None) -> None:
    """Write the explanatory preamble and a technical report per endpoint."""
    out = stream or sys.stdout
    rule = "=" * len(REPORT_TITLE)
    out.write(f"{rule}\n{REPORT_TITLE}\n{rule}\n\n")
    for paragraph in PREAMBLE:
        out.write(paragraph)

    for endpoint in endpoints:
        out.write("-" * 36 + "\n")
        out.write(f"API Endpoint: {endpoint.url}\n")
        out.write("-" * 36 + "\n")
        if endpoint.metrics is not None:
            out.write(text_report(endpoint.metrics))
        out.write("-" * 36 + "\n\n")

    out.write(ResultAggregator(endpoints).format_summary_table())
    out.write("\n" + CLOSING)


def print_json(endpoints: List[EndpointDetails], stream: Optional[TextIO] = None) -> None:
    """Write every endpoint with its metrics as one JSON array."""
    out = stream or sys.stdout
    out.write(json.dumps([endpoint.to_dict() for endpoint in endpoints]))
    out.write("\n")
