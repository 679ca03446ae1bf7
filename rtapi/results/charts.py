"""Latency-by-percentile graph with real-time threshold annotations."""

import io
import logging
from typing import List, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.ticker import NullLocator  # noqa: E402

from ..core.errors import RenderError  # noqa: E402
from ..core.metrics import NANOSECONDS_PER_MILLISECOND  # noqa: E402
from ..core.models import EndpointDetails  # noqa: E402
from ..core.presets import REAL_TIME_THRESHOLD_MS  # noqa: E402
from .reporters import HDR_MAX_ONE_BY, hdr_plot_report  # noqa: E402

logger = logging.getLogger(__name__)

X_TICKS: Tuple[Tuple[float, str], ...] = (
    (1, "0%"),
    (10, "90%"),
    (100, "99%"),
    (1000, "99.9%"),
    (10000, "99.99%"),
    (100000, "99.999%"),
    (1000000, "99.9999%"),
    (10000000, "99.99999%"),
)
P99_X = 100
Y_TICK_STEP_MS = 50

# Index 0 is reserved for threshold and p99 annotations
COLORS = ("tab:red", "tab:green", "tab:blue", "tab:orange", "tab:purple", "tab:brown", "tab:pink", "tab:cyan")
MARKERS = ("o", "s", "^", "D", "v", "*", "x", "P")
DASHES = ("-", "--", "-.", ":", (0, (5, 1)), (0, (3, 1, 1, 1, 1, 1)), (0, (1, 3)), (0, (8, 2, 1, 2)))

# 25cm x 25cm
FIGURE_SIZE_INCHES = 25 / 2.54
FIGURE_DPI = 100


def percentile_to_x(percentile: float) -> float:
    """
    Map a percentile (0-100) onto the graph's X axis.

    ``x = 100 / (100 - p)`` spaces tail percentiles evenly on a log scale:
    90 -> 10, 99 -> 100, 99.9 -> 1000. 100 maps to the axis cap.
    """
    if percentile < 0 or percentile > 100:
        raise ValueError(f"Percentile must be within [0, 100], got {percentile}")
    if percentile >= 100:
        return HDR_MAX_ONE_BY
    return 100 / (100 - percentile)


def y_ticks(max_ms: float) -> List[Tuple[float, str]]:
    """Tick every 50ms from 0 to max_ms plus the real-time threshold."""
    ticks = [(float(ms), f"{ms}ms") for ms in range(0, int(max_ms) + 1, Y_TICK_STEP_MS)]
    ticks.append((float(REAL_TIME_THRESHOLD_MS), f"Real-Time -- {REAL_TIME_THRESHOLD_MS}ms"))
    return ticks


def parse_hdr_plot(text: str) -> List[Tuple[float, float]]:
    """
    Turn HDR plot report text into (x, latency_ms) points.

    The header line is dropped. Rows without exactly four numeric fields are
    skipped.
    """
    points = []
    for line in text.splitlines()[1:]:
        fields = line.split()
        if len(fields) != 4:
            continue
        try:
            points.append((float(fields[3]), float(fields[0])))
        except ValueError:
            continue
    return points


def series_style(index: int) -> dict:
    """Color, marker and dash style for the index-th endpoint; slot 0 is never used."""
    slot = 1 + index % (len(COLORS) - 1)
    return {
        "color": COLORS[slot],
        "marker": MARKERS[slot],
        "linestyle": DASHES[slot],
    }


def _y_limit(series: Sequence[Sequence[Tuple[float, float]]], p99s: Sequence[float]) -> float:
    highest = float(REAL_TIME_THRESHOLD_MS)
    for points in series:
        for _, y in points:
            highest = max(highest, y)
    for p99 in p99s:
        highest = max(highest, p99)
    return highest * 1.1


def generate_latency_graph(endpoints: List[EndpointDetails]) -> bytes:
    """
    Plot latency against percentile for every measured endpoint.

    Returns:
        PNG image bytes

    Raises:
        RenderError: If the graph cannot be drawn
    """
    measured = [e for e in endpoints if e.metrics is not None]
    series = [parse_hdr_plot(hdr_plot_report(e.metrics)) for e in measured]
    p99s = [e.metrics.latencies.p99 / NANOSECONDS_PER_MILLISECOND for e in measured]
    y_max = _y_limit(series, p99s)
    x_min, x_max = X_TICKS[0][0], X_TICKS[-1][0]

    fig = None
    try:
        fig, ax = plt.subplots(figsize=(FIGURE_SIZE_INCHES, FIGURE_SIZE_INCHES), dpi=FIGURE_DPI)

        ax.set_xscale("log")
        ax.set_xlim(x_min, x_max)
        ax.set_xticks([value for value, _ in X_TICKS])
        ax.set_xticklabels([label for _, label in X_TICKS])
        ax.xaxis.set_minor_locator(NullLocator())
        ax.set_xlabel("Percentile (%)", fontsize=15)

        ax.set_ylim(0, y_max)
        ticks = y_ticks(y_max)
        ax.set_yticks([value for value, _ in ticks])
        ax.set_yticklabels([label for _, label in ticks])
        ax.set_ylabel("Latency (ms)", fontsize=15)
        ax.grid(True, alpha=0.3)

        for i, (endpoint, points) in enumerate(zip(measured, series)):
            style = series_style(i)
            ax.plot(
                [x for x, _ in points],
                [y for _, y in points],
                label=endpoint.url,
                linewidth=1.5,
                markersize=5,
                **style,
            )

        for p99 in p99s:
            ax.plot([x_min, P99_X], [p99, p99], color=COLORS[0], linewidth=2, linestyle=(0, (4, 4)))
            ax.annotate(
                f"{p99:.3f}ms @ 99%",
                (P99_X, p99),
                textcoords="offset points",
                xytext=(5, 5),
                color=COLORS[0],
                fontsize=14,
            )

        ax.axhline(REAL_TIME_THRESHOLD_MS, color="black", linewidth=1, linestyle=(8, (4, 4)))
        ax.axvline(P99_X, color="black", linewidth=1, linestyle=(8, (4, 4)))

        if measured:
            ax.legend(loc="upper left")

        fig.tight_layout()
        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", dpi=FIGURE_DPI)
    except (ValueError, RuntimeError, OSError) as e:
        raise RenderError(f"Could not render latency graph: {e}") from e
    finally:
        if fig is not None:
            plt.close(fig)

    logger.info(f"Rendered latency graph for {len(measured)} endpoint(s)")
    return buffer.getvalue()
