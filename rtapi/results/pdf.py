"""PDF report with narrative text and the latency graph."""

import io
import logging
import textwrap
from typing import List, Tuple

import aiofiles
import matplotlib

matplotlib.use("Agg")

import matplotlib.image as mpimg  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.backends.backend_pdf import PdfPages  # noqa: E402

from ..core.errors import RenderError  # noqa: E402
from ..core.models import EndpointDetails  # noqa: E402
from ..core.presets import REAL_TIME_THRESHOLD_MS  # noqa: E402
from .charts import generate_latency_graph  # noqa: E402
from .reporters import REPORT_TITLE  # noqa: E402

logger = logging.getLogger(__name__)

# A4 portrait
PAGE_SIZE_INCHES = (8.27, 11.69)
MARGIN = 0.1
LINE_SPACING = 1.3
WRAP_WIDTH = {16: 60, 11: 88, 10: 96}

# (text, font size, bold)
INTRODUCTION: Tuple[Tuple[str, int, bool], ...] = (
    (REPORT_TITLE, 16, True),
    ("Why API Performance Matters", 11, True),
    (
        "APIs sit at the heart of modern applications. When switching to a "
        "competitor takes a single click, the responsiveness of every API call "
        "shapes how users feel about a product, and a faster API is often the "
        "reason developers pick one service over another.",
        10,
        False,
    ),
    (
        f"We define a real-time API as one that answers end-to-end calls in "
        f"{REAL_TIME_THRESHOLD_MS}ms or less at the 99th percentile. Latency here "
        "is the time from the moment a request is sent until its response has "
        "been fully received.",
        10,
        False,
    ),
    ("Your API Performance", 11, True),
    (
        "We ran an HTTP benchmark with the query parameters you specified against "
        "each endpoint you listed. The graph below plots latency against "
        "percentile. Ideally the latency at the 99th percentile (99% on the graph) "
        f"stays under the {REAL_TIME_THRESHOLD_MS}ms line.",
        10,
        False,
    ),
)

CONCLUSION: Tuple[Tuple[str, int, bool], ...] = (
    (
        f"Is your API's latency below {REAL_TIME_THRESHOLD_MS}ms? If not, the "
        "tail of the curve shows where to start looking.",
        10,
        False,
    ),
)


def _write_paragraphs(fig, paragraphs, top: float) -> float:
    """Lay paragraphs out top-down; returns the y position below the last one."""
    page_height = PAGE_SIZE_INCHES[1]
    y = top
    for text, size, bold in paragraphs:
        wrapped = textwrap.fill(text, width=WRAP_WIDTH.get(size, 96))
        fig.text(
            MARGIN,
            y,
            wrapped,
            fontsize=size,
            fontweight="bold" if bold else "normal",
            va="top",
            linespacing=LINE_SPACING,
        )
        lines = wrapped.count("\n") + 1
        y -= (lines * size * LINE_SPACING + size) / 72 / page_height
    return y


def render_pdf(endpoints: List[EndpointDetails]) -> bytes:
    """
    Build the one-page PDF report in memory.

    Raises:
        RenderError: If the graph or the document cannot be produced
    """
    graph = generate_latency_graph(endpoints)

    fig = None
    try:
        image = mpimg.imread(io.BytesIO(graph), format="png")
        fig = plt.figure(figsize=PAGE_SIZE_INCHES)

        y = _write_paragraphs(fig, INTRODUCTION, top=1 - MARGIN * 0.8)
        graph_height = 0.45
        graph_bottom = y - graph_height
        axes = fig.add_axes([0.2, graph_bottom, 0.6, graph_height])
        axes.imshow(image)
        axes.axis("off")
        _write_paragraphs(fig, CONCLUSION, top=graph_bottom - 0.01)

        buffer = io.BytesIO()
        with PdfPages(buffer) as pdf:
            pdf.savefig(fig)
    except (ValueError, RuntimeError, OSError) as e:
        raise RenderError(f"Could not render PDF report: {e}") from e
    finally:
        if fig is not None:
            plt.close(fig)

    return buffer.getvalue()


async def create_pdf(endpoints: List[EndpointDetails], output: str) -> None:
    """Render the PDF report and write it to ``output``."""
    document = render_pdf(endpoints)
    try:
        async with aiofiles.open(output, "wb") as f:
            await f.write(document)
    except OSError as e:
        raise RenderError(f"Could not write PDF report to {output}: {e}") from e

    logger.info(f"PDF report generated successfully: {output}")
