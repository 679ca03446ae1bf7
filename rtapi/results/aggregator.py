"""Per-endpoint summary table with a real-time verdict."""

import pandas as pd
from typing import List, Optional

from ..core.metrics import NANOSECONDS_PER_MILLISECOND
from ..core.models import EndpointDetails
from ..core.presets import REAL_TIME_THRESHOLD_MS


def is_real_time(endpoint: EndpointDetails) -> bool:
    """Whether the endpoint's p99 latency is within the real-time threshold."""
    if endpoint.metrics is None or not endpoint.metrics.requests:
        return False
    return endpoint.metrics.latencies.p99 / NANOSECONDS_PER_MILLISECOND <= REAL_TIME_THRESHOLD_MS


class ResultAggregator:
    """Aggregates measured endpoints into a table for the text report."""

    def __init__(self, endpoints: Optional[List[EndpointDetails]] = None):
        self.endpoints: List[EndpointDetails] = list(endpoints or [])

    def to_dataframe(self) -> pd.DataFrame:
        """Convert measured endpoints to a pandas DataFrame."""
        data = []
        for endpoint in self.endpoints:
            metrics = endpoint.metrics
            if metrics is None:
                continue
            latencies = metrics.latencies
            data.append({
                "Endpoint": endpoint.url,
                "Requests": metrics.requests,
                "Success%": f"{metrics.success * 100:.2f}",
                "Rate": f"{metrics.rate:.2f}",
                "P50_ms": f"{latencies.p50 / NANOSECONDS_PER_MILLISECOND:.3f}",
                "P99_ms": f"{latencies.p99 / NANOSECONDS_PER_MILLISECOND:.3f}",
                "Max_ms": f"{latencies.max / NANOSECONDS_PER_MILLISECOND:.3f}",
                "Real-Time": "yes" if is_real_time(endpoint) else "no",
            })
        return pd.DataFrame(data)

    def format_summary_table(self, title: Optional[str] = None) -> str:
        """Render the summary table as text."""
        df = self.to_dataframe()
        if df.empty:
            return "No results to display.\n"

        width = 100
        lines = [
            "=" * width,
            (title or "REAL-TIME SUMMARY").center(width).rstrip(),
            f"(p99 latency of {REAL_TIME_THRESHOLD_MS}ms or less counts as real time)".center(width).rstrip(),
            "=" * width,
            df.to_string(index=False),
            "=" * width,
        ]
        return "\n".join(lines) + "\n"
