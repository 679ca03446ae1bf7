"""Report emitters and the latency graph."""

from .charts import generate_latency_graph, percentile_to_x
from .pdf import create_pdf
from .reporters import print_json, print_text
from .splunk import send_to_splunk

__all__ = [
    "generate_latency_graph",
    "percentile_to_x",
    "create_pdf",
    "print_json",
    "print_text",
    "send_to_splunk",
]
