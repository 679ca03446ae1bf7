"""Core latency measurement components."""

from .attacker import Attacker, Target, query_endpoint
from .config import load_endpoints, load_splunk_settings, parse_duration
from .errors import ConfigError, EngineError, ForwardError, RenderError, RtapiError
from .metrics import Metrics, Result
from .models import EndpointDetails, EndpointQuery, EndpointTarget, SplunkEvent, SplunkSettings
from .runner import EndpointRunner

__all__ = [
    "Attacker",
    "Target",
    "query_endpoint",
    "load_endpoints",
    "load_splunk_settings",
    "parse_duration",
    "ConfigError",
    "EngineError",
    "ForwardError",
    "RenderError",
    "RtapiError",
    "Metrics",
    "Result",
    "EndpointDetails",
    "EndpointQuery",
    "EndpointTarget",
    "SplunkEvent",
    "SplunkSettings",
    "EndpointRunner",
]
