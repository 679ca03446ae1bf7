"""Fixed defaults and thresholds shared across rtapi."""

from types import MappingProxyType

# Query parameters applied to an endpoint when its input omits them
DEFAULT_QUERY_PARAMETERS = MappingProxyType(
    {
        "threads": 2,
        "max_threads": 2,
        "connections": 10,
        "duration": "10s",
        "request_rate": 500,
    }
)

DEFAULT_METHOD = "GET"

# p99 latency bar an endpoint must meet to count as real time
REAL_TIME_THRESHOLD_MS = 30

# Engine settings (same for every endpoint)
ATTACK_DEFAULTS = MappingProxyType(
    {
        "request_timeout_seconds": 30,
        "user_agent": "rtapi",
    }
)

# Progress bar refresh interval
PROGRESS_TICK_SECONDS = 0.1

SPLUNK_AUTHKEY_ENV = "RTAPI_SPLUNK_AUTHKEY"
