"""Load endpoint and forwarding configuration from JSON or YAML input."""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .metrics import Metrics
from .models import EndpointDetails, EndpointQuery, EndpointTarget, SplunkSettings
from .presets import DEFAULT_METHOD, DEFAULT_QUERY_PARAMETERS, SPLUNK_AUTHKEY_ENV

logger = logging.getLogger(__name__)

JSON_EXTENSIONS = {".json"}
YAML_EXTENSIONS = {".yml", ".yaml"}

_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> int:
    """
    Parse a duration such as ``"10s"``, ``"1m30s"`` or ``"250ms"``.

    Returns:
        Duration in nanoseconds

    Raises:
        ConfigError: If the string is malformed or not positive
    """
    if not isinstance(text, str) or not text.strip():
        raise ConfigError(f"Invalid duration: {text!r}")

    remaining = text.strip()
    if remaining.startswith("+"):
        remaining = remaining[1:]

    total = 0.0
    position = 0
    while position < len(remaining):
        match = _DURATION_PART.match(remaining, position)
        if not match:
            raise ConfigError(f"Invalid duration: {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    nanoseconds = int(round(total))
    if nanoseconds <= 0:
        raise ConfigError(f"Duration must be positive: {text!r}")
    return nanoseconds


def check_sources(
    file: Optional[str],
    data: Optional[str],
    outputs: List[bool],
) -> None:
    """
    Validate the input/output selection before anything is loaded.

    Raises:
        ConfigError: If the input selection is missing, ambiguous or of an
            unknown type, or if no output is selected
    """
    if not file and not data:
        raise ConfigError("No data found: use --file or --data")
    if file and data:
        raise ConfigError("Please only use either file or data as your input source")
    if file:
        _file_kind(file)
    if not any(outputs):
        raise ConfigError("You did not specify any type of output")


def _file_kind(file: str) -> str:
    suffix = Path(file).suffix
    if suffix.lower() in JSON_EXTENSIONS:
        return "json"
    if suffix.lower() in YAML_EXTENSIONS:
        return "yaml"
    raise ConfigError(f"Unsupported file type '{suffix}' for {file}: use .json, .yml or .yaml")


def _decode(text: str, kind: str, origin: str) -> Any:
    try:
        if kind == "json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse {origin} as {kind.upper()}: {e}") from e


def _read_file(file: str) -> Any:
    path = Path(file)
    kind = _file_kind(file)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not read {file}: {e}") from e
    return _decode(text, kind, str(path))


def _load_raw(file: Optional[str] = None, data: Optional[str] = None) -> Any:
    if file and data:
        raise ConfigError("Please only use either file or data as your input source")
    if file:
        return _read_file(file)
    if data:
        # YAML is a superset of JSON, so inline JSON parses the same way
        return _decode(data, "yaml", "inline data")
    raise ConfigError("No data found: use --file or --data")


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def _parse_header(raw: Any) -> Dict[str, List[str]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"header must be a mapping, got {type(raw).__name__}")

    header: Dict[str, List[str]] = {}
    for name, values in raw.items():
        if values is None:
            header[str(name)] = []
        elif isinstance(values, (list, tuple)):
            header[str(name)] = [str(v) for v in values]
        else:
            header[str(name)] = [str(values)]
    return header


def _parse_target(raw: Any, index: int) -> EndpointTarget:
    if not isinstance(raw, dict):
        raise ConfigError(f"Endpoint {index}: 'target' must be a mapping")
    url = raw.get("url")
    if not url or not isinstance(url, str):
        raise ConfigError(f"Endpoint {index}: target.url is required")

    body = raw.get("body")
    return EndpointTarget(
        url=url,
        method=str(raw.get("method") or DEFAULT_METHOD).upper(),
        body="" if body is None else str(body),
        header=_parse_header(raw.get("header")),
    )


def _parse_query(raw: Any, index: int) -> EndpointQuery:
    """Apply defaults only to the keys that are absent from the input."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Endpoint {index}: 'query_parameters' must be a mapping")

    values = dict(DEFAULT_QUERY_PARAMETERS)
    values.update({key: raw[key] for key in DEFAULT_QUERY_PARAMETERS if key in raw})

    unknown = set(raw) - set(DEFAULT_QUERY_PARAMETERS)
    if unknown:
        logger.warning(f"Endpoint {index}: ignoring unknown query parameters {sorted(unknown)}")

    query = EndpointQuery(
        threads=_as_int(values["threads"], "threads"),
        max_threads=_as_int(values["max_threads"], "max_threads"),
        connections=_as_int(values["connections"], "connections"),
        duration=str(values["duration"]),
        request_rate=_as_int(values["request_rate"], "request_rate"),
    )

    if query.threads > query.max_threads:
        raise ConfigError(
            f"Endpoint {index}: threads ({query.threads}) must not exceed "
            f"max_threads ({query.max_threads})"
        )
    if query.max_threads < 1:
        raise ConfigError(f"Endpoint {index}: max_threads must be at least 1, got {query.max_threads}")
    if query.connections < 1:
        raise ConfigError(f"Endpoint {index}: connections must be at least 1, got {query.connections}")
    if query.request_rate < 0:
        raise ConfigError(f"Endpoint {index}: request_rate must not be negative")
    return query


def endpoint_from_record(record: Any, index: int = 0, with_metrics: bool = False) -> EndpointDetails:
    """
    Build one EndpointDetails from a decoded input record.

    A saved ``metrics`` entry is restored only when ``with_metrics`` is set;
    otherwise it is ignored so the endpoint can be measured again.
    """
    if not isinstance(record, dict):
        raise ConfigError(f"Endpoint {index}: expected a mapping, got {type(record).__name__}")

    endpoint = EndpointDetails(
        target=_parse_target(record.get("target"), index),
        query=_parse_query(record.get("query_parameters"), index),
    )
    if with_metrics and record.get("metrics"):
        endpoint.attach_metrics(Metrics.from_dict(record["metrics"]))
    return endpoint


def load_endpoints(
    file: Optional[str] = None,
    data: Optional[str] = None,
    with_metrics: bool = False,
) -> List[EndpointDetails]:
    """
    Load the endpoint list from a file or an inline string.

    Args:
        file: Path to a .json, .yml or .yaml file
        data: Inline JSON (or YAML) string
        with_metrics: Restore metrics saved by a previous run

    Returns:
        Endpoints in input order, with unset query parameters defaulted

    Raises:
        ConfigError: On missing, contradictory or malformed input
    """
    raw = _load_raw(file, data)
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise ConfigError("Endpoint configuration must be a list of endpoints")

    endpoints = [endpoint_from_record(record, i, with_metrics) for i, record in enumerate(raw)]
    logger.info(f"Loaded {len(endpoints)} endpoint(s)")
    return endpoints


def load_splunk_settings(source: str) -> SplunkSettings:
    """
    Load forwarding settings from a file path or an inline JSON string.

    A missing ``authkey`` falls back to the RTAPI_SPLUNK_AUTHKEY environment
    variable.
    """
    if source.lstrip().startswith("{"):
        raw = _load_raw(data=source)
    else:
        raw = _load_raw(file=source)

    if not isinstance(raw, dict):
        raise ConfigError("Splunk settings must be a mapping")
    url = raw.get("url")
    if not url or not isinstance(url, str):
        raise ConfigError("Splunk settings require a url")

    return SplunkSettings(
        url=url,
        authkey=str(raw.get("authkey") or os.environ.get(SPLUNK_AUTHKEY_ENV, "")),
        source=str(raw.get("source") or ""),
    )
