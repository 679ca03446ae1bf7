"""Data models for endpoints, their run parameters and forwarded events."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .metrics import Metrics
from .presets import DEFAULT_METHOD, DEFAULT_QUERY_PARAMETERS


@dataclass
class EndpointTarget:
    """
    The single static request sent to an endpoint.

    ``body`` is text and is sent UTF-8 encoded, so binary payloads cannot be
    expressed.
    """

    url: str
    method: str = DEFAULT_METHOD
    body: str = ""
    header: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def payload(self) -> bytes:
        return self.body.encode("utf-8")

    def header_items(self) -> List[tuple]:
        """Flatten the multi-valued header mapping into (name, value) pairs."""
        return [(name, value) for name, values in self.header.items() for value in values]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "url": self.url,
            "body": self.body,
            "header": {name: list(values) for name, values in self.header.items()},
        }


@dataclass
class EndpointQuery:
    """Run parameters for one endpoint."""

    threads: int = DEFAULT_QUERY_PARAMETERS["threads"]
    max_threads: int = DEFAULT_QUERY_PARAMETERS["max_threads"]
    connections: int = DEFAULT_QUERY_PARAMETERS["connections"]
    duration: str = DEFAULT_QUERY_PARAMETERS["duration"]
    request_rate: int = DEFAULT_QUERY_PARAMETERS["request_rate"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threads": self.threads,
            "max_threads": self.max_threads,
            "connections": self.connections,
            "duration": self.duration,
            "request_rate": self.request_rate,
        }


@dataclass
class EndpointDetails:
    """An endpoint under measurement, plus its metrics once it has been run."""

    target: EndpointTarget
    query: EndpointQuery = field(default_factory=EndpointQuery)
    metrics: Optional[Metrics] = None

    @property
    def url(self) -> str:
        return self.target.url

    def attach_metrics(self, metrics: Metrics) -> None:
        """Attach the result of this endpoint's run. Allowed exactly once."""
        if self.metrics is not None:
            raise RuntimeError(f"Metrics already attached for {self.url}")
        self.metrics = metrics

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "target": self.target.to_dict(),
            "query_parameters": self.query.to_dict(),
            "metrics": self.metrics.to_dict() if self.metrics is not None else None,
        }


@dataclass
class SplunkSettings:
    """Destination of forwarded events."""

    url: str
    authkey: str = ""
    source: str = ""


@dataclass
class SplunkEvent:
    """One endpoint's results wrapped for the forwarding sink."""

    time: int
    host: str
    source: str
    event: EndpointDetails

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "host": self.host,
            "source": self.source,
            "event": self.event.to_dict(),
        }
