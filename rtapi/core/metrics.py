"""Latency statistics aggregated over one attack."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .histogram import Histogram

NANOSECONDS_PER_SECOND = 1_000_000_000
NANOSECONDS_PER_MILLISECOND = 1_000_000


@dataclass
class Result:
    """Outcome of a single request issued by the attacker."""

    seq: int
    code: int
    timestamp: float  # epoch seconds when the request was sent
    latency: int  # nanoseconds
    bytes_out: int = 0
    bytes_in: int = 0
    error: str = ""
    method: str = ""
    url: str = ""

    @property
    def success(self) -> bool:
        return 200 <= self.code < 400


@dataclass
class LatencyMetrics:
    """Latency summary in nanoseconds."""

    total: int = 0
    mean: int = 0
    p50: int = 0
    p90: int = 0
    p95: int = 0
    p99: int = 0
    p999: int = 0
    max: int = 0
    min: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "mean": self.mean,
            "50th": self.p50,
            "90th": self.p90,
            "95th": self.p95,
            "99th": self.p99,
            "99.9th": self.p999,
            "max": self.max,
            "min": self.min,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LatencyMetrics":
        return cls(
            total=int(data.get("total", 0)),
            mean=int(data.get("mean", 0)),
            p50=int(data.get("50th", 0)),
            p90=int(data.get("90th", 0)),
            p95=int(data.get("95th", 0)),
            p99=int(data.get("99th", 0)),
            p999=int(data.get("99.9th", 0)),
            max=int(data.get("max", 0)),
            min=int(data.get("min", 0)),
        )


@dataclass
class ByteMetrics:
    """Byte count summary."""

    total: int = 0
    mean: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "mean": self.mean}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ByteMetrics":
        return cls(total=int(data.get("total", 0)), mean=float(data.get("mean", 0.0)))


@dataclass
class Metrics:
    """
    Statistics for one attack against one endpoint.

    Results are folded in with ``add()``; ``close()`` computes the summary
    fields and freezes the aggregate. Nothing may be added after closing.
    """

    latencies: LatencyMetrics = field(default_factory=LatencyMetrics)
    histogram: Histogram = field(default_factory=Histogram, repr=False, compare=False)
    bytes_in: ByteMetrics = field(default_factory=ByteMetrics)
    bytes_out: ByteMetrics = field(default_factory=ByteMetrics)

    # Timing (epoch seconds)
    earliest: Optional[float] = None
    latest: Optional[float] = None
    end: Optional[float] = None

    # Durations (nanoseconds)
    duration: int = 0
    wait: int = 0

    requests: int = 0
    success_count: int = 0
    rate: float = 0.0
    throughput: float = 0.0
    success: float = 0.0

    status_codes: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    closed: bool = field(default=False, repr=False)
    _errors_seen: Set[str] = field(default_factory=set, repr=False, compare=False)

    @property
    def errored(self) -> int:
        return self.requests - self.success_count

    def add(self, result: Result) -> None:
        """Fold one request outcome into the aggregate."""
        if self.closed:
            raise RuntimeError("Cannot add results to closed metrics")

        self.requests += 1
        self.status_codes[str(result.code)] = self.status_codes.get(str(result.code), 0) + 1
        self.bytes_out.total += result.bytes_out
        self.bytes_in.total += result.bytes_in
        self.histogram.record(result.latency)

        if self.earliest is None or result.timestamp < self.earliest:
            self.earliest = result.timestamp
        if self.latest is None or result.timestamp > self.latest:
            self.latest = result.timestamp
        finished = result.timestamp + result.latency / NANOSECONDS_PER_SECOND
        if self.end is None or finished > self.end:
            self.end = finished

        if result.success:
            self.success_count += 1
        if result.error and result.error not in self._errors_seen:
            self._errors_seen.add(result.error)
            self.errors.append(result.error)

    def close(self) -> "Metrics":
        """Compute summary fields and freeze the aggregate."""
        if self.closed:
            return self

        histogram = self.histogram.freeze()
        self.latencies = LatencyMetrics(
            total=histogram.total_value,
            mean=round(histogram.mean),
            p50=histogram.value_at_percentile(50),
            p90=histogram.value_at_percentile(90),
            p95=histogram.value_at_percentile(95),
            p99=histogram.value_at_percentile(99),
            p999=histogram.value_at_percentile(99.9),
            max=histogram.max_value or 0,
            min=histogram.min_value or 0,
        )

        if self.requests:
            self.bytes_in.mean = self.bytes_in.total / self.requests
            self.bytes_out.mean = self.bytes_out.total / self.requests
            self.success = self.success_count / self.requests
            self.duration = round((self.latest - self.earliest) * NANOSECONDS_PER_SECOND)
            self.wait = round((self.end - self.latest) * NANOSECONDS_PER_SECOND)

        if self.duration > 0:
            self.rate = self.requests / (self.duration / NANOSECONDS_PER_SECOND)
        elapsed = self.duration + self.wait
        if elapsed > 0:
            self.throughput = self.success_count / (elapsed / NANOSECONDS_PER_SECOND)

        self.closed = True
        return self

    def percentile(self, percentile: float) -> int:
        """Latency (ns) at an arbitrary percentile in [0, 100]."""
        if not self.closed:
            raise RuntimeError("Metrics must be closed before querying percentiles")
        return self.histogram.value_at_percentile(percentile)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "latencies": self.latencies.to_dict(),
            "bytes_in": self.bytes_in.to_dict(),
            "bytes_out": self.bytes_out.to_dict(),
            "earliest": self.earliest,
            "latest": self.latest,
            "end": self.end,
            "duration": self.duration,
            "wait": self.wait,
            "requests": self.requests,
            "rate": self.rate,
            "throughput": self.throughput,
            "success": self.success,
            "success_count": self.success_count,
            "errored": self.errored,
            "status_codes": dict(self.status_codes),
            "errors": list(self.errors),
            "histogram": self.histogram.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metrics":
        """Rebuild closed metrics from ``to_dict()`` output."""
        return cls(
            latencies=LatencyMetrics.from_dict(data.get("latencies", {})),
            histogram=Histogram.from_dict(data.get("histogram", {})),
            bytes_in=ByteMetrics.from_dict(data.get("bytes_in", {})),
            bytes_out=ByteMetrics.from_dict(data.get("bytes_out", {})),
            earliest=data.get("earliest"),
            latest=data.get("latest"),
            end=data.get("end"),
            duration=int(data.get("duration", 0)),
            wait=int(data.get("wait", 0)),
            requests=int(data.get("requests", 0)),
            success_count=int(data.get("success_count", 0)),
            rate=float(data.get("rate", 0.0)),
            throughput=float(data.get("throughput", 0.0)),
            success=float(data.get("success", 0.0)),
            status_codes={str(k): int(v) for k, v in data.get("status_codes", {}).items()},
            errors=list(data.get("errors", [])),
            closed=True,
        )
