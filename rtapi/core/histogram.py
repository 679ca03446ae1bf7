"""Log-linear latency histogram with bounded relative error."""

import math
from bisect import bisect_left
from typing import Dict, List, Optional, Tuple

# 2048 sub-buckets per power of two: values below 2048 are exact and every
# other value is within 1/1024 of its bucket bounds (3 significant figures).
SUB_BUCKET_BITS = 11
SUB_BUCKET_COUNT = 1 << SUB_BUCKET_BITS
SUB_BUCKET_HALF_BITS = SUB_BUCKET_BITS - 1
SUB_BUCKET_HALF_COUNT = 1 << SUB_BUCKET_HALF_BITS
SUB_BUCKET_MASK = SUB_BUCKET_HALF_COUNT - 1


def counts_index(value: int) -> int:
    """Map a non-negative integer value to its bucket slot."""
    bucket = max(0, value.bit_length() - SUB_BUCKET_BITS)
    sub_bucket = value >> bucket
    if bucket == 0:
        return sub_bucket
    return ((bucket + 1) << SUB_BUCKET_HALF_BITS) + (sub_bucket - SUB_BUCKET_HALF_COUNT)


def lowest_equivalent_value(index: int) -> int:
    """Smallest value that maps to the given slot."""
    bucket = (index >> SUB_BUCKET_HALF_BITS) - 1
    sub_bucket = (index & SUB_BUCKET_MASK) + SUB_BUCKET_HALF_COUNT
    if bucket < 0:
        return index
    return sub_bucket << bucket


def highest_equivalent_value(index: int) -> int:
    """Largest value that maps to the given slot."""
    bucket = (index >> SUB_BUCKET_HALF_BITS) - 1
    if bucket <= 0:
        return lowest_equivalent_value(index)
    return lowest_equivalent_value(index) + (1 << bucket) - 1


class Histogram:
    """
    Records integer values (nanoseconds) into log-linear buckets.

    Recording is O(1) and memory depends only on the number of distinct
    buckets touched, never on the number of recorded values. Percentile
    queries are available once ``freeze()`` has been called.
    """

    def __init__(self):
        self.counts: Dict[int, int] = {}
        self.total_count = 0
        self.total_value = 0
        self.min_value: Optional[int] = None
        self.max_value: Optional[int] = None
        self._indices: Optional[List[int]] = None
        self._cumulative: Optional[List[int]] = None

    @property
    def frozen(self) -> bool:
        return self._indices is not None

    def record(self, value: int) -> None:
        """Record a single value."""
        if self.frozen:
            raise RuntimeError("Histogram is frozen")
        if value < 0:
            raise ValueError(f"Cannot record negative value {value}")
        index = counts_index(value)
        self.counts[index] = self.counts.get(index, 0) + 1
        self.total_count += 1
        self.total_value += value
        if self.min_value is None or value < self.min_value:
            self.min_value = value
        if self.max_value is None or value > self.max_value:
            self.max_value = value

    def freeze(self) -> "Histogram":
        """Finalize the histogram; no values can be recorded afterwards."""
        if self.frozen:
            return self
        indices = sorted(self.counts)
        cumulative = []
        running = 0
        for index in indices:
            running += self.counts[index]
            cumulative.append(running)
        self._indices = indices
        self._cumulative = cumulative
        return self

    @property
    def mean(self) -> float:
        if not self.total_count:
            return 0.0
        return self.total_value / self.total_count

    def value_at_percentile(self, percentile: float) -> int:
        """
        Return the value at the given percentile (0-100).

        The result is the upper bound of the bucket holding the requested
        rank, clamped to the recorded min and max.
        """
        if not self.frozen:
            raise RuntimeError("Histogram must be frozen before querying percentiles")
        if not 0 <= percentile <= 100:
            raise ValueError(f"Percentile must be within [0, 100], got {percentile}")
        if not self.total_count:
            return 0
        if percentile == 0:
            return self.min_value

        rank = max(1, math.ceil(percentile / 100 * self.total_count))
        position = bisect_left(self._cumulative, rank)
        value = highest_equivalent_value(self._indices[position])
        return max(self.min_value, min(value, self.max_value))

    def iter_buckets(self) -> List[Tuple[int, int]]:
        """(lowest equivalent value, count) pairs in ascending order."""
        return [(lowest_equivalent_value(i), self.counts[i]) for i in sorted(self.counts)]

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_count": self.total_count,
            "total_value": self.total_value,
            "min": self.min_value,
            "max": self.max_value,
            "buckets": [[value, count] for value, count in self.iter_buckets()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Histogram":
        """Rebuild a frozen histogram from ``to_dict()`` output."""
        histogram = cls()
        for value, count in data.get("buckets", []):
            index = counts_index(int(value))
            histogram.counts[index] = histogram.counts.get(index, 0) + int(count)
        histogram.total_count = int(data.get("total_count", 0))
        histogram.total_value = int(data.get("total_value", 0))
        histogram.min_value = data.get("min")
        histogram.max_value = data.get("max")
        return histogram.freeze()
