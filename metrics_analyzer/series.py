"""
Metric points, series and snapshots.

A snapshot maps metric keys to series of points ordered by ascending
timestamp. Snapshots are immutable: a refresh replaces the whole snapshot.
"""

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .exceptions import DataValidationError, SnapshotFormatError
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MetricPoint:
    """A single sample of a metric.

    Attributes:
        timestamp: Epoch milliseconds.
        value: Sampled value.
    """

    timestamp: int
    value: float


MetricSeries = Sequence[MetricPoint]

EMPTY_SERIES: Tuple[MetricPoint, ...] = ()


def is_chronological(series: MetricSeries) -> bool:
    """Return True if timestamps never decrease."""
    return all(
        series[i].timestamp <= series[i + 1].timestamp for i in range(len(series) - 1)
    )


def validate_series(series: MetricSeries, key: Optional[str] = None) -> None:
    """Raise DataValidationError unless the series is in chronological order."""
    for i in range(len(series) - 1):
        if series[i].timestamp > series[i + 1].timestamp:
            where = f" in '{key}'" if key else ""
            raise DataValidationError(
                f"Series out of order{where} at index {i + 1}: "
                f"{series[i + 1].timestamp} < {series[i].timestamp}"
            )


def values_of(series: MetricSeries) -> List[float]:
    """Extract the values of a series, preserving order."""
    return [point.value for point in series]


def summarize_series(series: MetricSeries) -> Optional[Dict[str, Any]]:
    """Compute summary statistics for a series.

    Returns:
        Dictionary with count, mean, std, min, max, median, p95 and p99,
        or None if the series is empty.
    """
    if not series:
        return None
    values = np.asarray(values_of(series), dtype=float)
    median, p95, p99 = np.percentile(values, [50, 95, 99])
    return {
        "count": int(values.size),
        "mean": float(np.mean(values)),
        "std": float(np.std(values)),
        "min": float(np.min(values)),
        "max": float(np.max(values)),
        "median": float(median),
        "p95": float(p95),
        "p99": float(p99),
    }


def _decode_point(raw: Any, key: str, file_path: Optional[str]) -> MetricPoint:
    if isinstance(raw, MetricPoint):
        return raw
    if not isinstance(raw, Mapping):
        raise SnapshotFormatError("Metric point is not an object", file_path=file_path, key=key)
    timestamp = raw.get("timestamp")
    value = raw.get("value")
    for name, field_value in (("timestamp", timestamp), ("value", value)):
        if isinstance(field_value, bool) or not isinstance(field_value, (int, float)):
            raise SnapshotFormatError(
                f"Metric point has no numeric '{name}'", file_path=file_path, key=key
            )
    return MetricPoint(int(timestamp), float(value))


class MetricSnapshot:
    """All known series as of one fetch.

    Reading a key that is not present yields an empty series.

    Attributes:
        fetched_at_ms: When the snapshot was taken, if known.
    """

    def __init__(
        self,
        series: Optional[Mapping[str, Sequence[MetricPoint]]] = None,
        fetched_at_ms: Optional[int] = None,
    ) -> None:
        frozen = {key: tuple(points) for key, points in (series or {}).items()}
        for key, points in frozen.items():
            assert is_chronological(points), f"series '{key}' is not in chronological order"
        self._series = MappingProxyType(frozen)
        self.fetched_at_ms = fetched_at_ms

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        fetched_at_ms: Optional[int] = None,
        file_path: Optional[str] = None,
    ) -> "MetricSnapshot":
        """Build a snapshot from the collector's JSON payload.

        Args:
            payload: Mapping of metric key to a list of
                ``{"timestamp": ms, "value": number}`` objects.
            fetched_at_ms: When the payload was fetched.
            file_path: Source file, used only for error messages.

        Raises:
            SnapshotFormatError: If the payload is structurally malformed or
                a series is not in chronological order.
        """
        if not isinstance(payload, Mapping):
            raise SnapshotFormatError("Snapshot payload is not an object", file_path=file_path)

        series = {}
        for key, raw_points in payload.items():
            if not isinstance(raw_points, (list, tuple)):
                raise SnapshotFormatError(
                    "Series is not a list of points", file_path=file_path, key=key
                )
            points = [_decode_point(raw, key, file_path) for raw in raw_points]
            try:
                validate_series(points, key)
            except DataValidationError as e:
                raise SnapshotFormatError(str(e), file_path=file_path, key=key) from e
            series[key] = points

        logger.debug("Decoded snapshot with %d series", len(series))
        return cls(series, fetched_at_ms=fetched_at_ms)

    def get(self, key: str) -> Tuple[MetricPoint, ...]:
        """Series for ``key``; empty when the key is absent."""
        return self._series.get(key, EMPTY_SERIES)

    def __getitem__(self, key: str) -> Tuple[MetricPoint, ...]:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._series

    def __iter__(self) -> Iterator[str]:
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)

    def keys(self):
        return self._series.keys()

    def items(self):
        return self._series.items()

    def has_data(self, key: str) -> bool:
        """True if ``key`` is present with at least one point."""
        return len(self.get(key)) > 0

    def keys_with_prefix(self, prefix: str) -> List[str]:
        """Keys starting with ``prefix``, in payload order."""
        return [key for key in self._series if key.startswith(prefix)]

    def latest_value(self, key: str, default: Optional[float] = None) -> Optional[float]:
        """Value of the most recent point of ``key``, or ``default``."""
        points = self.get(key)
        return points[-1].value if points else default


def load_snapshot(path: str, fetched_at_ms: Optional[int] = None) -> MetricSnapshot:
    """Load a snapshot from a JSON file.

    Raises:
        SnapshotFormatError: If the file is not valid JSON or not a snapshot.
    """
    logger.debug("Loading snapshot from %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Invalid JSON: {e}", file_path=path) from e
    return MetricSnapshot.from_payload(payload, fetched_at_ms=fetched_at_ms, file_path=path)
