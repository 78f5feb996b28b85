"""
Analyzer configuration.

Defaults mirror the dashboard the analytics were built for. Values can be
overridden from a plain mapping or a JSON file.
"""

import json
from dataclasses import dataclass, field, fields
from typing import Any, List, Mapping

from .analytics.histogram import Bucket, buckets_from_edges, is_contiguous
from .analytics.rates import Window, windows_from_table
from .exceptions import ConfigurationError
from .patterns import (
    DEFAULT_RATE_WINDOWS,
    DEFAULT_TICK_BUCKETS,
    DEFAULT_TIME_RANGE,
    LAG_SPIKE_METRIC,
    LAG_SPIKE_THRESHOLD_MS,
    LATENCY_METRIC,
    TIME_RANGE_LOOKBACK_MS,
)


@dataclass
class AnalyzerConfig:
    """Tunable parameters of the analytics views."""

    latency_metric: str = LATENCY_METRIC
    tick_buckets: List[Bucket] = field(default_factory=lambda: buckets_from_edges(DEFAULT_TICK_BUCKETS))
    rate_windows: List[Window] = field(default_factory=lambda: windows_from_table(DEFAULT_RATE_WINDOWS))
    lag_spike_metric: str = LAG_SPIKE_METRIC
    lag_spike_threshold_ms: float = LAG_SPIKE_THRESHOLD_MS
    correlation_tolerance_ms: int = 1000
    category_prefix: str = "entities."
    top_types: int = 10
    top_hotspots: int = 15
    hotspot_detail_types: int = 3
    default_time_range: str = DEFAULT_TIME_RANGE
    refresh_interval_ms: int = 5000

    def validate(self) -> "AnalyzerConfig":
        """Check every field; returns self so calls can be chained.

        Raises:
            ConfigurationError: On the first invalid value.
        """
        if not self.tick_buckets or not is_contiguous(self.tick_buckets):
            raise ConfigurationError("tick_buckets must be non-empty, ascending and gap-free")
        if not self.rate_windows:
            raise ConfigurationError("rate_windows must not be empty")
        durations = [window.duration_ms for window in self.rate_windows]
        if any(d <= 0 for d in durations) or durations != sorted(durations):
            raise ConfigurationError("rate_windows must have positive, ascending durations")
        if self.default_time_range not in TIME_RANGE_LOOKBACK_MS:
            raise ConfigurationError(f"Unknown default_time_range: {self.default_time_range!r}")
        for name in (
            "correlation_tolerance_ms",
            "top_types",
            "top_hotspots",
            "hotspot_detail_types",
            "refresh_interval_ms",
            "lag_spike_threshold_ms",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        return self

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "AnalyzerConfig":
        """Build a validated config from a mapping of overrides.

        ``tick_buckets`` takes ``[label, lower, upper]`` triples (``null``
        upper means +infinity) and ``rate_windows`` takes
        ``[label, duration_ms]`` pairs.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        overrides = dict(values)
        try:
            if "tick_buckets" in overrides:
                overrides["tick_buckets"] = buckets_from_edges(
                    (label, lower, float("inf") if upper is None else upper)
                    for label, lower, upper in overrides["tick_buckets"]
                )
            if "rate_windows" in overrides:
                overrides["rate_windows"] = windows_from_table(overrides["rate_windows"])
            return cls(**overrides).validate()
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed configuration value: {e}") from e


def load_config(path: str) -> AnalyzerConfig:
    """Load configuration overrides from a JSON file."""
    try:
        with open(path, encoding="utf-8") as f:
            values = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read configuration from {path}: {e}") from e
    if not isinstance(values, dict):
        raise ConfigurationError(f"Configuration in {path} is not an object")
    return AnalyzerConfig.from_dict(values)
