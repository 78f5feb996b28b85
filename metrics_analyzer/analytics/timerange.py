"""
Trailing time-window slicing of metric series.
"""

from typing import List, Mapping, Optional

from ..logging_config import get_logger
from ..patterns import DEFAULT_TIME_RANGE, TIME_RANGE_LOOKBACK_MS
from ..series import MetricPoint, MetricSeries

logger = get_logger(__name__)


class TimeRangeFilter:
    """Keeps the points of a series that fall inside a trailing window.

    Unrecognized range labels fall back to the default range instead of
    failing.
    """

    def __init__(
        self,
        lookbacks: Optional[Mapping[str, int]] = None,
        default_label: str = DEFAULT_TIME_RANGE,
    ):
        self.lookbacks = dict(lookbacks or TIME_RANGE_LOOKBACK_MS)
        self.default_label = default_label

    def resolve(self, range_label: Optional[str]) -> str:
        """Return ``range_label`` if known, else the default label."""
        if range_label in self.lookbacks:
            return range_label
        logger.debug(
            "Unrecognized time range %r, using %s", range_label, self.default_label
        )
        return self.default_label

    def lookback_ms(self, range_label: Optional[str]) -> int:
        return self.lookbacks[self.resolve(range_label)]

    def filter(
        self, series: MetricSeries, range_label: Optional[str], now_ms: int
    ) -> List[MetricPoint]:
        """Points with ``timestamp >= now_ms - lookback``, order preserved."""
        if not series:
            return []
        start = now_ms - self.lookback_ms(range_label)
        return [point for point in series if point.timestamp >= start]


_default_filter = TimeRangeFilter()


def filter_by_time_range(
    series: MetricSeries, range_label: Optional[str], now_ms: int
) -> List[MetricPoint]:
    """Filter ``series`` with the default range table."""
    return _default_filter.filter(series, range_label, now_ms)
