"""
Correlation of two metric series aligned on timestamps.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import InsufficientDataError
from ..logging_config import get_logger
from ..series import MetricSeries

logger = get_logger(__name__)

DEFAULT_TOLERANCE_MS = 1000
MIN_PAIRS = 2


@dataclass
class CorrelationResult:
    """Aligned value pairs and their Pearson coefficient.

    ``coefficient`` is None when there are fewer than two pairs or when
    either side has zero variance.
    """

    pairs: List[Tuple[float, float]] = field(default_factory=list)
    coefficient: Optional[float] = None

    @property
    def is_defined(self) -> bool:
        return self.coefficient is not None

    def require_coefficient(self) -> float:
        """Return the coefficient or raise InsufficientDataError."""
        if self.coefficient is None:
            raise InsufficientDataError(
                "Correlation is undefined for this data",
                required=MIN_PAIRS,
                actual=len(self.pairs),
            )
        return self.coefficient


def pearson(pairs: Sequence[Tuple[float, float]]) -> Optional[float]:
    """Pearson's r over ``pairs``; None if under-populated, constant or non-finite."""
    if len(pairs) < MIN_PAIRS:
        return None

    data = np.asarray(pairs, dtype=float)
    if not np.isfinite(data).all():
        return None
    xs, ys = data[:, 0], data[:, 1]

    # Constant sides have exactly zero variance regardless of rounding in the mean
    if np.ptp(xs) == 0 or np.ptp(ys) == 0:
        return None

    x_diff = xs - np.mean(xs)
    y_diff = ys - np.mean(ys)
    covariance = np.mean(x_diff * y_diff)
    x_variance = np.mean(x_diff * x_diff)
    y_variance = np.mean(y_diff * y_diff)
    if x_variance == 0 or y_variance == 0:
        return None

    r = covariance / (np.sqrt(x_variance) * np.sqrt(y_variance))
    return float(np.clip(r, -1.0, 1.0))


class TimeAlignedCorrelator:
    """
    Pairs points of two series by timestamp and computes Pearson's r.

    Each X point is paired with the *first* Y point, in Y's order, whose
    timestamp differs by strictly less than the tolerance. This is not a
    nearest-neighbour search: on irregularly sampled Y series a later, closer
    point can lose to an earlier one.
    """

    def __init__(self, tolerance_ms: int = DEFAULT_TOLERANCE_MS):
        self.tolerance_ms = tolerance_ms

    def align(
        self, series_x: MetricSeries, series_y: MetricSeries, tolerance_ms: Optional[int] = None
    ) -> List[Tuple[float, float]]:
        tolerance = self.tolerance_ms if tolerance_ms is None else tolerance_ms
        pairs = []
        for x_point in series_x:
            for y_point in series_y:
                if abs(y_point.timestamp - x_point.timestamp) < tolerance:
                    pairs.append((x_point.value, y_point.value))
                    break
        return pairs

    def correlate(
        self, series_x: MetricSeries, series_y: MetricSeries, tolerance_ms: Optional[int] = None
    ) -> CorrelationResult:
        pairs = self.align(series_x, series_y, tolerance_ms)
        coefficient = pearson(pairs)
        if coefficient is None:
            logger.debug("Correlation undefined over %d matched pairs", len(pairs))
        return CorrelationResult(pairs=pairs, coefficient=coefficient)
