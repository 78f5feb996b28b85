"""
Serialized analytics passes over a periodically replaced snapshot.

A periodic refresh and a user-triggered correlation must never interleave:
both run under the same lock, so a pass always sees exactly one snapshot.
"""

import threading
import time
from dataclasses import replace
from typing import Callable, Optional

from .analyzer import AnalysisPass, CorrelationView, MetricsAnalyzer, ViewParameters
from .logging_config import get_logger
from .series import MetricSnapshot

logger = get_logger(__name__)

SnapshotProvider = Callable[[], MetricSnapshot]


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class AnalyticsSession:
    """Holds the last snapshot and the last user-selected parameters.

    Attributes:
        analyzer: Facade that computes the views.
        params: Current time range, active metrics and correlation pair.
        last_pass: Result of the most recent refresh, if any.
    """

    def __init__(self, analyzer: Optional[MetricsAnalyzer] = None):
        self.analyzer = analyzer or MetricsAnalyzer()
        self.params = ViewParameters(time_range=self.analyzer.config.default_time_range)
        self.last_pass: Optional[AnalysisPass] = None
        self.passes_run = 0
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> MetricSnapshot:
        return self.analyzer.snapshot

    # Parameter updates replace values; the next pass picks them up.

    def set_time_range(self, range_label: str) -> None:
        self.params = replace(self.params, time_range=range_label)

    def set_performance_metric(self, metric: str) -> None:
        self.params = replace(self.params, performance_metric=metric)

    def set_entity_chunk_metric(self, metric: str) -> None:
        self.params = replace(self.params, entity_chunk_metric=metric)

    def set_correlation_pair(self, metric_x: str, metric_y: str) -> None:
        self.params = replace(self.params, correlation_pair=(metric_x, metric_y))

    def refresh(self, snapshot: Optional[MetricSnapshot] = None, now_ms: Optional[int] = None) -> AnalysisPass:
        """Swap in ``snapshot`` (if given) and recompute every periodic view."""
        with self._lock:
            if snapshot is not None:
                self.analyzer.load_snapshot(snapshot)
            result = self.analyzer.analyze(now_ms, self.params)
            self.last_pass = result
            self.passes_run += 1
        return result

    def request_correlation(
        self,
        metric_x: Optional[str] = None,
        metric_y: Optional[str] = None,
        now_ms: Optional[int] = None,
    ) -> Optional[CorrelationView]:
        """Correlate the given pair, or the stored pair when none is given.

        Returns None when no pair has been chosen.
        """
        if metric_x is not None and metric_y is not None:
            self.set_correlation_pair(metric_x, metric_y)
        pair = self.params.correlation_pair
        if pair is None:
            logger.debug("Correlation requested without a metric pair")
            return None
        with self._lock:
            return self.analyzer.correlation_view(pair[0], pair[1], now_ms=now_ms)

    def run_periodic(
        self,
        provider: SnapshotProvider,
        stop_event: threading.Event,
        now_fn: Callable[[], int] = _wall_clock_ms,
        on_pass: Optional[Callable[[AnalysisPass], None]] = None,
    ) -> None:
        """Fetch and analyze a snapshot every refresh interval until stopped.

        A failed fetch is logged and that tick is skipped; the previous
        snapshot stays in place.
        """
        interval_s = self.analyzer.config.refresh_interval_ms / 1000.0
        logger.debug("Periodic refresh every %.1fs", interval_s)

        while not stop_event.is_set():
            try:
                snapshot = provider()
            except Exception as e:
                logger.error("Snapshot fetch failed: %s", e)
            else:
                result = self.refresh(snapshot, now_fn())
                if on_pass is not None:
                    on_pass(result)
            stop_event.wait(interval_s)
