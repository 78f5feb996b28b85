"""
MetricsAnalyzer: composes the core analytics into the views a dashboard renders.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .analytics.classification import Category, CategoryClassifier
from .analytics.correlation import CorrelationResult, TimeAlignedCorrelator
from .analytics.histogram import Bucket, HistogramBucketer
from .analytics.keys import (
    KIND_ACTIVE_CHUNK,
    KIND_BLOCK_ENTITY_TYPE,
    KIND_CHUNK_BLOCK_ENTITIES,
    KIND_CHUNKS_LOADED,
    KIND_ENTITY_TYPE,
    KIND_HOTSPOT,
    KeyParser,
)
from .analytics.ranking import RankedEntry, top_n
from .analytics.rates import RateWindowAggregator, Window
from .analytics.timerange import TimeRangeFilter
from .config import AnalyzerConfig
from .formatting import format_dimension_name, format_metric_name, format_type_name
from .logging_config import get_logger
from .patterns import (
    CURRENT_VALUE_KEYS,
    GC_KEY_HINTS,
    GC_PRIMARY_KEYS,
    METRIC_FAMILIES,
    SYSTEM_CHARTS,
)
from .series import MetricPoint, MetricSnapshot, summarize_series, values_of

logger = get_logger(__name__)

HOTSPOT_TOTAL = "total"


# =============================================================================
# VIEW TYPES
# =============================================================================


@dataclass
class ViewParameters:
    """User-selected inputs of one analytics pass."""

    time_range: Optional[str] = None
    performance_metric: str = METRIC_FAMILIES["performance"][0]
    entity_chunk_metric: str = METRIC_FAMILIES["entities_chunks"][0]
    correlation_pair: Optional[Tuple[str, str]] = None


@dataclass
class DistributionView:
    metric: str
    buckets: List[Bucket]
    sample_count: int

    @property
    def counted(self) -> int:
        return sum(bucket.count for bucket in self.buckets)

    @property
    def has_data(self) -> bool:
        return self.sample_count > 0


@dataclass
class RateView:
    """Lag spike counts per trailing window.

    ``source`` names the key the events came from, or None for no data.
    """

    source: Optional[str]
    windows: List[Window]
    counts: List[int]

    @property
    def has_data(self) -> bool:
        return self.source is not None


@dataclass
class CorrelationView:
    metric_x: str
    metric_y: str
    result: CorrelationResult

    @property
    def title(self) -> str:
        return f"Correlation: {format_metric_name(self.metric_x)} vs {format_metric_name(self.metric_y)}"


@dataclass
class CategoryView:
    """Entity totals per category; ``source`` is "aggregate", "per_type" or None."""

    source: Optional[str]
    totals: Dict[Category, float]
    ranking: List[RankedEntry]

    @property
    def has_data(self) -> bool:
        return bool(self.totals)


@dataclass
class Hotspot:
    dimension: str
    x: int
    z: int
    value: float
    block_entities: float = 0.0
    details: List[RankedEntry] = field(default_factory=list)


@dataclass
class SeriesView:
    metric: str
    points: List[MetricPoint]
    summary: Optional[Dict[str, Any]]

    @property
    def has_data(self) -> bool:
        return bool(self.points)


@dataclass
class ChartView:
    """Several time-filtered series drawn on one chart."""

    chart: str
    series: Dict[str, SeriesView]

    @property
    def has_data(self) -> bool:
        return any(view.has_data for view in self.series.values())


@dataclass
class GcView:
    """Garbage-collection series; ``source`` is "primary", "fallback" or None."""

    source: Optional[str]
    series: Dict[str, List[MetricPoint]]

    @property
    def has_data(self) -> bool:
        return self.source is not None


@dataclass
class AnalysisPass:
    """Every periodic view computed from one snapshot."""

    now_ms: int
    time_range: str
    current_values: Dict[str, Optional[float]]
    performance: SeriesView
    entities_chunks: SeriesView
    distribution: DistributionView
    lag_spikes: RateView
    categories: CategoryView
    entity_types: List[RankedEntry]
    block_entity_types: List[RankedEntry]
    chunks_by_dimension: Dict[str, float]
    active_chunks: List[Hotspot]
    entity_hotspots: List[Hotspot]
    gc: GcView
    system: Dict[str, ChartView]


def _coordinate_key(dimension: str, x: int, z: int) -> str:
    return f"{dimension}@{x},{z}"


class MetricsAnalyzer:
    """Analytics facade over the most recent metric snapshot.

    Every view recomputes from the current snapshot; nothing is carried
    over between snapshots.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        classifier: Optional[CategoryClassifier] = None,
    ):
        self.config = (config or AnalyzerConfig()).validate()
        self.parser = KeyParser()
        self.time_filter = TimeRangeFilter(default_label=self.config.default_time_range)
        self.bucketer = HistogramBucketer()
        self.rate_aggregator = RateWindowAggregator()
        self.classifier = classifier or CategoryClassifier(parser=self.parser)
        self.correlator = TimeAlignedCorrelator(self.config.correlation_tolerance_ms)
        self.snapshot = MetricSnapshot()

    def load_snapshot(self, snapshot: MetricSnapshot) -> None:
        """Replace the current snapshot wholesale."""
        self.snapshot = snapshot
        logger.debug("Snapshot replaced: %d series", len(snapshot))

    def resolve_now(self, now_ms: Optional[int] = None) -> int:
        if now_ms is not None:
            return now_ms
        if self.snapshot.fetched_at_ms is not None:
            return self.snapshot.fetched_at_ms
        return int(time.time() * 1000)

    def _windowed(self, key: str, range_label: Optional[str], now_ms: Optional[int]) -> List[MetricPoint]:
        points = self.snapshot.get(key)
        if range_label is None:
            return list(points)
        return self.time_filter.filter(points, range_label, self.resolve_now(now_ms))

    # -------------------------------------------------------------------------
    # Time series
    # -------------------------------------------------------------------------

    def current_values(self) -> Dict[str, Optional[float]]:
        """Latest value of each headline metric (None when absent)."""
        return {name: self.snapshot.latest_value(key) for name, key in CURRENT_VALUE_KEYS.items()}

    def resolve_metric(self, family: str, metric: Optional[str]) -> str:
        """Return ``metric`` if it belongs to ``family``, else the family default."""
        choices = METRIC_FAMILIES[family]
        if metric in choices:
            return metric
        logger.debug("Unrecognized %s metric %r, using %s", family, metric, choices[0])
        return choices[0]

    def series_view(
        self,
        family: str,
        metric: Optional[str] = None,
        range_label: Optional[str] = None,
        now_ms: Optional[int] = None,
    ) -> SeriesView:
        """Active metric of a chart family, filtered to the time range."""
        key = self.resolve_metric(family, metric)
        points = self.time_filter.filter(self.snapshot.get(key), range_label, self.resolve_now(now_ms))
        return SeriesView(metric=key, points=points, summary=summarize_series(points))

    def _filtered_group(
        self, keys, range_label: Optional[str], now: int
    ) -> Dict[str, List[MetricPoint]]:
        return OrderedDict(
            (key, self.time_filter.filter(self.snapshot.get(key), range_label, now)) for key in keys
        )

    def gc_view(self, range_label: Optional[str] = None, now_ms: Optional[int] = None) -> GcView:
        """Garbage-collection rates, falling back to hinted keys when the usual ones are missing.

        A candidate key set is used only if at least one of its series still
        has points after time filtering.
        """
        now = self.resolve_now(now_ms)
        hinted = [
            key
            for key in self.snapshot
            if key not in GC_PRIMARY_KEYS
            and self.snapshot.has_data(key)
            and any(hint in key.lower() for hint in GC_KEY_HINTS)
        ][:2]
        candidates = [
            ("primary", [key for key in GC_PRIMARY_KEYS if self.snapshot.has_data(key)]),
            ("fallback", hinted),
        ]

        for source, keys in candidates:
            series = self._filtered_group(keys, range_label, now)
            if any(series.values()):
                if source == "fallback":
                    logger.debug("Using fallback GC keys: %s", ", ".join(keys))
                return GcView(source=source, series=series)

        return GcView(source=None, series=OrderedDict())

    def system_chart_view(
        self, chart: str, range_label: Optional[str] = None, now_ms: Optional[int] = None
    ) -> ChartView:
        """One multi-series system chart from SYSTEM_CHARTS.

        Missing keys appear as empty series.
        """
        now = self.resolve_now(now_ms)
        series = OrderedDict()
        for key, points in self._filtered_group(SYSTEM_CHARTS[chart], range_label, now).items():
            series[key] = SeriesView(metric=key, points=points, summary=summarize_series(points))
        return ChartView(chart=chart, series=series)

    def system_views(
        self, range_label: Optional[str] = None, now_ms: Optional[int] = None
    ) -> Dict[str, ChartView]:
        """Every system chart, in display order."""
        return OrderedDict(
            (chart, self.system_chart_view(chart, range_label, now_ms)) for chart in SYSTEM_CHARTS
        )

    # -------------------------------------------------------------------------
    # Distribution and rate views
    # -------------------------------------------------------------------------

    def distribution_view(
        self,
        metric: Optional[str] = None,
        range_label: Optional[str] = None,
        now_ms: Optional[int] = None,
    ) -> DistributionView:
        """Histogram of a latency-like metric over the configured bucket edges."""
        metric = metric or self.config.latency_metric
        values = values_of(self._windowed(metric, range_label, now_ms))
        buckets = self.bucketer.bucket(values, self.config.tick_buckets)
        return DistributionView(metric=metric, buckets=buckets, sample_count=len(values))

    def lag_spike_events(self) -> Tuple[Optional[str], List[MetricPoint]]:
        """Find lag spike events, trying each candidate source in turn.

        Returns:
            (source key, events); source is None when no candidate has data.
        """
        recorded = self.snapshot.get(self.config.lag_spike_metric)
        if recorded:
            return self.config.lag_spike_metric, list(recorded)

        threshold = self.config.lag_spike_threshold_ms
        derived = [
            point for point in self.snapshot.get(self.config.latency_metric) if point.value > threshold
        ]
        if derived:
            logger.debug("Deriving lag spikes from %s", self.config.latency_metric)
            return self.config.latency_metric, derived

        return None, []

    def rate_view(self, now_ms: Optional[int] = None) -> RateView:
        """Lag spikes counted in each configured trailing window."""
        source, events = self.lag_spike_events()
        windows = list(self.config.rate_windows)
        counts = self.rate_aggregator.aggregate(events, windows, self.resolve_now(now_ms))
        return RateView(source=source, windows=windows, counts=counts)

    # -------------------------------------------------------------------------
    # Correlation
    # -------------------------------------------------------------------------

    def correlation_view(
        self,
        metric_x: str,
        metric_y: str,
        range_label: Optional[str] = None,
        now_ms: Optional[int] = None,
        tolerance_ms: Optional[int] = None,
    ) -> CorrelationView:
        """Correlate two metrics; computed on demand, not on every refresh."""
        series_x = self._windowed(metric_x, range_label, now_ms)
        series_y = self._windowed(metric_y, range_label, now_ms)
        result = self.correlator.correlate(series_x, series_y, tolerance_ms)
        return CorrelationView(metric_x=metric_x, metric_y=metric_y, result=result)

    # -------------------------------------------------------------------------
    # Categories and type rankings
    # -------------------------------------------------------------------------

    def category_view(self, n: Optional[int] = None) -> CategoryView:
        """Entity totals per category.

        Aggregate category keys are preferred; per-type keys are used only
        when no aggregate key yields a total, so a population is never
        counted twice.
        """
        keys = [
            key
            for key in self.snapshot.keys_with_prefix(self.config.category_prefix)
            if self.snapshot.has_data(key)
        ]
        candidates = [
            ("aggregate", [key for key in keys if self.parser.parse(key).subtype is None]),
            ("per_type", [key for key in keys if self.parser.parse(key).subtype is not None]),
        ]

        for source, candidate_keys in candidates:
            totals = self.classifier.classify_all(
                (key, self.snapshot.latest_value(key)) for key in candidate_keys
            )
            if totals:
                ranking = top_n(
                    ((category.value, total) for category, total in totals.items()),
                    len(Category) if n is None else n,
                )
                return CategoryView(source=source, totals=totals, ranking=ranking)

        return CategoryView(source=None, totals={}, ranking=[])

    def _type_ranking(self, kind: str, n: int) -> List[RankedEntry]:
        entries = []
        for key in self.snapshot:
            parsed = self.parser.parse(key)
            if parsed.kind != kind:
                continue
            count = self.snapshot.latest_value(key, 0.0)
            if count > 0:
                entries.append((parsed.namespaced_id, count))
        return top_n(entries, n)

    def entity_types_view(self, n: Optional[int] = None) -> List[RankedEntry]:
        """Most numerous entity types."""
        return self._type_ranking(KIND_ENTITY_TYPE, self.config.top_types if n is None else n)

    def block_entity_types_view(self, n: Optional[int] = None) -> List[RankedEntry]:
        """Most numerous block entity types."""
        return self._type_ranking(KIND_BLOCK_ENTITY_TYPE, self.config.top_types if n is None else n)

    def chunks_by_dimension(self) -> Dict[str, float]:
        """Latest loaded-chunk count for each dimension that has any."""
        dimensions = OrderedDict()
        for key in self.snapshot:
            parsed = self.parser.parse(key)
            if parsed.kind != KIND_CHUNKS_LOADED:
                continue
            count = self.snapshot.latest_value(key, 0.0)
            if count > 0:
                dimensions[parsed.dimension] = count
        return dimensions

    # -------------------------------------------------------------------------
    # Hotspots
    # -------------------------------------------------------------------------

    def active_chunk_hotspots(self, n: Optional[int] = None) -> List[Hotspot]:
        """Chunks ranked by activity score, with their block entity counts."""
        n = self.config.top_hotspots if n is None else n
        hotspots: Dict[str, Hotspot] = OrderedDict()
        block_entities: Dict[str, float] = {}

        for key in self.snapshot:
            if not self.snapshot.has_data(key):
                continue
            parsed = self.parser.parse(key)
            if parsed.kind not in (KIND_ACTIVE_CHUNK, KIND_CHUNK_BLOCK_ENTITIES):
                continue
            if parsed.coordinate is None:
                logger.debug("Skipping key without a usable coordinate: %s", key)
                continue

            x, z = parsed.coordinate
            coord_key = _coordinate_key(parsed.dimension, x, z)
            value = self.snapshot.latest_value(key)
            if parsed.kind == KIND_CHUNK_BLOCK_ENTITIES:
                block_entities[coord_key] = value
            elif coord_key in hotspots:
                hotspots[coord_key].value += value
            else:
                hotspots[coord_key] = Hotspot(parsed.dimension, x, z, value)

        ranked = top_n(((k, h.value) for k, h in hotspots.items()), n)
        result = []
        for entry in ranked:
            hotspot = hotspots[entry.key]
            hotspot.block_entities = block_entities.get(entry.key, 0.0)
            result.append(hotspot)
        return result

    def entity_hotspots(self, n: Optional[int] = None) -> List[Hotspot]:
        """Chunks ranked by entity count, each with its most common entity types."""
        n = self.config.top_hotspots if n is None else n
        totals: Dict[str, Hotspot] = OrderedDict()
        details: Dict[str, List[Tuple[str, float]]] = {}

        for key in self.snapshot:
            if not self.snapshot.has_data(key):
                continue
            parsed = self.parser.parse(key)
            if parsed.kind != KIND_HOTSPOT:
                continue
            if parsed.coordinate is None:
                logger.debug("Skipping key without a usable coordinate: %s", key)
                continue

            x, z = parsed.coordinate
            coord_key = _coordinate_key(parsed.dimension, x, z)
            value = self.snapshot.latest_value(key)
            if parsed.subtype == HOTSPOT_TOTAL:
                if value > 0:
                    totals[coord_key] = Hotspot(parsed.dimension, x, z, value)
            elif value > 0:
                details.setdefault(coord_key, []).append((parsed.namespaced_id, value))

        ranked = top_n(((k, h.value) for k, h in totals.items()), n)
        result = []
        for entry in ranked:
            hotspot = totals[entry.key]
            hotspot.details = top_n(details.get(entry.key, []), self.config.hotspot_detail_types)
            result.append(hotspot)
        return result

    # -------------------------------------------------------------------------
    # Full pass and report
    # -------------------------------------------------------------------------

    def analyze(
        self, now_ms: Optional[int] = None, params: Optional[ViewParameters] = None
    ) -> AnalysisPass:
        """Compute every periodic view from the current snapshot."""
        params = params or ViewParameters()
        now = self.resolve_now(now_ms)
        time_range = self.time_filter.resolve(params.time_range)

        return AnalysisPass(
            now_ms=now,
            time_range=time_range,
            current_values=self.current_values(),
            performance=self.series_view("performance", params.performance_metric, time_range, now),
            entities_chunks=self.series_view(
                "entities_chunks", params.entity_chunk_metric, time_range, now
            ),
            distribution=self.distribution_view(),
            lag_spikes=self.rate_view(now),
            categories=self.category_view(),
            entity_types=self.entity_types_view(),
            block_entity_types=self.block_entity_types_view(),
            chunks_by_dimension=self.chunks_by_dimension(),
            active_chunks=self.active_chunk_hotspots(),
            entity_hotspots=self.entity_hotspots(),
            gc=self.gc_view(time_range, now),
            system=self.system_views(time_range, now),
        )

    def generate_report(
        self, now_ms: Optional[int] = None, params: Optional[ViewParameters] = None
    ) -> Dict[str, Any]:
        """Log every view as text tables and return the results as plain data."""
        result = self.analyze(now_ms, params)

        logger.info("\n" + "=" * 70)
        logger.info("SERVER METRICS ANALYSIS REPORT")
        logger.info("Generated: %s", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))
        logger.info("=" * 70)
        logger.info("\nSnapshot: %d series, time range %s", len(self.snapshot), result.time_range)

        logger.info("\nCurrent Values:")
        for name, value in result.current_values.items():
            logger.info("  %-12s %s", name, "-" if value is None else f"{value:,.1f}")

        for view in (result.performance, result.entities_chunks):
            logger.info("\n--- %s ---", format_metric_name(view.metric).upper())
            if view.summary is None:
                logger.info("  No data in range")
                continue
            s = view.summary
            logger.info(
                "  Points: %d  Mean: %.2f  Std: %.2f  Min: %.2f  Max: %.2f",
                s["count"], s["mean"], s["std"], s["min"], s["max"],
            )
            logger.info("  Median: %.2f  P95: %.2f  P99: %.2f", s["median"], s["p95"], s["p99"])

        self._log_distribution(result.distribution)
        self._log_rates(result.lag_spikes)
        self._log_categories(result.categories)
        self._log_ranking("TOP ENTITY TYPES", result.entity_types)
        self._log_ranking("TOP BLOCK ENTITY TYPES", result.block_entity_types)

        logger.info("\n--- CHUNKS BY DIMENSION ---")
        if not result.chunks_by_dimension:
            logger.info("  No chunk data available")
        for dimension, count in result.chunks_by_dimension.items():
            logger.info("  %-20s %s", format_dimension_name(dimension), f"{int(count):,}")

        self._log_hotspots("ACTIVE CHUNKS", result.active_chunks, "Activity", "Block Ent.")
        self._log_hotspots("ENTITY HOTSPOTS", result.entity_hotspots, "Entities", "Top Types")

        logger.info("\n--- GARBAGE COLLECTION ---")
        if not result.gc.has_data:
            logger.info("  No GC data available")
        for key, points in result.gc.series.items():
            latest = points[-1].value if points else 0.0
            logger.info("  %-25s points: %-6d latest: %.2f", key, len(points), latest)

        for chart in result.system.values():
            self._log_chart(chart)

        logger.info("\n" + "=" * 70)
        logger.info("END OF METRICS REPORT")
        logger.info("=" * 70)

        return {
            "time_range": result.time_range,
            "current_values": result.current_values,
            "distribution": [(b.label, b.count) for b in result.distribution.buckets],
            "lag_spikes": {
                "source": result.lag_spikes.source,
                "counts": [
                    (w.label, c) for w, c in zip(result.lag_spikes.windows, result.lag_spikes.counts)
                ],
            },
            "categories": {c.value: total for c, total in result.categories.totals.items()},
            "entity_types": [(e.key, e.value) for e in result.entity_types],
            "block_entity_types": [(e.key, e.value) for e in result.block_entity_types],
            "chunks_by_dimension": dict(result.chunks_by_dimension),
            "active_chunks": [(h.dimension, h.x, h.z, h.value) for h in result.active_chunks],
            "entity_hotspots": [(h.dimension, h.x, h.z, h.value) for h in result.entity_hotspots],
            "gc_source": result.gc.source,
            "system": {
                name: {key: len(view.points) for key, view in chart.series.items()}
                for name, chart in result.system.items()
            },
        }

    def report_correlation(self, metric_x: str, metric_y: str, **kwargs) -> CorrelationView:
        """Compute a correlation view and log it."""
        view = self.correlation_view(metric_x, metric_y, **kwargs)
        logger.info("\n--- %s ---", view.title.upper())
        logger.info("  Matched pairs: %d", len(view.result.pairs))
        if view.result.is_defined:
            logger.info("  Correlation coefficient: %.3f", view.result.coefficient)
        else:
            logger.info("  Correlation coefficient: undefined")
        return view

    def _log_distribution(self, view: DistributionView) -> None:
        logger.info("\n--- %s DISTRIBUTION ---", format_metric_name(view.metric).upper())
        if not view.has_data:
            logger.info("  No data available")
            return
        largest = max(bucket.count for bucket in view.buckets) or 1
        for bucket in view.buckets:
            bar = "█" * int(35 * bucket.count / largest)
            logger.info("  %-10s%-10d%s", bucket.label, bucket.count, bar)

    def _log_rates(self, view: RateView) -> None:
        logger.info("\n--- LAG SPIKE FREQUENCY ---")
        if not view.has_data:
            logger.info("  No lag spikes recorded")
            return
        logger.info("  Source: %s", view.source)
        for window, count in zip(view.windows, view.counts):
            logger.info("  %-18s%d", window.label, count)

    def _log_categories(self, view: CategoryView) -> None:
        logger.info("\n--- ENTITY CATEGORIES ---")
        if not view.has_data:
            logger.info("  No entity data available")
            return
        total = sum(view.totals.values())
        for entry in view.ranking:
            pct = 100 * entry.value / total if total > 0 else 0
            bar = "█" * int(pct / 2.5)
            logger.info("  %-14s%-10s%5.1f%%  %s", entry.key, f"{int(entry.value):,}", pct, bar)

    def _log_ranking(self, title: str, entries: List[RankedEntry]) -> None:
        logger.info("\n--- %s ---", title)
        if not entries:
            logger.info("  No data available")
            return
        for entry in entries:
            logger.info("  %-30s%s", format_type_name(entry.key)[:30], f"{int(entry.value):,}")

    def _log_hotspots(self, title: str, hotspots: List[Hotspot], value_label: str, extra_label: str) -> None:
        logger.info("\n--- %s ---", title)
        if not hotspots:
            logger.info("  No %s detected yet", title.lower())
            return
        logger.info("  %-14s%-16s%-10s%s", "Dimension", "Chunk", value_label, extra_label)
        logger.info("  " + "-" * 60)
        for h in hotspots:
            if h.details:
                extra = ", ".join(f"{format_type_name(d.key)}: {int(d.value)}" for d in h.details)
            else:
                extra = f"{int(h.block_entities)}"
            logger.info(
                "  %-14s%-16s%-10.2f%s",
                format_dimension_name(h.dimension),
                f"{h.x}, {h.z}",
                h.value,
                extra,
            )

    def _log_chart(self, chart: ChartView) -> None:
        logger.info("\n--- %s ---", chart.chart.replace("_", " ").upper())
        if not chart.has_data:
            logger.info("  No data available")
            return
        for key, view in chart.series.items():
            if view.summary is None:
                logger.info("  %-25s no data in range", key)
                continue
            logger.info(
                "  %-25s points: %-6d mean: %.2f  max: %.2f  latest: %.2f",
                key, view.summary["count"], view.summary["mean"], view.summary["max"],
                view.points[-1].value,
            )
