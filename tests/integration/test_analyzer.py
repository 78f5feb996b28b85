"""
Integration tests for the metrics analyzer.

Tests the full workflow including:
- Snapshot loading
- Every periodic view
- Report generation
- Degraded output for missing data
"""

import pytest

from metrics_analyzer import (
    AnalyzerConfig,
    Category,
    MetricPoint,
    MetricSnapshot,
    MetricsAnalyzer,
    ViewParameters,
)

MINUTE = 60 * 1000


class TestTimeSeriesViews:
    """Tests for current values and chart series."""

    def test_current_values(self, metrics_analyzer):
        """Test headline values are the latest point of each key."""
        values = metrics_analyzer.current_values()
        assert values["tps"] == 17.5
        assert values["tick_time"] == 8.0
        assert values["memory_used"] == 512.0
        assert values["entities"] == 42.0
        assert values["chunks"] == 450.0

    def test_performance_series_filtered(self, metrics_analyzer, now_ms):
        """Test the one hour range drops the 90 minute old point."""
        view = metrics_analyzer.series_view("performance", "server.tps", "1h", now_ms)
        assert view.metric == "server.tps"
        assert [p.value for p in view.points] == [19.5, 18.0, 17.5]
        assert view.summary["count"] == 3

    def test_shorter_range(self, metrics_analyzer, now_ms):
        """Test a five minute range keeps only recent points."""
        view = metrics_analyzer.series_view("performance", "server.tps", "5m", now_ms)
        assert len(view.points) == 2

    def test_unknown_metric_uses_family_default(self, metrics_analyzer, now_ms):
        """Test an unrecognized metric choice falls back to the first in its family."""
        view = metrics_analyzer.series_view("entities_chunks", "bogus.metric", "1h", now_ms)
        assert view.metric == "entities.total"
        assert view.has_data

    def test_missing_series_has_no_summary(self, empty_analyzer):
        """Test a metric with no data yields an empty view."""
        view = empty_analyzer.series_view("performance", "server.tps", "1h", 0)
        assert not view.has_data
        assert view.summary is None

    def test_gc_primary(self, metrics_analyzer, now_ms):
        """Test the usual GC keys are used when present."""
        view = metrics_analyzer.gc_view("1h", now_ms)
        assert view.source == "primary"
        assert list(view.series) == ["gc.young.rate", "gc.old.rate"]

    def test_gc_fallback(self, now_ms):
        """Test keys mentioning garbage collection are used when the usual ones are missing."""
        analyzer = MetricsAnalyzer()
        analyzer.load_snapshot(MetricSnapshot({
            "jvm.garbage.collections": [MetricPoint(now_ms - MINUTE, 4.0)],
            "server.tps": [MetricPoint(now_ms - MINUTE, 20.0)],
        }))
        view = analyzer.gc_view("1h", now_ms)
        assert view.source == "fallback"
        assert list(view.series) == ["jvm.garbage.collections"]

    def test_gc_no_data(self, empty_analyzer):
        """Test no GC keys yields a no-data view."""
        assert not empty_analyzer.gc_view("1h", 0).has_data

    def test_gc_primary_outside_range_uses_fallback(self, now_ms):
        """Test usual GC keys with no points in range give way to hinted keys."""
        analyzer = MetricsAnalyzer()
        analyzer.load_snapshot(MetricSnapshot({
            "gc.young.rate": [MetricPoint(now_ms - 120 * MINUTE, 2.0)],
            "jvm.garbage.collections": [MetricPoint(now_ms - MINUTE, 4.0)],
        }))
        view = analyzer.gc_view("1h", now_ms)
        assert view.source == "fallback"
        assert [p.value for p in view.series["jvm.garbage.collections"]] == [4.0]

    def test_gc_all_outside_range(self, now_ms):
        """Test GC keys whose points are all older than the range yield no data."""
        analyzer = MetricsAnalyzer()
        analyzer.load_snapshot(MetricSnapshot({
            "gc.old.rate": [MetricPoint(now_ms - 10 * MINUTE, 1.0)],
            "jvm.gc.pause": [MetricPoint(now_ms - 20 * MINUTE, 5.0)],
        }))
        view = analyzer.gc_view("5m", now_ms)
        assert view.source is None
        assert not view.has_data
        assert analyzer.gc_view("1h", now_ms).source == "primary"


class TestSystemCharts:
    """Tests for the multi-series system charts."""

    def test_cpu_chart(self, metrics_analyzer, now_ms):
        """Test the CPU chart carries system and process load in order."""
        chart = metrics_analyzer.system_chart_view("cpu", "1h", now_ms)
        assert chart.chart == "cpu"
        assert list(chart.series) == ["cpu.system", "cpu.process"]
        system = chart.series["cpu.system"]
        assert system.summary["count"] == 2
        assert system.summary["mean"] == pytest.approx(0.5)
        assert system.points[-1].value == 0.6
        assert chart.has_data

    def test_range_filtering(self, metrics_analyzer, now_ms):
        """Test chart series are filtered to the requested range."""
        chart = metrics_analyzer.system_chart_view("chunk_rates", "1h", now_ms)
        assert [p.value for p in chart.series["chunks.load_rate"].points] == [6.0, 4.0]
        recent = metrics_analyzer.system_chart_view("chunk_rates", "5m", now_ms)
        assert [p.value for p in recent.series["chunks.load_rate"].points] == [4.0]

    def test_missing_key_is_empty_series(self, metrics_analyzer, now_ms):
        """Test a chart key absent from the snapshot appears with no points."""
        chart = metrics_analyzer.system_chart_view("memory_pools", "1h", now_ms)
        assert list(chart.series) == ["memory.heap.used", "memory.heap.committed", "memory.nonheap.used"]
        nonheap = chart.series["memory.nonheap.used"]
        assert nonheap.points == []
        assert nonheap.summary is None
        assert chart.has_data

    def test_unknown_chart(self, metrics_analyzer):
        """Test an unknown chart name is rejected."""
        with pytest.raises(KeyError):
            metrics_analyzer.system_chart_view("disk")

    def test_system_views_order(self, metrics_analyzer, now_ms):
        """Test every system chart is computed in display order."""
        views = metrics_analyzer.system_views("1h", now_ms)
        assert list(views) == ["cpu", "threads", "memory_pools", "chunk_rates"]
        assert views["threads"].series["threads.active"].points[-1].value == 48.0

    def test_no_data(self, empty_analyzer):
        """Test an empty snapshot gives charts with no data."""
        views = empty_analyzer.system_views("1h", 0)
        assert not any(chart.has_data for chart in views.values())


class TestDistributionAndRates:
    """Tests for the histogram and lag spike views."""

    def test_tick_time_distribution(self, metrics_analyzer):
        """Test tick times land in the default millisecond buckets."""
        view = metrics_analyzer.distribution_view()
        assert view.metric == "server.tick_time"
        assert [b.count for b in view.buckets] == [1, 2, 1, 0, 1, 0, 1]
        assert view.counted == view.sample_count == 6

    def test_distribution_with_range(self, metrics_analyzer, now_ms):
        """Test a range label restricts the distribution."""
        view = metrics_analyzer.distribution_view(range_label="5m", now_ms=now_ms)
        assert view.sample_count == 3

    def test_empty_distribution(self, empty_analyzer):
        """Test no data gives zero counts and no data flag."""
        view = empty_analyzer.distribution_view()
        assert not view.has_data
        assert all(b.count == 0 for b in view.buckets)

    def test_lag_spike_rates(self, metrics_analyzer, now_ms):
        """Test recorded lag spikes counted per trailing window."""
        view = metrics_analyzer.rate_view(now_ms)
        assert view.source == "server.lag_spikes.current"
        assert view.counts == [1, 2, 2, 3, 3]

    def test_lag_spikes_derived_from_tick_time(self, now_ms):
        """Test spikes are derived from tick times over the threshold when none are recorded."""
        analyzer = MetricsAnalyzer()
        analyzer.load_snapshot(MetricSnapshot({
            "server.tick_time": [
                MetricPoint(now_ms - 10 * MINUTE, 250.0),
                MetricPoint(now_ms - 2 * MINUTE, 50.0),
                MetricPoint(now_ms - 30 * 1000, 101.0),
            ],
        }))
        view = analyzer.rate_view(now_ms)
        assert view.source == "server.tick_time"
        assert view.counts == [1, 1, 2, 2, 2]

    def test_no_lag_spikes(self, empty_analyzer):
        """Test no source gives zero counts and no data flag."""
        view = empty_analyzer.rate_view(0)
        assert not view.has_data
        assert view.counts == [0, 0, 0, 0, 0]

    def test_now_defaults_to_fetch_time(self, metrics_analyzer, now_ms):
        """Test the snapshot fetch time is the reference time when none is given."""
        assert metrics_analyzer.resolve_now() == now_ms
        assert metrics_analyzer.rate_view().counts == metrics_analyzer.rate_view(now_ms).counts


class TestCorrelation:
    """Tests for the on-demand correlation view."""

    def test_self_correlation(self, metrics_analyzer):
        """Test a metric correlated with itself gives 1.0."""
        view = metrics_analyzer.correlation_view("server.tick_time", "server.tick_time")
        assert view.result.coefficient == pytest.approx(1.0)
        assert "Server Tick Time" in view.title

    def test_tps_against_tick_time(self, metrics_analyzer):
        """Test two metrics sharing only a few timestamps."""
        view = metrics_analyzer.correlation_view("server.tps", "server.tick_time")
        assert len(view.result.pairs) == 2
        assert view.result.coefficient == pytest.approx(1.0)

    def test_missing_metric_undefined(self, metrics_analyzer):
        """Test a missing metric gives an undefined coefficient."""
        view = metrics_analyzer.correlation_view("server.tps", "missing.metric")
        assert not view.result.is_defined
        assert view.result.pairs == []


class TestCategoriesAndTypes:
    """Tests for entity categories and type rankings."""

    def test_aggregate_categories_preferred(self, metrics_analyzer):
        """Test aggregate keys are used and empty categories are hidden."""
        view = metrics_analyzer.category_view()
        assert view.source == "aggregate"
        assert view.totals == {Category.HOSTILE: 5, Category.PASSIVE: 3}
        assert [e.key for e in view.ranking] == ["Hostile", "Passive"]

    def test_per_type_categories(self, sample_payload):
        """Test per-type keys are classified when no aggregate keys have totals."""
        for key in ("entities.hostile", "entities.passive", "entities.items"):
            del sample_payload[key]
        analyzer = MetricsAnalyzer()
        analyzer.load_snapshot(MetricSnapshot.from_payload(sample_payload))
        view = analyzer.category_view()
        assert view.source == "per_type"
        assert view.totals == {
            Category.HOSTILE: 5,
            Category.PASSIVE: 3,
            Category.ITEMS: 4,
            Category.PROJECTILES: 2,
            Category.VEHICLES: 1,
            Category.OTHER: 2,
        }
        assert view.ranking[0].key == "Hostile"

    def test_no_categories(self, empty_analyzer):
        """Test no entity data gives an empty view."""
        view = empty_analyzer.category_view()
        assert view.source is None
        assert not view.has_data

    def test_entity_types(self, metrics_analyzer):
        """Test entity types ranked by count with identifiers restored."""
        ranking = metrics_analyzer.entity_types_view()
        assert [(e.key, e.value) for e in ranking] == [
            ("minecraft:zombie", 5.0),
            ("minecraft:item", 4.0),
            ("minecraft:cow", 3.0),
            ("minecraft:arrow", 2.0),
            ("minecraft:villager", 2.0),
            ("minecraft:oak_boat", 1.0),
        ]

    def test_entity_types_limit(self, metrics_analyzer):
        """Test the ranking respects an explicit limit."""
        assert len(metrics_analyzer.entity_types_view(n=2)) == 2

    def test_block_entity_types(self, metrics_analyzer):
        """Test zero counts are excluded from block entity rankings."""
        ranking = metrics_analyzer.block_entity_types_view()
        assert [e.key for e in ranking] == [
            "minecraft:chest",
            "net.minecraft.block.entity.SignBlockEntity",
        ]

    def test_chunks_by_dimension(self, metrics_analyzer):
        """Test dimensions with no loaded chunks are omitted."""
        assert metrics_analyzer.chunks_by_dimension() == {
            "minecraft.overworld": 400.0,
            "minecraft.the_nether": 50.0,
        }


class TestHotspots:
    """Tests for spatial rankings."""

    def test_active_chunks(self, metrics_analyzer):
        """Test active chunks ranked by score with block entities joined."""
        hotspots = metrics_analyzer.active_chunk_hotspots()
        assert [(h.dimension, h.x, h.z, h.value) for h in hotspots] == [
            ("minecraft.overworld", 3, 7, 12.25),
            ("minecraft.overworld", 12, -4, 8.5),
        ]
        assert hotspots[0].block_entities == 6.0
        assert hotspots[1].block_entities == 0.0

    def test_active_chunks_limit(self, metrics_analyzer):
        """Test the hotspot limit applies."""
        assert len(metrics_analyzer.active_chunk_hotspots(n=1)) == 1

    def test_entity_hotspots(self, metrics_analyzer):
        """Test entity hotspots carry their most common types."""
        hotspots = metrics_analyzer.entity_hotspots()
        assert [(h.dimension, h.value) for h in hotspots] == [
            ("minecraft.the_nether", 30.0),
            ("minecraft.overworld", 20.0),
        ]
        assert [(d.key, d.value) for d in hotspots[1].details] == [
            ("minecraft:zombie", 12.0),
            ("minecraft:cow", 8.0),
        ]

    def test_detail_limit(self, sample_snapshot):
        """Test the number of detail types follows configuration."""
        analyzer = MetricsAnalyzer(AnalyzerConfig(hotspot_detail_types=1))
        analyzer.load_snapshot(sample_snapshot)
        overworld = analyzer.entity_hotspots()[1]
        assert [d.key for d in overworld.details] == ["minecraft:zombie"]

    def test_no_hotspots(self, empty_analyzer):
        """Test no data gives empty rankings."""
        assert empty_analyzer.active_chunk_hotspots() == []
        assert empty_analyzer.entity_hotspots() == []


class TestFullPass:
    """Tests for the complete analysis and report."""

    def test_analyze(self, metrics_analyzer, now_ms):
        """Test one pass computes every view."""
        result = metrics_analyzer.analyze(now_ms, ViewParameters(time_range="15m"))
        assert result.time_range == "15m"
        assert result.performance.metric == "server.tps"
        assert len(result.performance.points) == 2
        assert result.lag_spikes.counts == [1, 2, 2, 3, 3]
        assert result.gc.source == "primary"
        assert list(result.system) == ["cpu", "threads", "memory_pools", "chunk_rates"]
        assert len(result.system["chunk_rates"].series["chunks.load_rate"].points) == 2

    def test_unknown_range_defaults(self, metrics_analyzer, now_ms):
        """Test an unrecognized range label resolves to one hour."""
        assert metrics_analyzer.analyze(now_ms, ViewParameters(time_range="1d")).time_range == "1h"

    def test_generate_report(self, metrics_analyzer, now_ms):
        """Test the report returns plain data for every section."""
        report = metrics_analyzer.generate_report(now_ms)
        assert report["time_range"] == "1h"
        assert report["distribution"][0] == ("0-5ms", 1)
        assert report["lag_spikes"]["source"] == "server.lag_spikes.current"
        assert report["lag_spikes"]["counts"][0] == ("Last Minute", 1)
        assert report["categories"] == {"Hostile": 5.0, "Passive": 3.0}
        assert report["entity_types"][0] == ("minecraft:zombie", 5.0)
        assert report["chunks_by_dimension"]["minecraft.overworld"] == 400.0
        assert report["active_chunks"][0] == ("minecraft.overworld", 3, 7, 12.25)
        assert report["entity_hotspots"][0] == ("minecraft.the_nether", -1, 2, 30.0)
        assert report["gc_source"] == "primary"
        assert report["system"]["cpu"] == {"cpu.system": 2, "cpu.process": 2}
        assert report["system"]["chunk_rates"] == {"chunks.load_rate": 2, "chunks.unload_rate": 0}

    def test_report_on_empty_snapshot(self, empty_analyzer):
        """Test an empty snapshot reports no-data states without failing."""
        report = empty_analyzer.generate_report(now_ms=0)
        assert report["categories"] == {}
        assert report["lag_spikes"]["source"] is None
        assert report["active_chunks"] == []
        assert report["gc_source"] is None
        assert all(not any(counts.values()) for counts in report["system"].values())
        assert all(value is None for value in report["current_values"].values())

    def test_report_correlation(self, metrics_analyzer):
        """Test correlation reporting returns the computed view."""
        view = metrics_analyzer.report_correlation("server.tick_time", "server.tick_time")
        assert view.result.is_defined

    def test_snapshot_replacement(self, metrics_analyzer):
        """Test loading a new snapshot discards all previous data."""
        metrics_analyzer.load_snapshot(MetricSnapshot())
        assert metrics_analyzer.entity_types_view() == []
        assert metrics_analyzer.category_view().totals == {}
