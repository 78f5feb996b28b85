"""
Pytest configuration and shared fixtures for server metrics analysis tests.
"""

import json
import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from metrics_analyzer import MetricsAnalyzer, MetricPoint, MetricSnapshot  # noqa: E402

NOW_MS = 1_700_000_000_000
SECOND = 1000
MINUTE = 60 * SECOND


def points(*pairs):
    """Build a JSON-style series from (timestamp, value) pairs."""
    return [{"timestamp": ts, "value": value} for ts, value in pairs]


def metric_series(*pairs):
    """Build a list of MetricPoint from (timestamp, value) pairs."""
    return [MetricPoint(ts, float(value)) for ts, value in pairs]


def latest(value):
    """A single-point series sampled just before NOW_MS."""
    return points((NOW_MS - SECOND, value))


# =============================================================================
# SNAPSHOT FIXTURES
# =============================================================================

@pytest.fixture
def now_ms():
    return NOW_MS


@pytest.fixture
def sample_payload():
    """Collector payload covering every view of the analyzer."""
    return {
        "server.tps": points(
            (NOW_MS - 90 * MINUTE, 20.0),
            (NOW_MS - 20 * MINUTE, 19.5),
            (NOW_MS - 2 * MINUTE, 18.0),
            (NOW_MS - SECOND, 17.5),
        ),
        "server.tick_time": points(
            (NOW_MS - 10 * MINUTE, 3.0),
            (NOW_MS - 8 * MINUTE, 7.0),
            (NOW_MS - 6 * MINUTE, 12.0),
            (NOW_MS - 4 * MINUTE, 22.0),
            (NOW_MS - 2 * MINUTE, 150.0),
            (NOW_MS - SECOND, 8.0),
        ),
        "server.lag_spikes.current": points(
            (NOW_MS - 20 * MINUTE, 110.0),
            (NOW_MS - 4 * MINUTE, 120.0),
            (NOW_MS - 30 * SECOND, 150.0),
        ),
        "memory.heap.used": latest(512.0),
        "memory.heap.max": latest(2048.0),
        "entities.total": points((NOW_MS - 2 * MINUTE, 40.0), (NOW_MS - SECOND, 42.0)),
        "chunks.loaded": latest(450.0),
        "entities.hostile": latest(5.0),
        "entities.passive": latest(3.0),
        "entities.items": latest(0.0),
        "entities.types.minecraft.zombie": latest(5.0),
        "entities.types.minecraft.cow": latest(3.0),
        "entities.types.minecraft.item": latest(4.0),
        "entities.types.minecraft.arrow": latest(2.0),
        "entities.types.minecraft.oak_boat": latest(1.0),
        "entities.types.minecraft.villager": latest(2.0),
        "block_entities.types.minecraft.chest": latest(12.0),
        "block_entities.types.net.minecraft.block.entity.SignBlockEntity": latest(4.0),
        "block_entities.types.minecraft.furnace": latest(0.0),
        "world.minecraft.overworld.chunks.loaded": latest(400.0),
        "world.minecraft.the_nether.chunks.loaded": latest(50.0),
        "world.minecraft.the_end.chunks.loaded": latest(0.0),
        "world.minecraft.overworld.active_chunk.12.-4": latest(8.5),
        "world.minecraft.overworld.active_chunk.3.7": latest(12.25),
        "world.minecraft.the_nether.active_chunk.bad.1": latest(99.0),
        "world.minecraft.overworld.chunk.3.7.block_entities": latest(6.0),
        "world.minecraft.overworld.hotspot.3.7.total": latest(20.0),
        "world.minecraft.overworld.hotspot.3.7.minecraft.zombie": latest(12.0),
        "world.minecraft.overworld.hotspot.3.7.minecraft.cow": latest(8.0),
        "world.minecraft.the_nether.hotspot.-1.2.total": latest(30.0),
        "world.minecraft.the_nether.hotspot.-1.2.minecraft.ghast": latest(30.0),
        "gc.young.rate": points((NOW_MS - 3 * MINUTE, 2.0), (NOW_MS - SECOND, 3.0)),
        "gc.old.rate": points((NOW_MS - SECOND, 0.0)),
        "cpu.system": points((NOW_MS - 2 * MINUTE, 0.4), (NOW_MS - SECOND, 0.6)),
        "cpu.process": points((NOW_MS - 2 * MINUTE, 0.2), (NOW_MS - SECOND, 0.3)),
        "threads.active": latest(48.0),
        "memory.heap.committed": latest(1024.0),
        "chunks.load_rate": points(
            (NOW_MS - 2 * 60 * MINUTE, 9.0), (NOW_MS - 10 * MINUTE, 6.0), (NOW_MS - SECOND, 4.0)
        ),
    }


@pytest.fixture
def sample_snapshot(sample_payload):
    return MetricSnapshot.from_payload(sample_payload, fetched_at_ms=NOW_MS)


# =============================================================================
# ANALYZER FIXTURES
# =============================================================================

@pytest.fixture
def metrics_analyzer(sample_snapshot):
    """A MetricsAnalyzer loaded with the sample snapshot."""
    analyzer = MetricsAnalyzer()
    analyzer.load_snapshot(sample_snapshot)
    return analyzer


@pytest.fixture
def empty_analyzer():
    """A MetricsAnalyzer with no data at all."""
    return MetricsAnalyzer()


# =============================================================================
# TEMPORARY FILE FIXTURES
# =============================================================================

@pytest.fixture
def temp_snapshot_file(tmp_path, sample_payload):
    """Write the sample payload to a JSON file."""
    snapshot_file = tmp_path / "metrics.json"
    snapshot_file.write_text(json.dumps(sample_payload))
    return snapshot_file
