"""
Key patterns and fixed lookup tables for server metrics analysis.
"""

import re

# =============================================================================
# PATTERNS FOR METRIC KEY PARSING
# =============================================================================

# Per-dimension loaded chunks: world.minecraft.overworld.chunks.loaded
CHUNKS_LOADED_PATTERN = re.compile(
    r'^(?P<namespace>[^.]+)\.(?P<dimension>[^.]+\.[^.]+)(?:\..+)?\.chunks\.loaded$'
)

# Highly active chunk: world.minecraft.overworld.active_chunk.12.-4
ACTIVE_CHUNK_PATTERN = re.compile(
    r'^(?P<namespace>[^.]+)\.(?P<dimension>[^.]+\.[^.]+)\.active_chunk'
    r'\.(?P<x>[^.]*)(?:\.(?P<z>[^.]*))?$'
)

# Entity hotspot: world.minecraft.overworld.hotspot.3.7.total
#                 world.minecraft.overworld.hotspot.3.7.minecraft.zombie
HOTSPOT_PATTERN = re.compile(
    r'^(?P<namespace>[^.]+)\.(?P<dimension>[^.]+\.[^.]+)\.hotspot'
    r'\.(?P<x>[^.]+)\.(?P<z>[^.]+)\.(?P<rest>.+)$'
)

# Block entities in one chunk: world.minecraft.overworld.chunk.12.-4.block_entities
CHUNK_BLOCK_ENTITIES_PATTERN = re.compile(
    r'^(?P<namespace>[^.]+)\.(?P<dimension>[^.]+\.[^.]+)\.chunk'
    r'\.(?P<x>[^.]+)\.(?P<z>[^.]+)\.block_entities$'
)

# Chunk coordinates are plain signed integers
INTEGER_PATTERN = re.compile(r'^-?\d+$')

# Per-type keys: entities.types.minecraft.cow, block_entities.types.<type>
TYPE_KEY_PREFIXES = {
    'entities.types.': 'entities',
    'block_entities.types.': 'block_entities',
}

# =============================================================================
# CATEGORY CLASSIFICATION TABLES
# =============================================================================

# Aggregate keys that already carry a category total
AGGREGATE_CATEGORY_KEYS = {
    'entities.hostile': 'Hostile',
    'entities.passive': 'Passive',
    'entities.ambient': 'Ambient',
    'entities.items': 'Items',
    'entities.players': 'Players',
    'entities.vehicles': 'Vehicles',
    'entities.projectiles': 'Projectiles',
}

PASSIVE_SPECIES = frozenset([
    'sheep', 'cow', 'chicken', 'pig', 'rabbit', 'horse', 'donkey', 'mule',
    'llama', 'fox', 'bat', 'parrot', 'squid', 'cod', 'salmon', 'turtle', 'bee',
])

HOSTILE_SPECIES = frozenset([
    'zombie', 'skeleton', 'creeper', 'spider', 'enderman', 'witch', 'slime',
    'phantom', 'drowned', 'blaze', 'ghast', 'magma_cube', 'pillager',
    'ravager', 'vex', 'evoker',
])

ITEM_TYPE = 'item'
PLAYER_TYPE = 'player'

VEHICLE_TOKENS = ('boat', 'minecart')
PROJECTILE_TOKENS = ('arrow', 'fireball', 'trident')

# =============================================================================
# TIME RANGES, BUCKETS AND WINDOWS
# =============================================================================

MINUTE_MS = 60 * 1000

TIME_RANGE_LOOKBACK_MS = {
    '5m': 5 * MINUTE_MS,
    '15m': 15 * MINUTE_MS,
    '30m': 30 * MINUTE_MS,
    '1h': 60 * MINUTE_MS,
}
DEFAULT_TIME_RANGE = '1h'

# MSPT distribution: (label, lower inclusive, upper exclusive)
DEFAULT_TICK_BUCKETS = (
    ('0-5ms', 0.0, 5.0),
    ('5-10ms', 5.0, 10.0),
    ('10-15ms', 10.0, 15.0),
    ('15-20ms', 15.0, 20.0),
    ('20-25ms', 20.0, 25.0),
    ('25-50ms', 25.0, 50.0),
    ('50ms+', 50.0, float('inf')),
)

# Lag spike windows: (label, duration)
DEFAULT_RATE_WINDOWS = (
    ('Last Minute', MINUTE_MS),
    ('Last 5 Minutes', 5 * MINUTE_MS),
    ('Last 15 Minutes', 15 * MINUTE_MS),
    ('Last 30 Minutes', 30 * MINUTE_MS),
    ('Last Hour', 60 * MINUTE_MS),
)

# A tick slower than this is a lag spike (two full 50 ms ticks at 20 TPS)
LAG_SPIKE_THRESHOLD_MS = 100.0

# =============================================================================
# WELL-KNOWN METRIC KEYS
# =============================================================================

LATENCY_METRIC = 'server.tick_time'
LAG_SPIKE_METRIC = 'server.lag_spikes.current'

# Selectable metrics per chart family; the first entry is the default
METRIC_FAMILIES = {
    'performance': ('server.tps', 'server.tick_time'),
    'entities_chunks': ('entities.total', 'chunks.loaded'),
}

CURRENT_VALUE_KEYS = {
    'tps': 'server.tps',
    'tick_time': 'server.tick_time',
    'memory_used': 'memory.heap.used',
    'memory_max': 'memory.heap.max',
    'entities': 'entities.total',
    'chunks': 'chunks.loaded',
}

GC_PRIMARY_KEYS = ('gc.young.rate', 'gc.old.rate')
GC_KEY_HINTS = ('gc', 'garbage', 'collector')

# Multi-series system charts, in display order
SYSTEM_CHARTS = {
    'cpu': ('cpu.system', 'cpu.process'),
    'threads': ('threads.active',),
    'memory_pools': ('memory.heap.used', 'memory.heap.committed', 'memory.nonheap.used'),
    'chunk_rates': ('chunks.load_rate', 'chunks.unload_rate'),
}
