"""
Core analytics components for server metrics.
"""

from .classification import Category, CategoryClassifier, ClassificationRule, default_rules
from .correlation import CorrelationResult, TimeAlignedCorrelator, pearson
from .histogram import Bucket, HistogramBucketer, buckets_from_edges
from .keys import KeyParser, ParsedKey, parse_key
from .ranking import RankedEntry, RankingTopN, top_n
from .rates import RateWindowAggregator, Window, windows_from_table
from .timerange import TimeRangeFilter, filter_by_time_range

__all__ = [
    "KeyParser",
    "ParsedKey",
    "parse_key",
    "TimeRangeFilter",
    "filter_by_time_range",
    "Bucket",
    "HistogramBucketer",
    "buckets_from_edges",
    "Window",
    "RateWindowAggregator",
    "windows_from_table",
    "Category",
    "CategoryClassifier",
    "ClassificationRule",
    "default_rules",
    "CorrelationResult",
    "TimeAlignedCorrelator",
    "pearson",
    "RankedEntry",
    "RankingTopN",
    "top_n",
]
