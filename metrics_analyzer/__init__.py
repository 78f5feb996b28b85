"""
Server Metrics Analysis Toolkit

A Python package that derives analytical views (distributions, lag spike
rates, correlations, entity categories and hotspots) from snapshots of
server runtime metrics.
"""

from .analytics import (
    Bucket,
    Category,
    CategoryClassifier,
    ClassificationRule,
    CorrelationResult,
    HistogramBucketer,
    KeyParser,
    ParsedKey,
    RankedEntry,
    RankingTopN,
    RateWindowAggregator,
    TimeAlignedCorrelator,
    TimeRangeFilter,
    Window,
    parse_key,
    top_n,
)
from .analyzer import AnalysisPass, MetricsAnalyzer, ViewParameters
from .config import AnalyzerConfig, load_config
from .exceptions import (
    ConfigurationError,
    DataValidationError,
    InsufficientDataError,
    MetricsAnalysisError,
    SnapshotFormatError,
)
from .series import MetricPoint, MetricSnapshot, load_snapshot
from .session import AnalyticsSession

__all__ = [
    # Facade and session
    "MetricsAnalyzer",
    "AnalysisPass",
    "ViewParameters",
    "AnalyticsSession",
    # Configuration
    "AnalyzerConfig",
    "load_config",
    # Data model
    "MetricPoint",
    "MetricSnapshot",
    "load_snapshot",
    # Exceptions
    "MetricsAnalysisError",
    "SnapshotFormatError",
    "DataValidationError",
    "InsufficientDataError",
    "ConfigurationError",
    # Core analytics
    "KeyParser",
    "ParsedKey",
    "parse_key",
    "TimeRangeFilter",
    "Bucket",
    "HistogramBucketer",
    "Window",
    "RateWindowAggregator",
    "Category",
    "CategoryClassifier",
    "ClassificationRule",
    "CorrelationResult",
    "TimeAlignedCorrelator",
    "RankedEntry",
    "RankingTopN",
    "top_n",
]

__version__ = "1.0.0"
