"""
Custom exceptions for server metrics analysis.

This module defines a hierarchy of exceptions for the few situations where
the analytics layer cannot degrade silently: malformed snapshot payloads,
explicitly requested validation, undefined results that a caller insists on,
and bad configuration.
"""

from typing import Optional


class MetricsAnalysisError(Exception):
    """Base exception for all metrics analysis errors."""

    pass


class SnapshotFormatError(MetricsAnalysisError):
    """Raised when a metric snapshot payload cannot be decoded.

    Attributes:
        file_path: Path to the snapshot file that failed to load.
        key: Metric key whose series was malformed (if applicable).
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        self.file_path = file_path
        self.key = key
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.file_path and self.key:
            return f"{base} (file: {self.file_path}, key: {self.key})"
        elif self.file_path:
            return f"{base} (file: {self.file_path})"
        elif self.key:
            return f"{base} (key: {self.key})"
        return base


class DataValidationError(MetricsAnalysisError):
    """Raised when input data fails explicit validation."""

    pass


class InsufficientDataError(MetricsAnalysisError):
    """Raised when a caller demands a result the data cannot support.

    Attributes:
        required: Minimum number of data points required.
        actual: Actual number of data points provided.
    """

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        actual: Optional[int] = None,
    ) -> None:
        self.required = required
        self.actual = actual
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.required is not None and self.actual is not None:
            return f"{base} (required: {self.required}, actual: {self.actual})"
        return base


class ConfigurationError(MetricsAnalysisError):
    """Raised for configuration-related errors."""

    pass
