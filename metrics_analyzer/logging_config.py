"""
Logging configuration for server metrics analysis.

All loggers in the package hang off the ``metrics_analyzer`` namespace.
By default output uses a bare message format so that report tables read
like plain console output.

Usage:
    from metrics_analyzer.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Loaded %d series", count)

To include timestamps and levels:
    from metrics_analyzer.logging_config import configure_logging

    configure_logging(level="debug", simple_mode=False)
"""

import logging
import sys
from typing import Dict, Optional, TextIO, Union

from .exceptions import ConfigurationError

NAMESPACE = "metrics_analyzer"

# Format strings
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SIMPLE_FORMAT = "%(message)s"

_loggers: Dict[str, logging.Logger] = {}
_configured: bool = False


def resolve_level(level: Union[int, str]) -> int:
    """Accept a numeric level or a level name such as ``"debug"``."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown logging level: {level!r}")
    return resolved


def configure_logging(
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
    simple_mode: bool = True,
) -> None:
    """
    Send all package output to a single stream handler.

    Args:
        level: Logging level or level name (default: INFO).
        format_string: Custom format string. If None, uses SIMPLE_FORMAT
            or DEFAULT_FORMAT based on simple_mode.
        stream: Output stream (default: sys.stdout).
        simple_mode: If True, log bare messages without timestamps or levels.

    Raises:
        ConfigurationError: If ``level`` is an unknown name.
    """
    global _configured

    level = resolve_level(level)
    if format_string is None:
        format_string = SIMPLE_FORMAT if simple_mode else DEFAULT_FORMAT

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(format_string))

    package_logger = logging.getLogger(NAMESPACE)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Cached logger for ``name``; configures the package on first use."""
    if not _configured:
        configure_logging()

    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)

    return _loggers[name]


def set_level(level: Union[int, str]) -> None:
    """Change the level of every metrics_analyzer logger at once."""
    logging.getLogger(NAMESPACE).setLevel(resolve_level(level))


def enable_debug() -> None:
    """Show per-key debug messages (skipped keys, fallbacks)."""
    set_level(logging.DEBUG)


def enable_quiet() -> None:
    """Suppress report tables; keep warnings and errors."""
    set_level(logging.WARNING)
