#!/usr/bin/env python3
"""
Server Metrics Report

Loads one or more metric snapshot files (the collector's JSON payload) and
logs the full analytics report for each. When two metric keys follow
--correlate, their correlation is reported as well.

Usage:
    python analyze_metrics.py snapshot.json [more.json ...]
        [--correlate X Y] [--config config.json] [--verbose | --quiet]
"""

import os
import sys

from metrics_analyzer import (
    ConfigurationError,
    MetricsAnalyzer,
    SnapshotFormatError,
    load_config,
    load_snapshot,
)
from metrics_analyzer.logging_config import enable_debug, enable_quiet, get_logger

logger = get_logger("metrics_analyzer.cli")


def _take_option(args, name, count):
    """Remove ``name`` and its ``count`` values from args; None if absent."""
    if name not in args:
        return None
    index = args.index(name)
    values = args[index + 1 : index + 1 + count]
    del args[index : index + 1 + count]
    return values


def main(argv=None):
    """Main entry point."""
    args = list(sys.argv[1:] if argv is None else argv)

    if "--verbose" in args:
        args.remove("--verbose")
        enable_debug()
    if "--quiet" in args:
        args.remove("--quiet")
        enable_quiet()

    pair = _take_option(args, "--correlate", 2)
    if pair is not None and len(pair) != 2:
        logger.error("--correlate needs two metric keys")
        return 2

    config_path = _take_option(args, "--config", 1)
    if config_path is not None and len(config_path) != 1:
        logger.error("--config needs a file path")
        return 2

    if not args:
        logger.info(__doc__.strip())
        return 2

    try:
        config = load_config(os.path.expanduser(config_path[0])) if config_path else None
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    analyzer = MetricsAnalyzer(config)
    status = 0

    for path in args:
        path = os.path.expanduser(path)
        logger.info("\nProcessing: %s", os.path.basename(path))
        try:
            # A saved snapshot is as fresh as the file it was written to
            snapshot = load_snapshot(path, fetched_at_ms=int(os.path.getmtime(path) * 1000))
        except (OSError, SnapshotFormatError) as e:
            logger.error("  Error loading snapshot: %s", e)
            status = 1
            continue

        analyzer.load_snapshot(snapshot)
        analyzer.generate_report()
        if pair:
            analyzer.report_correlation(pair[0], pair[1])

    return status


if __name__ == "__main__":
    sys.exit(main())
