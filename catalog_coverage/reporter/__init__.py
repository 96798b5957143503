"""Reporter module for coverage statistics and the threshold check."""

from catalog_coverage.reporter.aggregator import build_report, render_text
from catalog_coverage.reporter.threshold import (
    AssertionSink,
    coverage_test,
    is_valid_threshold,
)

__all__ = [
    # Aggregator
    "build_report",
    "render_text",
    # Threshold
    "AssertionSink",
    "coverage_test",
    "is_valid_threshold",
]
