"""Coverage statistics computation and summary rendering."""

from __future__ import annotations

from typing import Iterable

from catalog_coverage.models import CoverageReport, ResourceEntry
from catalog_coverage.utils.logging import get_logger, log_coverage_summary

logger = get_logger("reporter.aggregator")


def build_report(entries: Iterable[ResourceEntry]) -> CoverageReport:
    """
    Compute aggregated statistics from registry entries.

    An empty registry yields a NaN ratio; the report renders it as "NaN"
    and reports ``is_defined`` as False.

    Args:
        entries: Registered, already-filtered entries

    Returns:
        Coverage report with rendered text
    """
    resources = {entry.identifier: entry.to_dict() for entry in entries}

    total = len(resources)
    touched = sum(1 for data in resources.values() if data["touched"])

    if total > 0:
        ratio = touched / total * 100
    else:
        ratio = float("nan")
        logger.warning("coverage_undefined", reason="no resources registered")

    report = CoverageReport(
        total=total,
        touched=touched,
        untouched=total - touched,
        ratio=ratio,
        resources=resources,
    )
    report.text = render_text(report)

    log_coverage_summary(report.total, report.touched, report.coverage)
    return report


def render_text(report: CoverageReport) -> str:
    """
    Render the textual summary of a report.

    Three summary lines, followed by the sorted untouched resources when
    there are any.
    """
    lines = [
        f"Total resources:   {report.total}",
        f"Touched resources: {report.touched}",
        f"Resource coverage: {report.coverage}%",
    ]

    if report.untouched > 0:
        lines += ["", "Untouched resources:"]
        lines += [f"  {name}" for name in report.untouched_resources]

    return "\n".join(lines)
