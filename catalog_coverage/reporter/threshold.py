"""Coverage threshold check surfaced as one synthetic test case."""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Callable, Optional, Protocol

import click

from catalog_coverage.models import CheckOutcome, CoverageReport
from catalog_coverage.utils.logging import get_logger

logger = get_logger("reporter.threshold")

CHECK_GROUP = "Code coverage"


class AssertionSink(Protocol):
    """Test-reporting framework that records the synthetic coverage test."""

    def record(self, outcome: CheckOutcome) -> None:
        ...


def is_valid_threshold(desired: Any) -> bool:
    """A threshold must be a real number within [0, 100]."""
    if isinstance(desired, bool) or not isinstance(desired, Real):
        return False
    value = float(desired)
    return not math.isnan(value) and 0.0 <= value <= 100.0


def coverage_test(
    desired: Any,
    report: CoverageReport,
    sink: Optional[AssertionSink] = None,
    echo: Callable[[str], None] = click.echo,
) -> CheckOutcome:
    """
    Check the report against the desired coverage.

    An invalid threshold skips the check and prints a diagnostic instead;
    it never fails the run on its own. A valid threshold yields a pass/fail
    outcome carrying the report text, recorded with the sink if there is one.

    Args:
        desired: Desired coverage percentage (None means 0)
        report: Computed coverage report
        sink: Optional test-reporting framework
        echo: Output function for the diagnostic

    Returns:
        Outcome of the check
    """
    if desired is None:
        desired = 0

    if not is_valid_threshold(desired):
        message = f"The desired coverage must be 0 <= x <= 100, not '{desired!r}'"
        logger.warning("threshold_invalid", desired=repr(desired))
        echo(message)
        return CheckOutcome(
            name=f"{CHECK_GROUP} threshold",
            passed=None,
            message=message,
        )

    name = f"{CHECK_GROUP} must cover at least {desired}% of resources"
    # Compared at the precision the report prints
    actual = float(report.coverage) if report.is_defined else report.ratio
    passed = actual >= float(desired)

    if not report.is_defined:
        message = "Resource coverage is undefined: no resources were registered"
    elif passed:
        message = f"Resource coverage {report.coverage}% meets {desired}%"
    else:
        message = f"Resource coverage {report.coverage}% is below {desired}%"

    outcome = CheckOutcome(
        name=name,
        passed=passed,
        message=message,
        details=report.text,
    )

    logger.info("threshold_checked", desired=desired, actual=report.coverage, passed=passed)

    if sink is not None:
        sink.record(outcome)

    return outcome
