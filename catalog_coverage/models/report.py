"""Data models for coverage reports and threshold outcomes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CoverageReport:
    """
    Aggregate coverage of one registry.

    Attributes:
        total: Number of registered (unfiltered) resources
        touched: Number of resources exercised by at least one assertion
        untouched: ``total - touched``
        ratio: ``100 * touched / total``; NaN when nothing was registered
        resources: Map of identifier to ``{"touched": bool}``
        text: Human-readable summary
    """

    total: int
    touched: int
    untouched: int
    ratio: float
    resources: dict[str, dict] = field(default_factory=dict)
    text: str = ""

    @property
    def coverage(self) -> str:
        """Coverage percentage formatted with two decimals ("NaN" when undefined)."""
        if math.isnan(self.ratio):
            return "NaN"
        return f"{self.ratio:.2f}"

    @property
    def is_defined(self) -> bool:
        """Whether a coverage percentage could be computed at all."""
        return not math.isnan(self.ratio)

    @property
    def untouched_resources(self) -> list[str]:
        """Sorted identifiers of resources no assertion exercised."""
        return sorted(
            name for name, data in self.resources.items() if not data["touched"]
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "touched": self.touched,
            "untouched": self.untouched,
            "coverage": self.coverage,
            "resources": self.resources,
            "text": self.text,
        }


@dataclass
class CheckOutcome:
    """
    Result of the coverage threshold check.

    A skipped check has ``passed`` set to None and carries the diagnostic
    in ``message``.
    """

    name: str
    passed: Optional[bool]
    message: str
    details: str = ""

    @property
    def skipped(self) -> bool:
        return self.passed is None

    @property
    def failed(self) -> bool:
        return self.passed is False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "skipped": self.skipped,
            "message": self.message,
            "details": self.details,
        }
