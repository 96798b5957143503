"""Resource coverage for declarative configuration test suites."""

__version__ = "0.1.0"

from catalog_coverage.models import CoverageReport, Resource
from catalog_coverage.registry import CoverageRegistry, FilterSet
from catalog_coverage.runner import CoverageSession, EnvParallelSignal

__all__ = [
    "__version__",
    "CoverageReport",
    "CoverageRegistry",
    "CoverageSession",
    "EnvParallelSignal",
    "FilterSet",
    "Resource",
]
