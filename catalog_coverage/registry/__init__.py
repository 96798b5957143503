"""Coverage registry for tracking catalog resources across a test run.

This module provides:
- Deduplicated registration of resources found in compiled catalogs
- Static and module-scoped filters
- Touch tracking and report computation
"""

from catalog_coverage.registry.filters import (
    DEFAULT_FILTERS,
    FilterSet,
    ModulePathResolver,
    StaticModulePaths,
    capitalize_name,
    module_paths,
    should_exclude,
)
from catalog_coverage.registry.tracker import CoverageRegistry

__all__ = [
    "CoverageRegistry",
    "DEFAULT_FILTERS",
    "FilterSet",
    "ModulePathResolver",
    "StaticModulePaths",
    "capitalize_name",
    "module_paths",
    "should_exclude",
]
