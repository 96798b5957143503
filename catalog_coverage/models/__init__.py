"""Data models for catalog-coverage."""

from catalog_coverage.models.report import CheckOutcome, CoverageReport
from catalog_coverage.models.resource import (
    CatalogResource,
    Resource,
    ResourceEntry,
    ResourceLike,
    identifier_of,
)

__all__ = [
    # Resource models
    "CatalogResource",
    "Resource",
    "ResourceEntry",
    "ResourceLike",
    "identifier_of",
    # Report models
    "CoverageReport",
    "CheckOutcome",
]
