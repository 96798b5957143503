"""Coverage registry tracking which catalog resources were touched."""

from __future__ import annotations

from typing import Iterable, Optional

from catalog_coverage.models import (
    CatalogResource,
    CoverageReport,
    ResourceEntry,
    ResourceLike,
    identifier_of,
)
from catalog_coverage.registry.filters import (
    FilterSet,
    ModulePathResolver,
    StaticModulePaths,
    should_exclude,
)
from catalog_coverage.reporter.aggregator import build_report
from catalog_coverage.utils.logging import get_logger

logger = get_logger("registry.tracker")


class CoverageRegistry:
    """
    Registry of the resources a test suite is expected to cover.

    Provides:
    - Deduplicated registration of resources (only add new)
    - Touch tracking, ignoring unknown and filtered resources
    - Module-scoped registration of whole catalogs
    - Report computation with lazy purging of filtered entries
    """

    def __init__(
        self,
        filters: Optional[FilterSet] = None,
        resolver: Optional[ModulePathResolver] = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            filters: Filter set (defaults seeded when not given)
            resolver: Module path resolver used for catalog scoping
        """
        self.filters = filters if filters is not None else FilterSet()
        self.resolver = resolver if resolver is not None else StaticModulePaths()
        self._entries: dict[str, ResourceEntry] = {}

    def add(self, resource: ResourceLike) -> bool:
        """
        Register a resource unless it is already known or filtered.

        Args:
            resource: Resource or identifier string

        Returns:
            True if a new entry was created
        """
        identifier = identifier_of(resource)
        if identifier in self._entries or self.filters.filtered(identifier):
            return False

        self._entries[identifier] = ResourceEntry(identifier=identifier)
        logger.debug("resource_added", resource=identifier)
        return True

    def touch(self, resource: ResourceLike) -> None:
        """Mark a registered, unfiltered resource as exercised."""
        identifier = identifier_of(resource)
        if self.filters.filtered(identifier):
            return

        entry = self._entries.get(identifier)
        if entry is not None:
            entry.touch()

    def add_filter(self, type_name: str, title: str) -> str:
        """Exclude a resource from coverage; see FilterSet.add_filter."""
        return self.filters.add_filter(type_name, title)

    def add_from_catalog(
        self,
        catalog: Iterable[CatalogResource],
        test_module: Optional[str],
    ) -> int:
        """
        Register every resource of a catalog declared by the module under test.

        Args:
            catalog: Resources of one compiled catalog
            test_module: Name of the module under test, or None to apply
                only the static filters

        Returns:
            Number of new entries
        """
        added = 0
        for resource in catalog:
            if test_module is not None and should_exclude(
                resource, test_module, self.filters, self.resolver
            ):
                continue
            if self.add(resource):
                added += 1

        logger.debug("catalog_added", test_module=test_module, added=added)
        return added

    def evict(self, identifier: str) -> bool:
        """Remove an entry outright. Returns True if it existed."""
        return self._entries.pop(identifier, None) is not None

    def purge_filtered(self) -> int:
        """Drop entries matching the current filters. Returns the count removed."""
        doomed = [name for name in self._entries if self.filters.filtered(name)]
        for name in doomed:
            del self._entries[name]
        if doomed:
            logger.debug("entries_purged", count=len(doomed))
        return len(doomed)

    def get(self, resource: ResourceLike) -> Optional[ResourceEntry]:
        """Get the entry for a resource."""
        return self._entries.get(identifier_of(resource))

    def exists(self, resource: ResourceLike) -> bool:
        """Check if a resource is registered."""
        return identifier_of(resource) in self._entries

    def snapshot(self) -> dict[str, dict]:
        """Map of identifier to ``{"touched": bool}`` for every entry."""
        return {name: entry.to_dict() for name, entry in self._entries.items()}

    def results(self) -> CoverageReport:
        """Purge filtered entries and compute the coverage report."""
        self.purge_filtered()
        return build_report(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, resource: object) -> bool:
        return str(resource) in self._entries
