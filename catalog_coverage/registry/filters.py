"""Filters deciding which resources are excluded from coverage."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Protocol

from catalog_coverage.models import CatalogResource, ResourceLike, identifier_of
from catalog_coverage.utils.logging import get_logger

logger = get_logger("registry.filters")

# Resources every compiled catalog contains that no test can meaningfully cover
DEFAULT_FILTERS = (
    "Stage[main]",
    "Class[Settings]",
    "Class[main]",
    "Node[default]",
)


def capitalize_name(name: str) -> str:
    """Capitalize each ``::``-delimited segment (``foo::bar`` -> ``Foo::Bar``)."""
    return "::".join(segment.capitalize() for segment in name.split("::"))


class FilterSet:
    """
    Exact-match set of resource identifiers excluded from coverage.

    Default patterns are seeded at construction; patterns added later
    (programmatically or merged from other workers) are tracked separately
    so only those need to be exchanged between processes.
    """

    def __init__(self, defaults: Optional[Iterable[str]] = None) -> None:
        """
        Initialize the filter set.

        Args:
            defaults: Static patterns (DEFAULT_FILTERS when not given)
        """
        self._defaults: list[str] = list(DEFAULT_FILTERS if defaults is None else defaults)
        self._added: list[str] = []
        self._lookup: set[str] = set(self._defaults)

    def add_filter(self, type_name: str, title: str) -> str:
        """
        Normalize and add a ``Type[Title]`` pattern.

        The title is normalized too when the type is ``Class``.

        Returns:
            The pattern that was added
        """
        type_name = capitalize_name(type_name)
        if type_name == "Class":
            title = capitalize_name(title)

        pattern = f"{type_name}[{title}]"
        self.add_pattern(pattern)
        return pattern

    def add_pattern(self, pattern: str) -> None:
        """Add an already-normalized pattern."""
        self._added.append(pattern)
        self._lookup.add(pattern)
        logger.debug("filter_added", pattern=pattern)

    def filtered(self, resource: ResourceLike) -> bool:
        """Whether the resource's identifier is one of the patterns."""
        return identifier_of(resource) in self._lookup

    __contains__ = filtered

    @property
    def patterns(self) -> list[str]:
        """All patterns in insertion order, defaults first."""
        return self._defaults + self._added

    @property
    def added(self) -> list[str]:
        """Patterns added after construction, in insertion order."""
        return list(self._added)

    def __iter__(self) -> Iterator[str]:
        return iter(self.patterns)

    def __len__(self) -> int:
        return len(self._defaults) + len(self._added)


class ModulePathResolver(Protocol):
    """Source of the directories that may hold a module's manifests."""

    modulepath: list[str]
    manifest: Optional[str]


@dataclass
class StaticModulePaths:
    """
    Module path resolver backed by fixed configuration.

    Attributes:
        modulepath: Directories containing modules
        manifest: Optional top-level site manifest
    """

    modulepath: list[str] = field(default_factory=list)
    manifest: Optional[str] = None


def module_paths(resolver: ModulePathResolver, test_module: str) -> list[str]:
    """
    Find all paths that may contain testable resources for a module.

    Args:
        resolver: Module path resolver
        test_module: Name of the module under test

    Returns:
        ``<dir>/<module>/manifests`` for each modulepath entry, plus the
        site manifest when one is configured
    """
    paths = [
        os.path.join(directory, test_module, "manifests")
        for directory in resolver.modulepath
    ]
    if resolver.manifest:
        paths.append(resolver.manifest)
    return paths


def should_exclude(
    resource: CatalogResource,
    test_module: str,
    filters: FilterSet,
    resolver: ModulePathResolver,
) -> bool:
    """
    Decide whether a catalog resource is outside the module under test.

    The resource is excluded if any of these hold:

      * it has been explicitly filtered (e.g. ``Stage[main]``);
      * it is a class that does not belong to the module under test
        (e.g. a class pulled in from a fixture module);
      * it was declared in a file outside the module's manifests and the
        site manifest (e.g. a resource declared by a dependency).

    Args:
        resource: The resource that may be excluded
        test_module: Name of the module under test
        filters: Active filter set
        resolver: Module path resolver

    Returns:
        True if the resource must not count towards coverage
    """
    if filters.filtered(resource):
        return True

    if resource.type == "Class":
        module_name = resource.title.split("::")[0].lower()
        if module_name != test_module:
            return True

    if resource.file:
        paths = module_paths(resolver, test_module)
        if not any(path in resource.file for path in paths):
            return True

    return False
