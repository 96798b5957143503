"""Data models for catalog resources and their coverage state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Union


class CatalogResource(Protocol):
    """
    A resource handed over by the manifest evaluator.

    ``str(resource)`` must return the canonical ``Type[Title]`` identifier.
    """

    type: str
    title: str
    file: Optional[str]


@dataclass(frozen=True)
class Resource:
    """
    A declared configuration resource.

    Attributes:
        type: Resource type (e.g., "Class", "File", "Package")
        title: Resource title (e.g., "apache::service", "/etc/motd")
        file: Manifest file the resource was declared in, if known
    """

    type: str
    title: str
    file: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.type}[{self.title}]"


ResourceLike = Union[CatalogResource, Resource, str]


def identifier_of(resource: ResourceLike) -> str:
    """Return the canonical identifier of a resource or identifier string."""
    return str(resource)


@dataclass
class ResourceEntry:
    """
    Coverage state of one registered resource.

    Attributes:
        identifier: Canonical ``Type[Title]`` string, unique within a registry
        touched: Whether any assertion exercised the resource
    """

    identifier: str
    touched: bool = False

    def touch(self) -> None:
        """Mark the resource as exercised. Repeated calls are harmless."""
        self.touched = True

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"touched": self.touched}
