from __future__ import annotations

import os

from catalog_coverage.models import Resource
from catalog_coverage.registry import (
    CoverageRegistry,
    FilterSet,
    StaticModulePaths,
    module_paths,
    should_exclude,
)

MODULEPATH = os.path.join("fixtures", "modules")
SITE = os.path.join("fixtures", "manifests", "site.pp")


def _resolver(manifest: str | None = None) -> StaticModulePaths:
    return StaticModulePaths(modulepath=[MODULEPATH], manifest=manifest)


def test_module_paths_include_manifests_dir_and_site() -> None:
    paths = module_paths(_resolver(SITE), "apache")

    assert paths == [os.path.join(MODULEPATH, "apache", "manifests"), SITE]


def test_module_paths_without_site_manifest() -> None:
    resolver = StaticModulePaths(modulepath=["a", "b"])

    assert module_paths(resolver, "ntp") == [
        os.path.join("a", "ntp", "manifests"),
        os.path.join("b", "ntp", "manifests"),
    ]


def test_class_from_other_module_is_excluded() -> None:
    resource = Resource("Class", "Nginx")

    assert should_exclude(resource, "apache", FilterSet(), _resolver())


def test_class_outside_module_manifests_is_excluded() -> None:
    resource = Resource(
        "Class",
        "Apache::Service",
        file=os.path.join("elsewhere", "apache", "service.pp"),
    )

    assert should_exclude(resource, "apache", FilterSet(), _resolver())


def test_class_inside_module_manifests_is_included() -> None:
    resource = Resource(
        "Class",
        "Apache::Service",
        file=os.path.join(MODULEPATH, "apache", "manifests", "service.pp"),
    )

    assert not should_exclude(resource, "apache", FilterSet(), _resolver())


def test_resource_declared_in_site_manifest_is_included() -> None:
    resource = Resource("File", "/etc/motd", file=SITE)

    assert not should_exclude(resource, "apache", FilterSet(), _resolver(SITE))


def test_resource_without_file_is_included() -> None:
    resource = Resource("Package", "httpd")

    assert not should_exclude(resource, "apache", FilterSet(), _resolver())


def test_static_filter_excludes_in_scope_resource() -> None:
    resource = Resource("Class", "main")

    assert should_exclude(resource, "main", FilterSet(), _resolver())


def test_add_from_catalog_applies_scope() -> None:
    registry = CoverageRegistry(resolver=_resolver())
    manifests = os.path.join(MODULEPATH, "apache", "manifests")
    catalog = [
        Resource("Stage", "main"),
        Resource("Class", "Apache", file=os.path.join(manifests, "init.pp")),
        Resource("Class", "Concat"),
        Resource("Package", "httpd", file=os.path.join(manifests, "init.pp")),
        Resource("File", "/tmp/concat", file=os.path.join(MODULEPATH, "concat", "manifests", "init.pp")),
    ]

    added = registry.add_from_catalog(catalog, "apache")

    assert added == 2
    assert "Class[Apache]" in registry
    assert "Package[httpd]" in registry
    assert "Class[Concat]" not in registry


def test_add_from_catalog_without_module_applies_only_static_filters() -> None:
    registry = CoverageRegistry(resolver=_resolver())
    catalog = [
        Resource("Stage", "main"),
        Resource("Class", "Concat", file="/somewhere/else.pp"),
        Resource("Package", "httpd"),
    ]

    added = registry.add_from_catalog(catalog, None)

    assert added == 2
    assert "Stage[main]" not in registry
    assert "Class[Concat]" in registry
