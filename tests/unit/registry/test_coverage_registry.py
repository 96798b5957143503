from __future__ import annotations

from catalog_coverage.models import Resource
from catalog_coverage.registry import CoverageRegistry, FilterSet


def test_add_is_idempotent() -> None:
    registry = CoverageRegistry()

    assert registry.add(Resource("Package", "httpd")) is True
    assert registry.add("Package[httpd]") is False
    assert len(registry) == 1


def test_add_skips_filtered_resources() -> None:
    registry = CoverageRegistry()

    assert registry.add("Stage[main]") is False
    assert len(registry) == 0


def test_touch_before_add_creates_nothing() -> None:
    registry = CoverageRegistry()

    registry.touch("Service[httpd]")
    assert "Service[httpd]" not in registry

    registry.add("Service[httpd]")
    assert registry.get("Service[httpd]").touched is False


def test_touch_is_idempotent() -> None:
    registry = CoverageRegistry()
    registry.add("Service[httpd]")

    registry.touch("Service[httpd]")
    registry.touch(Resource("Service", "httpd"))

    assert registry.get("Service[httpd]").touched is True
    assert registry.results().touched == 1


def test_touch_ignores_filtered_resource() -> None:
    registry = CoverageRegistry(filters=FilterSet([]))
    registry.add("File[/etc/motd]")
    registry.add_filter("file", "/etc/motd")

    registry.touch("File[/etc/motd]")

    assert registry.get("File[/etc/motd]").touched is False


def test_filter_added_before_resource_excludes_it() -> None:
    registry = CoverageRegistry()
    registry.add_filter("class", "foo::bar")

    registry.add(Resource("Class", "Foo::Bar"))

    assert "Class[Foo::Bar]" not in registry


def test_filter_added_after_resource_purges_it_on_results() -> None:
    registry = CoverageRegistry()
    registry.add("Class[Foo::Bar]")
    registry.add("Class[Foo]")
    registry.touch("Class[Foo::Bar]")

    registry.add_filter("class", "foo::bar")
    report = registry.results()

    assert report.total == 1
    assert report.touched == 0
    assert "Class[Foo::Bar]" not in report.resources


def test_snapshot_maps_identifiers_to_touched_state() -> None:
    registry = CoverageRegistry()
    registry.add("Package[httpd]")
    registry.add("Service[httpd]")
    registry.touch("Service[httpd]")

    assert registry.snapshot() == {
        "Package[httpd]": {"touched": False},
        "Service[httpd]": {"touched": True},
    }


def test_evict_removes_entry() -> None:
    registry = CoverageRegistry()
    registry.add("Package[httpd]")

    assert registry.evict("Package[httpd]") is True
    assert registry.evict("Package[httpd]") is False
    assert not registry.exists("Package[httpd]")
