"""Filesystem exchange of partial coverage between test worker processes.

Every worker sharing a working directory writes a pair of JSON files named
after ``md5(working_dir)-pid`` into a shared directory:

- ``coverage-filter-<slug>``: JSON array of filter patterns added at runtime
- ``coverage-result-<slug>``: JSON object ``identifier -> {"touched": bool}``

The merging process globs the shared ``md5(working_dir)-`` prefix, claims each
file by renaming it, applies it and deletes it, so every file is consumed at
most once even if two processes attempt the merge.
"""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from catalog_coverage.registry import CoverageRegistry
from catalog_coverage.utils.atomic import atomic_write_json, claim_file, release_file
from catalog_coverage.utils.logging import get_logger
from catalog_coverage.utils.result import ExchangeError

logger = get_logger("exchange.store")

FILTER_PREFIX = "coverage-filter"
RESULT_PREFIX = "coverage-result"
CLAIMED_SUFFIX = ".claimed"


def working_dir_fingerprint(working_dir: str | Path) -> str:
    """
    Fingerprint shared by all workers of one test run.

    Args:
        working_dir: Directory the test run was started from

    Returns:
        MD5 hex digest of the directory path
    """
    return hashlib.md5(str(working_dir).encode()).hexdigest()


class ExchangeStore:
    """
    Persists and merges per-process coverage state through the filesystem.

    Workers are identified by ``<fingerprint>-<pid>``; a store only ever
    writes its own pair of files and consumes everyone's on merge.
    """

    def __init__(
        self,
        directory: Optional[str | Path] = None,
        working_dir: Optional[str | Path] = None,
        pid: Optional[int] = None,
        filter_prefix: str = FILTER_PREFIX,
        result_prefix: str = RESULT_PREFIX,
    ) -> None:
        """
        Initialize the store.

        Args:
            directory: Exchange directory (system temp dir by default)
            working_dir: Working directory of the test run (cwd by default)
            pid: Process ID of this worker (current process by default)
            filter_prefix: File name prefix for filter files
            result_prefix: File name prefix for result files
        """
        self.directory = Path(directory) if directory else Path(tempfile.gettempdir())
        self.working_dir = str(working_dir) if working_dir else os.getcwd()
        self.pid = pid if pid is not None else os.getpid()
        self.filter_prefix = filter_prefix
        self.result_prefix = result_prefix

    @property
    def fingerprint(self) -> str:
        """Prefix shared by every worker of this test run."""
        return working_dir_fingerprint(self.working_dir)

    @property
    def slug(self) -> str:
        """Unique identifier of this worker's contribution."""
        return f"{self.fingerprint}-{self.pid}"

    @property
    def filter_path(self) -> Path:
        return self.directory / f"{self.filter_prefix}-{self.slug}"

    @property
    def result_path(self) -> Path:
        return self.directory / f"{self.result_prefix}-{self.slug}"

    def save(self, registry: CoverageRegistry) -> tuple[Path, Path]:
        """
        Persist this worker's added filters and registry snapshot.

        Filters are written first so a result file never exists without
        its companion filter file.

        Args:
            registry: The worker's registry

        Returns:
            Paths of the filter and result files
        """
        filters = registry.filters.added
        snapshot = registry.snapshot()

        atomic_write_json(self.filter_path, filters)
        atomic_write_json(self.result_path, snapshot)

        logger.info(
            "exchange_saved",
            slug=self.slug,
            filters=len(filters),
            resources=len(snapshot),
        )
        return self.filter_path, self.result_path

    def pending(self, prefix: Optional[str] = None) -> list[Path]:
        """
        List exchange files of this test run awaiting merge.

        Args:
            prefix: Restrict to one file family (filter or result prefix)

        Returns:
            Sorted paths
        """
        prefixes = [prefix] if prefix else [self.filter_prefix, self.result_prefix]
        paths: list[Path] = []
        for family in prefixes:
            pattern = f"{family}-{self.fingerprint}-*"
            paths.extend(
                path
                for path in self.directory.glob(pattern)
                if not path.name.endswith(CLAIMED_SUFFIX)
            )
        return sorted(paths)

    def merge_filters(self, registry: CoverageRegistry) -> int:
        """
        Merge every worker's filters into the registry.

        Entries already collected that match a merged filter are evicted,
        so this must run before merge_results.

        Returns:
            Number of files consumed
        """
        consumed = 0
        for path in self.pending(self.filter_prefix):
            patterns = self._consume(path, _parse_filters)
            if patterns is None:
                continue
            for pattern in patterns:
                registry.filters.add_pattern(pattern)
                registry.evict(pattern)
            consumed += 1

        logger.info("filters_merged", files=consumed, slug=self.slug)
        return consumed

    def merge_results(self, registry: CoverageRegistry) -> int:
        """
        Merge every worker's registry snapshot into the registry.

        Returns:
            Number of files consumed
        """
        consumed = 0
        for path in self.pending(self.result_prefix):
            snapshot = self._consume(path, _parse_results)
            if snapshot is None:
                continue
            for identifier, data in snapshot.items():
                registry.add(identifier)
                if data["touched"]:
                    registry.touch(identifier)
            consumed += 1

        logger.info("results_merged", files=consumed, slug=self.slug)
        return consumed

    def merge_all(self, registry: CoverageRegistry) -> tuple[int, int]:
        """Merge filters, then results. Returns the file counts of each."""
        return self.merge_filters(registry), self.merge_results(registry)

    def discard(self) -> int:
        """Delete every pending exchange file of this test run without merging."""
        removed = 0
        for path in self.pending():
            claimed = claim_file(path, str(self.pid))
            if claimed is not None:
                release_file(claimed)
                removed += 1
        logger.info("exchange_discarded", files=removed)
        return removed

    def _consume(self, path: Path, parse: Callable[[Any, Path], Any]) -> Any:
        """
        Claim, parse and delete one exchange file.

        The whole file is parsed and validated before the caller applies
        any of it. A malformed file is left claimed on disk for inspection.

        Returns:
            Parsed payload, or None if another process consumed it first
        """
        claimed = claim_file(path, str(self.pid))
        if claimed is None:
            return None

        try:
            payload = json.loads(claimed.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("exchange_malformed", path=str(claimed), error=str(e))
            raise ExchangeError(str(claimed), f"unreadable JSON: {e}") from e

        parsed = parse(payload, claimed)
        release_file(claimed)
        logger.debug("exchange_consumed", path=str(path))
        return parsed


def _parse_filters(payload: Any, path: Path) -> list[str]:
    if not isinstance(payload, list) or not all(isinstance(p, str) for p in payload):
        logger.error("exchange_malformed", path=str(path), error="expected list of strings")
        raise ExchangeError(str(path), "expected a JSON array of filter patterns")
    return payload


def _parse_results(payload: Any, path: Path) -> dict[str, dict]:
    valid = isinstance(payload, dict) and all(
        isinstance(data, dict) and isinstance(data.get("touched"), bool)
        for data in payload.values()
    )
    if not valid:
        logger.error("exchange_malformed", path=str(path), error="expected resource map")
        raise ExchangeError(
            str(path), 'expected a JSON object of identifier -> {"touched": bool}'
        )
    return payload
