"""Coverage session coordinating report production across test workers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol

import click

from catalog_coverage.config.settings import CoverageConfig
from catalog_coverage.exchange import ExchangeStore
from catalog_coverage.models import CatalogResource, CheckOutcome, CoverageReport, ResourceLike
from catalog_coverage.registry import CoverageRegistry, FilterSet, StaticModulePaths
from catalog_coverage.reporter import AssertionSink, coverage_test
from catalog_coverage.utils.logging import get_logger, set_worker_context

logger = get_logger("runner.coordinator")


class Role(str, Enum):
    """What a process does when the test run finishes."""

    STANDALONE = "standalone"  # no parallel run: report directly
    LEADER = "leader"  # first parallel worker: merge everyone, then report
    FOLLOWER = "follower"  # other parallel workers: persist and stay silent


class ParallelSignal(Protocol):
    """Parallelism information supplied by the external test runner."""

    def is_parallel(self) -> bool:
        ...

    def is_first_process(self) -> bool:
        ...

    def wait_for_others(self) -> None:
        ...


class EnvParallelSignal:
    """
    Parallel signal read from the environment.

    The variable is present in every worker of a parallel run; the first
    worker has it empty or set to "1".
    """

    def __init__(
        self,
        env_var: str = "TEST_ENV_NUMBER",
        barrier: Optional[Callable[[], None]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize the signal.

        Args:
            env_var: Variable naming the worker number
            barrier: Blocking call returning once all other workers finished
            environ: Environment to read (os.environ by default)
        """
        self.env_var = env_var
        self.barrier = barrier
        self.environ = environ if environ is not None else os.environ

    def is_parallel(self) -> bool:
        return self.env_var in self.environ

    def is_first_process(self) -> bool:
        return self.environ.get(self.env_var, "") in ("", "1")

    def wait_for_others(self) -> None:
        if self.barrier is None:
            logger.warning("barrier_missing", env_var=self.env_var)
            return
        logger.info("waiting_for_workers")
        self.barrier()


@dataclass
class SessionResult:
    """What a process produced when its test run finished."""

    role: Role
    report: Optional[CoverageReport] = None
    outcome: Optional[CheckOutcome] = None

    @property
    def success(self) -> bool:
        """False only when the threshold check ran and failed."""
        return self.outcome is None or not self.outcome.failed


class CoverageSession:
    """
    Per-process aggregate of registry, exchange store and parallel signal.

    One session is created per test process and handed to the catalog
    evaluation and assertion layers, which call add_from_catalog and touch.
    At the end of the run, report() either produces the final report or
    persists this worker's state for the leader.
    """

    def __init__(
        self,
        registry: Optional[CoverageRegistry] = None,
        store: Optional[ExchangeStore] = None,
        signal: Optional[ParallelSignal] = None,
        sink: Optional[AssertionSink] = None,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        """
        Initialize the session.

        Args:
            registry: Coverage registry
            store: Exchange store for cross-process merge
            signal: Parallelism signal from the test runner
            sink: Optional test-reporting framework for the threshold check
            echo: Output function for the report text
        """
        self.registry = registry if registry is not None else CoverageRegistry()
        self.store = store if store is not None else ExchangeStore()
        self.signal = signal if signal is not None else EnvParallelSignal()
        self.sink = sink
        self.echo = echo
        set_worker_context(self.store.slug)

    @classmethod
    def from_config(
        cls,
        config: CoverageConfig,
        barrier: Optional[Callable[[], None]] = None,
        sink: Optional[AssertionSink] = None,
        **kwargs: Any,
    ) -> "CoverageSession":
        """Build a session from configuration."""
        registry = CoverageRegistry(
            filters=FilterSet(config.default_filters),
            resolver=StaticModulePaths(
                modulepath=list(config.modules.modulepath),
                manifest=config.modules.manifest,
            ),
        )
        store = ExchangeStore(
            directory=config.exchange_directory(),
            filter_prefix=config.exchange.filter_prefix,
            result_prefix=config.exchange.result_prefix,
        )
        signal = EnvParallelSignal(env_var=config.parallel.env_var, barrier=barrier)
        return cls(registry=registry, store=store, signal=signal, sink=sink, **kwargs)

    def add_from_catalog(
        self,
        catalog: Iterable[CatalogResource],
        test_module: Optional[str] = None,
    ) -> int:
        if test_module:
            set_worker_context(self.store.slug, test_module)
        return self.registry.add_from_catalog(catalog, test_module)

    def touch(self, resource: ResourceLike) -> None:
        self.registry.touch(resource)

    def add_filter(self, type_name: str, title: str) -> str:
        return self.registry.add_filter(type_name, title)

    def role(self) -> Role:
        """Decide this process's role from the parallel signal."""
        if not self.signal.is_parallel():
            return Role.STANDALONE
        if self.signal.is_first_process():
            return Role.LEADER
        return Role.FOLLOWER

    def report(self, desired: Any = None) -> SessionResult:
        """
        Finish the run for this process.

        Followers persist their state and return without a report; the
        leader waits for them, then merges and reports.

        Args:
            desired: Desired coverage percentage

        Returns:
            Session result
        """
        role = self.role()
        logger.info("session_finishing", role=role.value)

        if role is Role.FOLLOWER:
            self.store.save(self.registry)
            return SessionResult(role=role)

        if role is Role.LEADER:
            self.signal.wait_for_others()

        return self.run_report(desired, role=role)

    def run_report(self, desired: Any = None, role: Role = Role.STANDALONE) -> SessionResult:
        """Merge pending worker state when parallel, then report and check."""
        if role is not Role.STANDALONE:
            self.store.merge_filters(self.registry)
            self.store.merge_results(self.registry)

        report = self.registry.results()
        outcome = coverage_test(desired, report, sink=self.sink, echo=self.echo)

        self.echo(report.text)
        return SessionResult(role=role, report=report, outcome=outcome)
