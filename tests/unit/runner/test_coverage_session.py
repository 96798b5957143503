from __future__ import annotations

from pathlib import Path

from catalog_coverage.config import CoverageConfig
from catalog_coverage.exchange import ExchangeStore
from catalog_coverage.models import CheckOutcome, Resource
from catalog_coverage.registry import CoverageRegistry
from catalog_coverage.runner import CoverageSession, EnvParallelSignal, Role
from catalog_coverage.utils import logging as coverage_logging

WORKING_DIR = "/srv/modules/ntp"


class FakeSignal:
    def __init__(self, parallel: bool, first: bool) -> None:
        self.parallel = parallel
        self.first = first
        self.waited = 0

    def is_parallel(self) -> bool:
        return self.parallel

    def is_first_process(self) -> bool:
        return self.first

    def wait_for_others(self) -> None:
        self.waited += 1


class RecordingSink:
    def __init__(self) -> None:
        self.outcomes: list[CheckOutcome] = []

    def record(self, outcome: CheckOutcome) -> None:
        self.outcomes.append(outcome)


def _session(tmp_path: Path, pid: int, signal, printed: list[str], sink=None) -> CoverageSession:
    return CoverageSession(
        registry=CoverageRegistry(),
        store=ExchangeStore(directory=tmp_path, working_dir=WORKING_DIR, pid=pid),
        signal=signal,
        sink=sink,
        echo=printed.append,
    )


def test_env_signal_detects_roles() -> None:
    assert not EnvParallelSignal(environ={}).is_parallel()
    assert EnvParallelSignal(environ={"TEST_ENV_NUMBER": ""}).is_first_process()
    assert EnvParallelSignal(environ={"TEST_ENV_NUMBER": "1"}).is_first_process()
    assert not EnvParallelSignal(environ={"TEST_ENV_NUMBER": "3"}).is_first_process()
    assert EnvParallelSignal(env_var="WORKER", environ={"WORKER": "2"}).is_parallel()


def test_env_signal_calls_barrier() -> None:
    calls: list[int] = []
    signal = EnvParallelSignal(barrier=lambda: calls.append(1), environ={"TEST_ENV_NUMBER": ""})

    signal.wait_for_others()

    assert calls == [1]


def test_standalone_reports_directly(tmp_path: Path) -> None:
    printed: list[str] = []
    sink = RecordingSink()
    session = _session(tmp_path, 1, FakeSignal(parallel=False, first=False), printed, sink)
    session.add_from_catalog([Resource("Package", "ntp"), Resource("Service", "ntpd")])
    session.touch(Resource("Package", "ntp"))

    result = session.report(desired=40)

    assert result.role is Role.STANDALONE
    assert result.report.coverage == "50.00"
    assert result.success
    assert printed == [result.report.text]
    assert [o.passed for o in sink.outcomes] == [True]


def test_follower_saves_and_stays_silent(tmp_path: Path) -> None:
    printed: list[str] = []
    session = _session(tmp_path, 2, FakeSignal(parallel=True, first=False), printed)
    session.add_from_catalog([Resource("Package", "ntp")])

    result = session.report(desired=100)

    assert result.role is Role.FOLLOWER
    assert result.report is None
    assert result.success
    assert printed == []
    assert session.store.result_path.exists()
    assert session.store.filter_path.exists()


def test_leader_waits_merges_and_reports(tmp_path: Path) -> None:
    follower = _session(tmp_path, 2, FakeSignal(parallel=True, first=False), [])
    follower.add_from_catalog([Resource("Package", "ntp"), Resource("File", "/etc/ntp.conf")])
    follower.touch("File[/etc/ntp.conf]")
    follower.add_filter("service", "ntpd")
    follower.report()

    printed: list[str] = []
    signal = FakeSignal(parallel=True, first=True)
    leader = _session(tmp_path, 1, signal, printed)
    leader.add_from_catalog([Resource("Package", "ntp"), Resource("Service", "ntpd")])
    leader.touch("Package[ntp]")
    leader.touch("Service[ntpd]")

    result = leader.report(desired=100)

    assert signal.waited == 1
    assert result.role is Role.LEADER
    assert result.report.total == 2
    assert result.report.touched == 2
    assert result.success
    assert printed == [result.report.text]
    assert leader.store.pending() == []


def test_failing_threshold_marks_session_unsuccessful(tmp_path: Path) -> None:
    session = _session(tmp_path, 1, FakeSignal(parallel=False, first=False), [])
    session.add_from_catalog([Resource("Package", "ntp")])

    result = session.report(desired=50)

    assert result.outcome.failed
    assert not result.success


def test_invalid_threshold_does_not_fail_session(tmp_path: Path) -> None:
    printed: list[str] = []
    session = _session(tmp_path, 1, FakeSignal(parallel=False, first=False), printed)
    session.add_from_catalog([Resource("Package", "ntp")])

    result = session.report(desired="high")

    assert result.outcome.skipped
    assert result.success
    assert printed[0].startswith("The desired coverage must be")
    assert printed[1] == result.report.text


def test_from_config_wires_components(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("CATALOG_COVERAGE_DIR", raising=False)
    config = CoverageConfig.from_dict({
        "default_filters": ["Stage[main]"],
        "exchange": {"directory": str(tmp_path)},
        "modules": {"modulepath": ["modules"]},
        "parallel": {"env_var": "WORKER"},
    }).unwrap()

    session = CoverageSession.from_config(config, echo=lambda _: None)

    assert session.registry.filters.patterns == ["Stage[main]"]
    assert session.registry.resolver.modulepath == ["modules"]
    assert session.store.directory == tmp_path
    assert session.signal.env_var == "WORKER"


def test_add_from_catalog_tags_logs_with_module(tmp_path: Path) -> None:
    session = _session(tmp_path, 1, FakeSignal(parallel=False, first=False), [])

    session.add_from_catalog([Resource("Package", "ntp")], "ntp")

    assert coverage_logging.worker_var.get() == session.store.slug
    assert coverage_logging.test_module_var.get() == "ntp"
