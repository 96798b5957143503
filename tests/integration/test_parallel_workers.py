from __future__ import annotations

import os
import subprocess
import sys
import textwrap
from pathlib import Path

from catalog_coverage.exchange import ExchangeStore
from catalog_coverage.models import Resource
from catalog_coverage.registry import CoverageRegistry
from catalog_coverage.runner import CoverageSession, EnvParallelSignal, Role

WORKER_SCRIPT = textwrap.dedent(
    """
    import sys

    from catalog_coverage.config import load_config
    from catalog_coverage.models import Resource
    from catalog_coverage.runner import CoverageSession

    session = CoverageSession.from_config(load_config().unwrap())
    session.add_from_catalog(
        [Resource("Class", "Ntp"), Resource("Package", "ntp"), Resource("Service", "ntpd")],
        "ntp",
    )
    for name in sys.argv[1:]:
        if name.startswith("filter:"):
            type_name, title = name[len("filter:"):].split("=")
            session.add_filter(type_name, title)
        else:
            session.touch(name)
    result = session.report()
    print(result.role.value)
    """
)


def _run_worker(workdir: Path, exchange: Path, number: str, *args: str) -> str:
    env = dict(os.environ)
    env["TEST_ENV_NUMBER"] = number
    env["CATALOG_COVERAGE_DIR"] = str(exchange)
    completed = subprocess.run(
        [sys.executable, "-c", WORKER_SCRIPT, *args],
        cwd=workdir,
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout.strip()


def test_followers_persist_and_leader_merges(tmp_path: Path) -> None:
    workdir = tmp_path / "ntp"
    workdir.mkdir()
    exchange = tmp_path / "exchange"

    assert _run_worker(workdir, exchange, "2", "Package[ntp]") == "follower"
    assert _run_worker(workdir, exchange, "3", "Class[Ntp]", "filter:service=ntpd") == "follower"

    store = ExchangeStore(directory=exchange, working_dir=os.path.realpath(workdir))
    assert len(store.pending()) == 4

    printed: list[str] = []
    leader = CoverageSession(
        registry=CoverageRegistry(),
        store=store,
        signal=EnvParallelSignal(
            barrier=lambda: None,
            environ={"TEST_ENV_NUMBER": ""},
        ),
        echo=printed.append,
    )
    leader.add_from_catalog([Resource("Package", "ntp")], "ntp")

    result = leader.report(desired=100)

    assert result.role is Role.LEADER
    assert result.report.total == 2
    assert result.report.touched == 2
    assert "Service[ntpd]" not in result.report.resources
    assert result.success
    assert printed == [result.report.text]
    assert store.pending() == []
    assert list(exchange.iterdir()) == []
