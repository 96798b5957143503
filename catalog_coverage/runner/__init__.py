"""Runner module coordinating coverage reporting across test workers."""

from catalog_coverage.runner.coordinator import (
    CoverageSession,
    EnvParallelSignal,
    ParallelSignal,
    Role,
    SessionResult,
)

__all__ = [
    "CoverageSession",
    "EnvParallelSignal",
    "ParallelSignal",
    "Role",
    "SessionResult",
]
