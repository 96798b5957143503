"""Utility modules for catalog-coverage."""

from catalog_coverage.utils.atomic import (
    AtomicWriteError,
    atomic_write,
    atomic_write_json,
    claim_file,
    release_file,
)
from catalog_coverage.utils.logging import (
    configure_logging,
    get_logger,
    log_coverage_summary,
    set_worker_context,
)
from catalog_coverage.utils.result import (
    ConfigError,
    Err,
    ExchangeError,
    ExitCode,
    Ok,
    Result,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "log_coverage_summary",
    "set_worker_context",
    # Atomic files
    "AtomicWriteError",
    "atomic_write",
    "atomic_write_json",
    "claim_file",
    "release_file",
    # Results
    "ConfigError",
    "Err",
    "ExchangeError",
    "ExitCode",
    "Ok",
    "Result",
]
